"""Response envelope handling.

Teamup wraps most results in a resource-named field (`{"event": {...}}`,
`{"events": [...]}`). The client returns the nested value when it is there and
the whole decoded body otherwise, so an unexpected shape is still handed back
for inspection instead of being treated as an error.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from teamup_client.exceptions import RemoteError


def unwrap_envelope(body: Any, field: str | None) -> Any:
    """Return `body[field]` if present and not None, else `body`."""
    if field and isinstance(body, Mapping) and body.get(field) is not None:
        return body[field]
    return body


def decode_json(response: httpx.Response) -> Any:
    """Decode a JSON response body.

    Raises:
        RemoteError: If the body is not valid JSON
    """
    try:
        return response.json()
    except ValueError as e:
        raise RemoteError(
            f"Failed to parse response: {e}",
            status_code=response.status_code,
            reason=response.reason_phrase,
            response_body=response.text,
        ) from e
