"""Exceptions raised by the Teamup client.

Everything derives from `TeamupError`, so callers can catch one type:

```
TeamupError
├── ConfigurationError
├── OptionsError
│   ├── ArgumentTypeError
│   ├── TypeMismatchError
│   └── MissingFieldError
├── TransportError
└── RemoteError
```

`ConfigurationError` and the `OptionsError` family are raised before any
request is sent. `TransportError` wraps the underlying httpx failure (available
as `__cause__`). `RemoteError` carries the status and body the API answered
with.
"""

from __future__ import annotations

from typing import Any


class TeamupError(Exception):
    """Base exception for Teamup client errors."""

    pass


class ConfigurationError(TeamupError):
    """Raised when the client is constructed with an invalid configuration."""

    pass


class OptionsError(TeamupError):
    """Raised when per-call options are rejected before a request is made."""

    pass


class ArgumentTypeError(OptionsError, TypeError):
    """Raised when options are neither an identifier string nor a mapping."""

    def __init__(self, expected: str, received: Any):
        self.expected = expected
        self.received = type(received).__name__
        super().__init__(
            f"Expected type {expected}, received type {self.received}"
        )


class TypeMismatchError(OptionsError, TypeError):
    """Raised when a recognized option holds a value of the wrong kind."""

    def __init__(self, field: str, expected: str, actual: str):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Invalid type provided for '{field}', "
            f"expected type {expected}, received type {actual}"
        )


class MissingFieldError(OptionsError):
    """Raised when an operation's required option is absent."""

    def __init__(self, field: str, operation: str):
        self.field = field
        self.operation = operation
        super().__init__(f"'{field}' is required for {operation}")


class TransportError(TeamupError):
    """Raised when the HTTP exchange itself fails (connection, timeout)."""

    pass


class RemoteError(TeamupError):
    """Raised when the Teamup API answers with a non-success response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.response_body = response_body
