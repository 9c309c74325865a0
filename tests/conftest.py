"""Pytest fixtures for Teamup client tests.

This module provides test fixtures that ensure:
1. No request ever reaches api.teamup.com (all traffic goes to httpx.MockTransport)
2. TEAMUP_* variables from the developer's shell don't leak into tests
3. Settings are reloaded for every test
"""

import json
from collections.abc import Callable

import httpx
import pytest

from teamup_client.client import TeamupClient

Handler = Callable[[httpx.Request], httpx.Response]


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Remove TEAMUP_* variables and run away from any local .env file."""
    import os

    for key in list(os.environ):
        if key.startswith("TEAMUP_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from teamup_client.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# HTTP Fixtures
# =============================================================================


@pytest.fixture
def sent_requests() -> list[httpx.Request]:
    """Requests seen by the mock transport, in order."""
    return []


@pytest.fixture
def make_client(sent_requests) -> Callable[..., TeamupClient]:
    """Factory for clients wired to a recording mock transport.

    The handler defaults to answering 200 with an empty JSON object.
    """

    def factory(handler: Handler | None = None, **kwargs) -> TeamupClient:
        def record(request: httpx.Request) -> httpx.Response:
            sent_requests.append(request)
            if handler is None:
                return httpx.Response(200, json={})
            return handler(request)

        kwargs.setdefault("token", "test-token")
        kwargs.setdefault("skip_token_check", True)
        return TeamupClient(transport=httpx.MockTransport(record), **kwargs)

    return factory


@pytest.fixture
def echo_store() -> dict[str, dict]:
    """Storage backing the echoing event handler."""
    return {}


@pytest.fixture
def echo_handler(echo_store) -> Handler:
    """Handler that stores created events and serves them back by id."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            payload = json.loads(request.content)
            event_id = str(len(echo_store) + 1)
            event = {**payload, "id": event_id, "version": "v1"}
            echo_store[event_id] = event
            return httpx.Response(201, json={"event": event})
        if request.method == "GET":
            event_id = request.url.path.rsplit("/", 1)[-1]
            if event_id not in echo_store:
                return httpx.Response(404, json={"error": {"id": "event_not_found"}})
            return httpx.Response(200, json={"event": echo_store[event_id]})
        return httpx.Response(405)

    return handler
