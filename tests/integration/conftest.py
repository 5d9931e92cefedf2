"""Integration test fixtures.

Provides a real SQLiteStore on a temporary file and a real DiscogsClient whose
transport is served from an in-process fake of the Discogs API.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio

from config.settings import Settings
from discogs.client import DISCOGS_API_BASE, DiscogsClient
from discogs.ratelimit import reset_rate_limiting
from storage.store import SQLiteStore
from sync.registry import SessionRegistry


class FakeDiscogs:
    """Serves canned JSON per path and records every request made."""

    def __init__(self):
        self.routes: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, payload=None, status: int = 200, headers: dict | None = None):
        self.routes[path] = (status, payload, headers or {})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "The requested resource was not found."})
        status, payload, headers = route
        if callable(payload):
            payload = payload(request)
        return httpx.Response(status, json=payload, headers=headers)


@pytest.fixture
def fake_discogs():
    return FakeDiscogs()


@pytest_asyncio.fixture
async def discogs_client(fake_discogs):
    """Real DiscogsClient talking to the fake API."""
    client = DiscogsClient(token="test-token", max_attempts=2)
    client._client = httpx.AsyncClient(
        base_url=DISCOGS_API_BASE,
        headers=client._headers(),
        transport=httpx.MockTransport(fake_discogs.handler),
    )
    yield client
    await client.close()
    reset_rate_limiting()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    """Real SQLiteStore backed by a temporary database file."""
    store = SQLiteStore(db_path=tmp_path / "scanner.db")
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
def test_settings():
    """Settings with no real tokens, telemetry disabled."""
    return Settings(
        discogs_token=None,
        sentry_dsn=None,
        posthog_api_key=None,
        enable_telemetry=False,
        store_path="test_scanner.db",
    )


@pytest.fixture
def no_sleep():
    """Make every scan delay return immediately."""
    with patch("core.cancellation.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest_asyncio.fixture
async def app_client(sqlite_store, discogs_client, test_settings):
    """httpx AsyncClient with a real store and client, PostHog disabled."""
    from httpx import ASGITransport, AsyncClient

    from config.settings import get_settings
    from core.dependencies import (
        get_discogs_client,
        get_posthog_client,
        get_session_registry,
        get_store,
    )
    from main import app

    registry = SessionRegistry()
    app.dependency_overrides[get_store] = lambda: sqlite_store
    app.dependency_overrides[get_discogs_client] = lambda: discogs_client
    app.dependency_overrides[get_posthog_client] = lambda: None
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_session_registry] = lambda: registry

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
