"""Integration tests for the health check endpoint."""

import pytest

pytestmark = pytest.mark.integration


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_healthy_with_store_and_api(self, app_client, fake_discogs):
        """Health check is healthy when the store is open and Discogs answers."""
        fake_discogs.add("/", {"hello": "Welcome to the Discogs API."})

        resp = await app_client.get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["services"] == {"store": "ok", "discogs_api": "ok"}
        assert body["authenticated"] is True

    @pytest.mark.asyncio
    async def test_degraded_when_discogs_unreachable(self, app_client):
        """The fake API has no root route, so the Discogs probe fails."""
        resp = await app_client.get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["services"]["store"] == "ok"
        assert body["services"]["discogs_api"] == "error"

    @pytest.mark.asyncio
    async def test_unhealthy_when_store_closed(self, app_client, sqlite_store, fake_discogs):
        fake_discogs.add("/", {})
        await sqlite_store.close()

        resp = await app_client.get("/health")

        assert resp.status_code == 503
        assert resp.json()["status"] == "unhealthy"
