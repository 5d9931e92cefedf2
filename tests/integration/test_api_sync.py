"""End-to-end sync through the HTTP API with a real store and a fake Discogs."""

import pytest
import pytest_asyncio

from storage.repository import ArtistRepository, SettingsRepository, UserSettings
from tests.factories import (
    credit,
    listing_entry,
    make_listing_page,
    make_master_payload,
    make_release_payload,
)

pytestmark = pytest.mark.integration

ARTIST_ID = "12345"


@pytest_asyncio.fixture
async def configured(sqlite_store):
    """Saved settings for Brian Eno so no artist lookup is needed."""
    await SettingsRepository(sqlite_store).save(
        UserSettings(artist_id=ARTIST_ID, token="test-token", artist_name="Brian Eno")
    )
    return ArtistRepository(sqlite_store, ARTIST_ID)


@pytest.fixture
def discography(fake_discogs):
    """A master whose key release is also listed, a broken release and a credited release."""
    fake_discogs.add(
        f"/artists/{ARTIST_ID}/releases",
        make_listing_page(
            [
                listing_entry(10, type="master", title="Another Green World"),
                listing_entry(1, title="Another Green World (UK)"),
                listing_entry(2, title="Broken"),
                listing_entry(3, title="Music for Films"),
            ]
        ),
    )
    fake_discogs.add("/masters/10", make_master_payload(id=10, main_release=1))
    fake_discogs.add(
        "/releases/1", make_release_payload(id=1, credits=[credit("Brian Eno", "Producer")])
    )
    fake_discogs.add("/releases/2", {"message": "Internal error"}, status=500)
    fake_discogs.add(
        "/releases/3", make_release_payload(id=3, credits=[credit("Brian Eno (2)", "Mixed By")])
    )
    return fake_discogs


class TestFullSync:
    @pytest.mark.asyncio
    async def test_first_sync(self, app_client, configured, discography, no_sleep):
        resp = await app_client.post("/api/v1/sync")

        assert resp.status_code == 200
        result = resp.json()
        assert result["new_items"] == 4
        assert result["succeeded"] == 3
        assert result["failed"] == 1
        # release 1 is represented by master 10
        assert result["total_items"] == 2
        assert result["failed_queue_size"] == 1
        assert result["last_synced"] is not None

        items = (await app_client.get("/api/v1/items")).json()["items"]
        assert [(i["id"], i["is_grouping"], i["credits"]) for i in items] == [
            (10, True, "Produced"),
            (3, False, "Mixed"),
        ]
        assert items[0]["representative_edition_id"] == 1

        failed = (await app_client.get("/api/v1/items/failed")).json()
        assert [f["stub"]["id"] for f in failed["failed"]] == [2]
        assert failed["failed"][0]["error"].startswith("HTTP error 500")

        # the key release already had credits, so no versions listing
        assert "/masters/10/versions" not in discography.paths()

    @pytest.mark.asyncio
    async def test_second_sync_retries_and_fetches_only_new(
        self, app_client, configured, discography, no_sleep
    ):
        await app_client.post("/api/v1/sync")

        discography.add("/releases/2", make_release_payload(id=2))
        discography.add(
            f"/artists/{ARTIST_ID}/releases",
            make_listing_page(
                [
                    listing_entry(10, type="master"),
                    listing_entry(3),
                    listing_entry(11, title="Apollo"),
                ]
            ),
        )
        discography.add(
            "/releases/11", make_release_payload(id=11, credits=[credit("Brian Eno", "Synthesizer")])
        )
        discography.requests.clear()

        result = (await app_client.post("/api/v1/sync")).json()

        assert result["retried"] == 1
        assert result["retry_succeeded"] == 1
        assert result["new_items"] == 1
        assert result["failed_queue_size"] == 0
        release_paths = [p for p in discography.paths() if p.startswith("/releases/")]
        assert release_paths == ["/releases/2", "/releases/11"]

        items = (await app_client.get("/api/v1/items", params={"sort": "title"})).json()["items"]
        assert sorted(i["id"] for i in items) == [2, 3, 10, 11]
        assert items[0]["title"] == "Master 10"

    @pytest.mark.asyncio
    async def test_alternate_versions_when_key_release_uncredited(
        self, app_client, configured, fake_discogs, no_sleep
    ):
        fake_discogs.add(
            f"/artists/{ARTIST_ID}/releases",
            make_listing_page([listing_entry(20, type="master")]),
        )
        fake_discogs.add("/masters/20", make_master_payload(id=20, main_release=21))
        fake_discogs.add("/releases/21", make_release_payload(id=21))
        fake_discogs.add(
            "/masters/20/versions", {"versions": [{"id": 21}, {"id": 22}, {"id": 23}]}
        )
        fake_discogs.add(
            "/releases/22", make_release_payload(id=22, credits=[credit("Brian Eno", "Remix")])
        )
        fake_discogs.add("/releases/23", make_release_payload(id=23))

        result = (await app_client.post("/api/v1/sync")).json()

        assert result["succeeded"] == 1
        items = (await app_client.get("/api/v1/items")).json()["items"]
        assert items[0]["credits"] == "Remixed"
        versions_request = next(
            r for r in fake_discogs.requests if r.url.path == "/masters/20/versions"
        )
        assert versions_request.url.params["per_page"] == "15"
        assert versions_request.url.params["sort"] == "released"

    @pytest.mark.asyncio
    async def test_release_dropped_by_master_not_relisted(
        self, app_client, configured, fake_discogs, no_sleep
    ):
        fake_discogs.add(
            f"/artists/{ARTIST_ID}/releases",
            make_listing_page([listing_entry(5, type="master"), listing_entry(30)]),
        )
        fake_discogs.add("/masters/5", make_master_payload(id=5, main_release=30))
        fake_discogs.add(
            "/releases/30", make_release_payload(id=30, credits=[credit("Brian Eno", "Producer")])
        )

        first = (await app_client.post("/api/v1/sync")).json()
        assert first["succeeded"] == 2
        assert first["total_items"] == 1

        fake_discogs.requests.clear()
        second = (await app_client.post("/api/v1/sync")).json()

        assert second["new_items"] == 0
        assert not [p for p in fake_discogs.paths() if p.startswith(("/releases/", "/masters/"))]
        assert await configured.get_highest_resolved_id() == 30


class TestSingleRetry:
    @pytest.mark.asyncio
    async def test_retry_after_fix(self, app_client, configured, discography, no_sleep):
        await app_client.post("/api/v1/sync")
        discography.add(
            "/releases/2", make_release_payload(id=2, credits=[credit("Brian Eno", "Engineer")])
        )

        resp = await app_client.post("/api/v1/items/failed/release/2/retry")

        assert resp.status_code == 200
        assert resp.json()["succeeded"] is True
        assert await configured.load_failed_queue() == []
        assert 2 in [i.id for i in await configured.load_items()]


class TestCsvRoundTrip:
    @pytest.mark.asyncio
    async def test_export_then_import(self, app_client, configured, discography, no_sleep):
        await app_client.post("/api/v1/sync")

        export = await app_client.get("/api/v1/items/export.csv")
        assert export.status_code == 200
        assert 'filename="Brian_Eno_production_credits.csv"' in export.headers["content-disposition"]

        await app_client.delete("/api/v1/items")
        assert (await app_client.get("/api/v1/items")).json()["total"] == 0

        resp = await app_client.post("/api/v1/items/import", content=export.content)

        assert resp.status_code == 200
        assert resp.json()["total"] == 2
        items = await configured.load_items()
        assert [(i.id, i.is_grouping) for i in items] == [(10, True), (3, False)]
        assert await configured.load_failed_queue() == []
        assert await configured.get_last_synced() is not None


class TestStatus:
    @pytest.mark.asyncio
    async def test_idle_status_after_sync(self, app_client, configured, discography, no_sleep):
        await app_client.post("/api/v1/sync")

        status = (await app_client.get("/api/v1/sync/status")).json()

        assert status["running"] is False
        assert status["last_synced"] is not None

    @pytest.mark.asyncio
    async def test_unconfigured_artist(self, app_client):
        resp = await app_client.get("/api/v1/items")
        assert resp.status_code == 400
