"""Unit tests for catalog/router.py."""

import pytest
from httpx import ASGITransport, AsyncClient

from catalog.csv_io import CSV_HEADERS, export_csv
from catalog.models import ItemKind
from config.settings import get_settings
from core.dependencies import (
    get_artist_id,
    get_discogs_client,
    get_session_registry,
    get_store,
    get_target_artist,
    get_user_settings,
)
from core.exceptions import TransientAPIError
from storage.repository import ArtistRepository, UserSettings
from sync.registry import SessionRegistry
from sync.session import TargetArtist
from tests.factories import credit, make_failed, make_item, make_release_payload, make_session
from tests.unit.conftest import override_deps


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def repository(memory_store):
    return ArtistRepository(memory_store, "12345")


@pytest.fixture
def deps(mock_settings, memory_store, registry, mock_discogs_client):
    return {
        get_settings: mock_settings,
        get_store: memory_store,
        get_session_registry: registry,
        get_discogs_client: mock_discogs_client,
        get_artist_id: "12345",
        get_user_settings: UserSettings(artist_id="12345", artist_name="Brian Eno"),
        get_target_artist: TargetArtist.create("12345", "Brian Eno"),
    }


async def _request(deps, method, path="", **kwargs):
    from main import app

    with override_deps(app, deps):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            return await ac.request(method, f"/api/v1/items{path}", **kwargs)


class TestListItems:
    @pytest.mark.asyncio
    async def test_stored_order(self, deps, repository, sample_items):
        await repository.save_items(sample_items)
        await repository.set_last_synced(1700000000000)

        response = await _request(deps, "GET")

        body = response.json()
        assert [i["id"] for i in body["items"]] == [10, 1, 2]
        assert body["total"] == 3
        assert body["last_synced"] == 1700000000000
        assert body["sort"] is None

    @pytest.mark.asyncio
    async def test_sorted(self, deps, repository, sample_items):
        await repository.save_items(sample_items)

        response = await _request(deps, "GET", params={"sort": "year", "direction": "desc"})

        body = response.json()
        assert [i["id"] for i in body["items"]] == [10, 1, 2]
        assert body["sort"] == "year"
        assert body["direction"] == "desc"

    @pytest.mark.asyncio
    async def test_invalid_sort_column(self, deps):
        response = await _request(deps, "GET", params={"sort": "colour"})
        assert response.status_code == 422


class TestFailedItems:
    @pytest.mark.asyncio
    async def test_lists_queue(self, deps, repository):
        await repository.save_failed_queue([make_failed(id=5), make_failed(id=6)])

        response = await _request(deps, "GET", "/failed")

        body = response.json()
        assert body["total"] == 2
        assert [f["stub"]["id"] for f in body["failed"]] == [5, 6]

    @pytest.mark.asyncio
    async def test_retry_success(self, deps, repository, mock_discogs_client, no_sleep):
        await repository.save_failed_queue([make_failed(id=5)])
        mock_discogs_client.get_release.return_value = make_release_payload(
            id=5, credits=[credit("Brian Eno", "Producer")]
        )

        response = await _request(deps, "POST", "/failed/release/5/retry")

        assert response.status_code == 200
        body = response.json()
        assert body["succeeded"] is True
        assert body["item"]["credits"] == "Produced"
        assert await repository.load_failed_queue() == []

    @pytest.mark.asyncio
    async def test_retry_failure_keeps_entry(self, deps, repository, mock_discogs_client, no_sleep):
        await repository.save_failed_queue([make_failed(id=5)])
        mock_discogs_client.get_release.side_effect = TransientAPIError("HTTP error 503", 503)

        response = await _request(deps, "POST", "/failed/release/5/retry")

        assert response.status_code == 200
        assert response.json()["succeeded"] is False
        assert (await repository.load_failed_queue())[0].error == "HTTP error 503"

    @pytest.mark.asyncio
    async def test_retry_unknown_item(self, deps):
        response = await _request(deps, "POST", "/failed/master/5/retry")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_retry_refused_while_sync_running(self, deps, registry, repository):
        await repository.save_failed_queue([make_failed(id=5)])
        registry.register(make_session(artist_id="12345"))

        response = await _request(deps, "POST", "/failed/release/5/retry")

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_retry_refused_without_artist_name(self, deps, repository, mock_discogs_client):
        await repository.save_failed_queue([make_failed(id=5)])
        deps[get_target_artist] = TargetArtist.create("12345", None)

        response = await _request(deps, "POST", "/failed/release/5/retry")

        assert response.status_code == 400
        mock_discogs_client.get_release.assert_not_called()
        assert len(await repository.load_failed_queue()) == 1


class TestExport:
    @pytest.mark.asyncio
    async def test_csv_download(self, deps, repository, sample_items):
        await repository.save_items(sample_items)

        response = await _request(deps, "GET", "/export.csv", params={"sort": "title"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert (
            response.headers["content-disposition"]
            == 'attachment; filename="Brian_Eno_production_credits.csv"'
        )
        lines = response.text.splitlines()
        assert lines[0] == ",".join(f'"{h}"' for h in CSV_HEADERS)
        assert len(lines) == 4

    @pytest.mark.asyncio
    async def test_nothing_to_export(self, deps):
        response = await _request(deps, "GET", "/export.csv")
        assert response.status_code == 404
        assert response.json()["detail"] == "No data to export"


class TestImport:
    @pytest.mark.asyncio
    async def test_replaces_collection(self, deps, repository):
        await repository.save_items([make_item(id=99)])
        await repository.save_failed_queue([make_failed(id=98)])
        await repository.raise_highest_resolved_id(500)
        content = export_csv(
            [make_item(id=10, is_grouping=True), make_item(id=2, source_url="")]
        )

        response = await _request(
            deps, "POST", "/import", content=("\ufeff" + content).encode("utf-8")
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        stored = await repository.load_items()
        assert [(i.id, i.kind) for i in stored] == [(10, ItemKind.MASTER), (-1, ItemKind.RELEASE)]
        assert await repository.load_failed_queue() == []
        assert await repository.get_last_synced() == body["last_synced"]
        assert await repository.get_highest_resolved_id() is None

    @pytest.mark.asyncio
    async def test_repeated_rows_stored_once(self, deps, repository):
        content = export_csv(
            [make_item(id=10, is_grouping=True, title=t) for t in ("Old", "New")]
        )

        response = await _request(deps, "POST", "/import", content=content.encode("utf-8"))

        assert response.json()["total"] == 1
        stored = await repository.load_items()
        assert [(i.identity, i.title) for i in stored] == [((10, True), "New")]

    @pytest.mark.asyncio
    async def test_bad_header_rejected(self, deps, repository):
        await repository.save_items([make_item(id=99)])

        response = await _request(deps, "POST", "/import", content=b'"Name"\n"x"')

        assert response.status_code == 400
        assert response.json()["details"]["found"] == ["Name"]
        assert [i.id for i in await repository.load_items()] == [99]

    @pytest.mark.asyncio
    async def test_non_utf8_rejected(self, deps):
        response = await _request(deps, "POST", "/import", content=b"\xff\xfe\x00bad")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_refused_while_running(self, deps, registry):
        registry.register(make_session(artist_id="12345"))
        response = await _request(deps, "POST", "/import", content=b"x")
        assert response.status_code == 409


class TestClear:
    @pytest.mark.asyncio
    async def test_clears_artist_data(self, deps, repository, sample_items):
        await repository.save_items(sample_items)
        await repository.set_last_synced(1)

        response = await _request(deps, "DELETE")

        assert response.json() == {"artist_id": "12345", "cleared": True}
        assert await repository.load_items() == []
        assert await repository.get_last_synced() is None

    @pytest.mark.asyncio
    async def test_refused_while_running(self, deps, registry):
        registry.register(make_session(artist_id="12345"))
        response = await _request(deps, "DELETE")
        assert response.status_code == 409
