"""Discography table router: items, failures, CSV and cache management."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from catalog.csv_io import export_csv, export_filename, parse_csv
from catalog.models import FailedItemsResponse, ItemKind, ItemsResponse, now_ms
from catalog.sorting import SortColumn, SortDirection, sort_items
from config.settings import Settings, get_settings
from core.dependencies import (
    get_artist_id,
    get_discogs_client,
    get_scan_target,
    get_session_registry,
    get_store,
    get_user_settings,
)
from core.exceptions import CSVImportError, SyncInProgressError
from discogs.client import DiscogsClient
from storage.repository import ArtistRepository, UserSettings
from storage.store import KeyValueStore
from sync.orchestrator import RetryResult
from sync.registry import SessionRegistry
from sync.router import build_orchestrator
from sync.session import TargetArtist

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["items"])


def _ensure_idle(registry: SessionRegistry, artist_id: str) -> None:
    if registry.is_running(artist_id):
        raise SyncInProgressError(
            f"A sync for artist {artist_id} is running. Stop it first.",
            details={"artist_id": artist_id},
        )


@router.get("", response_model=ItemsResponse, summary="List the artist's discography")
async def list_items(
    sort: SortColumn | None = Query(None, description="Column to sort by"),
    direction: SortDirection = Query(SortDirection.ASC, description="Sort direction"),
    artist_id: str = Depends(get_artist_id),
    store: KeyValueStore = Depends(get_store),
):
    """Return the stored collection, optionally sorted by one column."""
    repository = ArtistRepository(store, artist_id)
    items = sort_items(await repository.load_items(), sort, direction)
    return ItemsResponse(
        artist_id=artist_id,
        items=items,
        total=len(items),
        last_synced=await repository.get_last_synced(),
        sort=sort.value if sort else None,
        direction=direction.value,
    )


@router.get("/failed", response_model=FailedItemsResponse, summary="List failed items")
async def list_failed_items(
    artist_id: str = Depends(get_artist_id),
    store: KeyValueStore = Depends(get_store),
):
    """Return the failure queue."""
    failed = await ArtistRepository(store, artist_id).load_failed_queue()
    return FailedItemsResponse(artist_id=artist_id, failed=failed, total=len(failed))


@router.post(
    "/failed/{kind}/{item_id}/retry",
    response_model=RetryResult,
    summary="Retry one failed item",
    responses={
        200: {"description": "Retry attempted; see `succeeded`"},
        400: {"description": "No artist configured or artist name unknown"},
        404: {"description": "Item is not in the failure queue"},
        409: {"description": "A sync for this artist is running"},
    },
)
async def retry_failed_item(
    kind: ItemKind,
    item_id: int,
    artist: TargetArtist = Depends(get_scan_target),
    client: DiscogsClient = Depends(get_discogs_client),
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Resolve a single queued item while no full sync is running."""
    orchestrator = build_orchestrator(client, store, artist, settings)

    async with registry.running(orchestrator.session):
        result = await orchestrator.retry_single_item(item_id, kind)

    if result is None:
        raise HTTPException(status_code=404, detail=f"Item {kind} {item_id} not found in failed queue")
    return result


@router.get(
    "/export.csv",
    summary="Export the table as CSV",
    response_class=Response,
    responses={
        200: {"content": {"text/csv": {}}, "description": "CSV document"},
        404: {"description": "No data to export"},
    },
)
async def export_items(
    sort: SortColumn | None = Query(None, description="Column to sort by"),
    direction: SortDirection = Query(SortDirection.ASC, description="Sort direction"),
    artist_id: str = Depends(get_artist_id),
    user_settings: UserSettings = Depends(get_user_settings),
    store: KeyValueStore = Depends(get_store),
):
    """Export the collection in the requested table order."""
    items = await ArtistRepository(store, artist_id).load_items()
    if not items:
        raise HTTPException(status_code=404, detail="No data to export")

    filename = export_filename(user_settings.artist_name, artist_id)
    logger.info(f"Exporting {len(items)} items to {filename}")
    return Response(
        content=export_csv(sort_items(items, sort, direction)),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/import",
    response_model=ItemsResponse,
    summary="Import a CSV export",
    description="""
    Replaces the artist's collection with the rows of a previously exported
    CSV document sent as the raw request body. The failure queue is cleared
    and the last-synced time is set to now.
    """,
    responses={
        200: {"description": "Collection replaced"},
        400: {"description": "Document rejected"},
        409: {"description": "A sync for this artist is running"},
    },
)
async def import_items(
    request: Request,
    artist_id: str = Depends(get_artist_id),
    store: KeyValueStore = Depends(get_store),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Replace the collection with an imported CSV document."""
    _ensure_idle(registry, artist_id)

    body = await request.body()
    try:
        content = body.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CSVImportError("CSV document must be UTF-8 encoded") from e

    items = parse_csv(content)

    repository = ArtistRepository(store, artist_id)
    last_synced = now_ms()
    await repository.clear()
    await repository.save_items(items)
    await repository.save_failed_queue([])
    await repository.set_last_synced(last_synced)
    logger.info(f"{len(items)} items imported and cached for artist {artist_id}")

    return ItemsResponse(
        artist_id=artist_id, items=items, total=len(items), last_synced=last_synced
    )


@router.delete("", summary="Clear cached data for the artist")
async def clear_items(
    artist_id: str = Depends(get_artist_id),
    store: KeyValueStore = Depends(get_store),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Remove the collection, failure queue and last-synced time."""
    _ensure_idle(registry, artist_id)
    await ArtistRepository(store, artist_id).clear()
    return {"artist_id": artist_id, "cleared": True}
