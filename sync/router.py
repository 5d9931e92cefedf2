"""Sync API router: start, stop and inspect scans."""

import logging

from fastapi import APIRouter, Depends
from posthog import Posthog
from pydantic import BaseModel

from config.settings import Settings, get_settings
from core.dependencies import (
    get_artist_id,
    get_discogs_client,
    get_posthog_client,
    get_scan_target,
    get_session_registry,
    get_store,
)
from discogs.client import DiscogsClient
from storage.repository import ArtistRepository
from storage.store import KeyValueStore
from sync.orchestrator import SyncOrchestrator, SyncResult
from sync.registry import SessionRegistry
from sync.session import ScanSession, SyncState, TargetArtist

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


class SyncStatus(BaseModel):
    """What the artist's sync is doing right now."""

    artist_id: str
    running: bool
    state: SyncState = SyncState.IDLE
    throttled: bool = False
    last_throttle_wait_s: float | None = None
    items_done: int = 0
    items_total: int = 0
    stopping: bool = False
    last_synced: int | None = None


class StopResponse(BaseModel):
    artist_id: str
    stopping: bool


def build_orchestrator(
    client: DiscogsClient,
    store: KeyValueStore,
    artist: TargetArtist,
    settings: Settings,
) -> SyncOrchestrator:
    """Wire a fresh session and orchestrator for one run."""
    session = ScanSession(
        artist=artist,
        request_delay=settings.request_delay_seconds(client.token),
    )
    return SyncOrchestrator(
        client,
        ArtistRepository(store, artist.artist_id),
        session,
        max_additional_versions=settings.max_additional_versions,
        main_releases_only=settings.main_releases_only,
        page_size=settings.listing_page_size,
    )


@router.post(
    "",
    response_model=SyncResult,
    summary="Run one sync cycle",
    description="""
    Retries the failure queue, then fetches catalog entries newer than the
    highest known id, resolving credits for each one. The request returns
    when the cycle finishes or is stopped via `POST /sync/stop`.
    """,
    responses={
        200: {"description": "Cycle finished (possibly stopped early)"},
        400: {"description": "No artist configured or artist name unknown"},
        409: {"description": "A sync for this artist is already running"},
    },
)
async def start_sync(
    artist: TargetArtist = Depends(get_scan_target),
    client: DiscogsClient = Depends(get_discogs_client),
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    registry: SessionRegistry = Depends(get_session_registry),
    posthog_client: Posthog | None = Depends(get_posthog_client),
):
    """Run a sync cycle for the configured artist."""
    orchestrator = build_orchestrator(client, store, artist, settings)
    session = orchestrator.session

    async with registry.running(session):
        result = await orchestrator.run_cycle()

    if posthog_client:
        session.telemetry.send_to_posthog(
            posthog_client,
            {
                "new_items": result.new_items,
                "retried": result.retried,
                "succeeded": result.succeeded,
                "failed": result.failed,
                "stopped": result.stopped,
                "authenticated": client.is_authenticated,
            },
        )

    return result


@router.post("/stop", response_model=StopResponse, summary="Stop the running sync")
async def stop_sync(
    artist_id: str = Depends(get_artist_id),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Ask the running sync to stop at its next suspension point."""
    stopping = registry.stop(artist_id)
    if stopping:
        logger.info(f"Stop requested for artist {artist_id}")
    else:
        logger.info(f"Stop requested for artist {artist_id} but no sync is running")
    return StopResponse(artist_id=artist_id, stopping=stopping)


@router.get("/status", response_model=SyncStatus, summary="Current sync status")
async def sync_status(
    artist_id: str = Depends(get_artist_id),
    store: KeyValueStore = Depends(get_store),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Report progress and throttle state of the artist's sync."""
    last_synced = await ArtistRepository(store, artist_id).get_last_synced()
    session = registry.get(artist_id)
    if session is None:
        return SyncStatus(artist_id=artist_id, running=False, last_synced=last_synced)

    return SyncStatus(
        artist_id=artist_id,
        running=True,
        state=session.state,
        throttled=session.throttled,
        last_throttle_wait_s=session.last_throttle_wait,
        items_done=session.items_done,
        items_total=session.items_total,
        stopping=session.stopped,
        last_synced=last_synced,
    )
