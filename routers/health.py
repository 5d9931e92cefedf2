"""Health check router with real dependency connectivity checks."""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from config.settings import Settings, get_settings
from core.dependencies import get_discogs_client, get_store
from discogs.client import DiscogsClient
from storage.store import KeyValueStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 3.0
CORE_SERVICES = {"store"}


async def _check_store(store: KeyValueStore) -> str:
    """Ping the key/value store."""
    return "ok" if await store.is_available() else "error"


async def _check_discogs_api(client: DiscogsClient) -> str:
    """Ping the Discogs API root."""
    return "ok" if await client.check_api() else "error"


async def _run_check(coro) -> str:
    """Run a single health check with a timeout."""
    try:
        return await asyncio.wait_for(coro, timeout=CHECK_TIMEOUT)
    except TimeoutError:
        return "timeout"


@router.get(
    "/health",
    summary="Health check",
    responses={
        200: {"description": "Service is healthy or degraded"},
        503: {"description": "Service is unhealthy (store down)"},
    },
)
async def health_check(
    settings: Settings = Depends(get_settings),
    store: KeyValueStore = Depends(get_store),
    client: DiscogsClient = Depends(get_discogs_client),
):
    """Health check with connectivity probes for the store and Discogs."""
    results = await asyncio.gather(
        _run_check(_check_store(store)),
        _run_check(_check_discogs_api(client)),
    )

    services = {
        "store": results[0],
        "discogs_api": results[1],
    }

    core_ok = all(services[s] == "ok" for s in CORE_SERVICES)
    all_ok = all(v == "ok" for v in services.values())

    if core_ok and all_ok:
        status = "healthy"
    elif core_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    body = {
        "status": status,
        "version": settings.app_version,
        "authenticated": client.is_authenticated,
        "services": services,
    }

    status_code = 200 if status in ("healthy", "degraded") else 503
    return JSONResponse(content=body, status_code=status_code)
