"""Main application entry point for the Discogs Credit Scanner service."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request

from catalog.router import router as items_router
from config.settings import get_settings
from core.dependencies import close_discogs_client, close_store, flush_posthog, shutdown_posthog
from core.error_handlers import register_exception_handlers
from core.logging import setup_logging
from core.sentry import init_sentry
from routers.health import router as health_router
from routers.settings import router as settings_router
from sync.router import router as sync_router

load_dotenv()

settings = get_settings()

init_sentry(
    dsn=settings.sentry_dsn,
    environment="production" if settings.log_level != "DEBUG" else "development",
    release=settings.app_version,
)

log_file = None
if settings.log_level != "DEBUG":
    log_dir = Path("/app/logs") if Path("/app/logs").exists() else Path("logs")
    log_file = log_dir / "discogs-credit-scanner.log"
setup_logging(level=settings.log_level, log_file=log_file)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan with proper startup and shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Store: {settings.resolved_store_path}")
    logger.info(f"Main releases only: {settings.main_releases_only}")

    yield

    logger.info("Shutting down application")
    shutdown_posthog()
    await close_store()
    await close_discogs_client()
    logger.info("All services shut down")


app = FastAPI(
    title=settings.app_name,
    description="Discogs discography scanner that collects production credits for one artist",
    version=settings.app_version,
    lifespan=lifespan,
)

register_exception_handlers(app)


@app.middleware("http")
async def posthog_flush_middleware(request: Request, call_next):
    """Flush PostHog events after each request to prevent data loss."""
    response = await call_next(request)
    flush_posthog()
    return response


app.include_router(health_router, prefix="", tags=["health"])
app.include_router(settings_router, prefix="/api/v1", tags=["settings"])
app.include_router(sync_router, prefix="/api/v1", tags=["sync"])
app.include_router(items_router, prefix="/api/v1", tags=["items"])

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
