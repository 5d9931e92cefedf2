"""FastAPI dependency injection providers."""

import logging

from fastapi import Depends
from posthog import Posthog
from pydantic import ValidationError

from config.settings import Settings, get_settings
from core.exceptions import ConfigurationError, CreditScannerError, ServiceInitializationError
from discogs.client import DiscogsClient
from storage.repository import SettingsRepository, UserSettings
from storage.store import SQLiteStore
from sync.registry import SessionRegistry
from sync.session import TargetArtist

logger = logging.getLogger(__name__)

# Module-level instances for lifecycle management
_store: SQLiteStore | None = None
_discogs_client: DiscogsClient | None = None
_session_registry: SessionRegistry | None = None
_posthog_client: Posthog | None = None


async def get_store(settings: Settings = Depends(get_settings)) -> SQLiteStore:
    """Get the key/value store.

    Args:
        settings: Application settings

    Returns:
        SQLiteStore: Connected store instance

    Raises:
        ServiceInitializationError: If the store cannot be opened
    """
    global _store

    if _store is None:
        store_path = settings.resolved_store_path
        store = SQLiteStore(db_path=store_path)
        try:
            await store.connect()
        except Exception as e:
            logger.error(f"Failed to initialize store at {store_path}: {e}")
            raise ServiceInitializationError(f"Store initialization failed: {e}") from e
        _store = store

    return _store


async def close_store() -> None:
    """Close the store connection."""
    global _store
    if _store:
        await _store.close()
        _store = None


async def get_user_settings(store: SQLiteStore = Depends(get_store)) -> UserSettings:
    """Load the saved artist/token settings."""
    return await SettingsRepository(store).load()


def effective_token(user_settings: UserSettings, settings: Settings) -> str | None:
    """Saved token first, then the environment default."""
    return user_settings.token or settings.discogs_token


async def discogs_client_for(token: str | None, settings: Settings) -> DiscogsClient:
    """Shared Discogs client for `token`, rebuilt when the token changes."""
    global _discogs_client

    token = token.strip() if token and token.strip() else None

    if _discogs_client is not None and _discogs_client.token != token:
        logger.info("Discogs token changed, recreating client")
        await _discogs_client.close()
        _discogs_client = None

    if _discogs_client is None:
        _discogs_client = DiscogsClient(
            token=token,
            user_agent=settings.discogs_user_agent,
            timeout=settings.discogs_timeout,
            max_attempts=settings.discogs_max_attempts,
        )
        logger.info(
            f"Discogs client initialized ({'authenticated' if token else 'anonymous'})"
        )

    return _discogs_client


async def get_discogs_client(
    user_settings: UserSettings = Depends(get_user_settings),
    settings: Settings = Depends(get_settings),
) -> DiscogsClient:
    """Get a Discogs client configured with the saved (or default) token."""
    return await discogs_client_for(effective_token(user_settings, settings), settings)


def get_artist_id(user_settings: UserSettings = Depends(get_user_settings)) -> str:
    """The configured artist id.

    Raises:
        ConfigurationError: If no artist has been saved yet
    """
    if not user_settings.artist_id:
        raise ConfigurationError("No artist configured. Save settings first.")
    return user_settings.artist_id


async def get_target_artist(
    artist_id: str = Depends(get_artist_id),
    user_settings: UserSettings = Depends(get_user_settings),
    store: SQLiteStore = Depends(get_store),
    client: DiscogsClient = Depends(get_discogs_client),
) -> TargetArtist:
    """The artist to scan, with the display name looked up if it is missing."""
    if not user_settings.artist_name:
        try:
            artist = await client.get_artist(artist_id)
        except (CreditScannerError, ValidationError) as e:
            logger.warning(f"Could not fetch artist name for ID {artist_id}: {e}")
        else:
            user_settings.artist_name = artist.name
            await SettingsRepository(store).save(user_settings)
            logger.info(f"Fetched artist name: {artist.name} for ID {artist_id}")
    return TargetArtist.create(artist_id, user_settings.artist_name)


async def get_scan_target(artist: TargetArtist = Depends(get_target_artist)) -> TargetArtist:
    """The target artist, required to have a name to match credits against.

    Raises:
        ConfigurationError: If the artist name is unknown and could not be fetched
    """
    if not artist.name_variants:
        raise ConfigurationError(
            f"Artist name for ID {artist.artist_id} is unknown. "
            "Save the artist name in settings or check the Discogs token.",
            details={"artist_id": artist.artist_id},
        )
    return artist


async def close_discogs_client() -> None:
    """Close the Discogs client and its HTTP connection pool."""
    global _discogs_client
    if _discogs_client:
        await _discogs_client.close()
        _discogs_client = None


def get_session_registry() -> SessionRegistry:
    """Get the process-wide registry of running scan sessions."""
    global _session_registry
    if _session_registry is None:
        _session_registry = SessionRegistry()
    return _session_registry


def get_posthog_client(settings: Settings = Depends(get_settings)) -> Posthog | None:
    """Get PostHog client instance.

    Args:
        settings: Application settings

    Returns:
        Optional[Posthog]: PostHog client if configured and enabled, None otherwise
    """
    global _posthog_client

    if not settings.enable_telemetry:
        logger.debug("Telemetry disabled")
        return None

    if not settings.posthog_api_key:
        logger.debug("POSTHOG_API_KEY not set - telemetry disabled")
        return None

    if _posthog_client is None:
        _posthog_client = Posthog(
            project_api_key=settings.posthog_api_key,
            host=settings.posthog_host,
        )
        logger.info(f"PostHog client initialized (host: {settings.posthog_host})")

    return _posthog_client


def flush_posthog() -> None:
    """Flush any buffered PostHog events."""
    global _posthog_client
    if _posthog_client:
        _posthog_client.flush()


def shutdown_posthog() -> None:
    """Shutdown PostHog client gracefully."""
    global _posthog_client
    if _posthog_client:
        _posthog_client.shutdown()
        _posthog_client = None
        logger.info("PostHog client shutdown")
