"""User settings router: the artist to scan and the optional Discogs token."""

import logging
import re

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, ValidationError

from config.settings import Settings, get_settings
from core.dependencies import (
    discogs_client_for,
    effective_token,
    get_session_registry,
    get_store,
    get_user_settings,
)
from core.exceptions import ConfigurationError, CreditScannerError, SyncInProgressError
from storage.repository import SettingsRepository, UserSettings
from storage.store import KeyValueStore
from sync.registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])

_ARTIST_ID = re.compile(r"^(?:\d+|\[a(\d+)\])$")


def parse_artist_id(raw: str | int | None) -> str:
    """Accept a bare numeric id ("12345") or Discogs link markup ("[a12345]").

    Raises:
        ConfigurationError: For anything else
    """
    text = str(raw).strip() if raw is not None else ""
    match = _ARTIST_ID.match(text)
    if not match:
        raise ConfigurationError(
            "Invalid Artist ID format. Please use a numeric ID (e.g., 12345) "
            "or Discogs format (e.g., [a12345]).",
            details={"artist_id": text},
        )
    return match.group(1) or text


class SettingsUpdate(BaseModel):
    """Request body for saving settings."""

    artist_id: str = Field(..., description="Discogs artist id, e.g. 12345 or [a12345]")
    token: str | None = Field(None, description="Optional Discogs personal access token")


class SettingsResponse(BaseModel):
    """Saved settings. The token itself is never returned."""

    artist_id: str | None = None
    artist_name: str | None = None
    has_token: bool = False
    request_delay_s: float


def _to_response(user_settings: UserSettings, settings: Settings) -> SettingsResponse:
    token = effective_token(user_settings, settings)
    return SettingsResponse(
        artist_id=user_settings.artist_id,
        artist_name=user_settings.artist_name,
        has_token=bool(token and token.strip()),
        request_delay_s=settings.request_delay_seconds(token),
    )


@router.get("", response_model=SettingsResponse, summary="Get saved settings")
async def read_settings(
    user_settings: UserSettings = Depends(get_user_settings),
    settings: Settings = Depends(get_settings),
):
    """Return the saved artist and whether a token is configured."""
    return _to_response(user_settings, settings)


@router.put(
    "",
    response_model=SettingsResponse,
    summary="Save settings",
    responses={
        200: {"description": "Settings saved"},
        400: {"description": "Invalid artist id"},
        409: {"description": "A sync is running for the current artist"},
    },
)
async def save_settings(
    update: SettingsUpdate,
    store: KeyValueStore = Depends(get_store),
    current: UserSettings = Depends(get_user_settings),
    settings: Settings = Depends(get_settings),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Save the artist id and token, then look up the artist's display name.

    A failed name lookup is not an error: the settings are saved without a
    name and credits can then not be attributed until it is resolved.
    """
    artist_id = parse_artist_id(update.artist_id)

    if current.artist_id and registry.is_running(current.artist_id):
        raise SyncInProgressError("Stop the running sync before changing settings")

    token = update.token.strip() if update.token and update.token.strip() else None
    user_settings = UserSettings(artist_id=artist_id, token=token)

    client = await discogs_client_for(effective_token(user_settings, settings), settings)
    try:
        artist = await client.get_artist(artist_id)
        user_settings.artist_name = artist.name
        logger.info(f"Fetched artist name: {artist.name} for ID {artist_id}")
    except (CreditScannerError, ValidationError) as e:
        logger.warning(f"Could not fetch artist name for ID {artist_id}: {e}")

    await SettingsRepository(store).save(user_settings)
    logger.info(f"Settings saved for artist {artist_id}")
    return _to_response(user_settings, settings)
