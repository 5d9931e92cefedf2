"""Typed access to the stored collection, failure queue and user settings."""

import logging

from pydantic import BaseModel, ValidationError

from catalog.models import FailedItem, ProcessedItem
from storage.store import KeyValueStore

logger = logging.getLogger(__name__)

RELEASES_PREFIX = "releases_"
FAILED_QUEUE_PREFIX = "failedQueue_"
LAST_UPDATED_PREFIX = "lastUpdated_"
HIGHEST_RESOLVED_PREFIX = "highestResolvedId_"
USER_SETTINGS_KEY = "userSettings"


class UserSettings(BaseModel):
    """The artist being scanned and the optional Discogs token."""

    artist_id: str | None = None
    token: str | None = None
    artist_name: str | None = None


class ArtistRepository:
    """Per-artist records: collection, failure queue, last-synced time and highest resolved id."""

    def __init__(self, store: KeyValueStore, artist_id: str):
        self.store = store
        self.artist_id = str(artist_id)

    @property
    def releases_key(self) -> str:
        return f"{RELEASES_PREFIX}{self.artist_id}"

    @property
    def failed_queue_key(self) -> str:
        return f"{FAILED_QUEUE_PREFIX}{self.artist_id}"

    @property
    def last_updated_key(self) -> str:
        return f"{LAST_UPDATED_PREFIX}{self.artist_id}"

    @property
    def highest_resolved_key(self) -> str:
        return f"{HIGHEST_RESOLVED_PREFIX}{self.artist_id}"

    async def load_items(self) -> list[ProcessedItem]:
        raw = await self.store.get(self.releases_key)
        items: list[ProcessedItem] = []
        for record in raw or []:
            try:
                items.append(ProcessedItem.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping corrupt stored item for artist {self.artist_id}: {e}")
        return items

    async def save_items(self, items: list[ProcessedItem]) -> None:
        await self.store.set(self.releases_key, [item.model_dump(mode="json") for item in items])

    async def load_failed_queue(self) -> list[FailedItem]:
        raw = await self.store.get(self.failed_queue_key)
        queue: list[FailedItem] = []
        for record in raw or []:
            try:
                queue.append(FailedItem.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping corrupt failure record for artist {self.artist_id}: {e}")
        return queue

    async def save_failed_queue(self, queue: list[FailedItem]) -> None:
        await self.store.set(self.failed_queue_key, [f.model_dump(mode="json") for f in queue])

    async def get_last_synced(self) -> int | None:
        value = await self.store.get(self.last_updated_key)
        return int(value) if isinstance(value, int | float) else None

    async def set_last_synced(self, timestamp_ms: int) -> None:
        await self.store.set(self.last_updated_key, timestamp_ms)

    async def get_highest_resolved_id(self) -> int | None:
        value = await self.store.get(self.highest_resolved_key)
        return value if isinstance(value, int) else None

    async def raise_highest_resolved_id(self, item_id: int) -> None:
        """Record ``item_id`` unless a higher id is already recorded."""
        current = await self.get_highest_resolved_id()
        if current is None or item_id > current:
            await self.store.set(self.highest_resolved_key, item_id)

    async def clear(self) -> None:
        """Remove every record kept for this artist."""
        await self.store.remove(self.releases_key)
        await self.store.remove(self.last_updated_key)
        await self.store.remove(self.failed_queue_key)
        await self.store.remove(self.highest_resolved_key)
        logger.info(f"Cleared cached data for artist {self.artist_id}")


class SettingsRepository:
    """Global user settings record."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def load(self) -> UserSettings:
        raw = await self.store.get(USER_SETTINGS_KEY)
        if not raw:
            return UserSettings()
        try:
            return UserSettings.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring corrupt stored settings: {e}")
            return UserSettings()

    async def save(self, settings: UserSettings) -> None:
        await self.store.set(USER_SETTINGS_KEY, settings.model_dump(mode="json"))
