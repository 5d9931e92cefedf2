"""Models for an artist's scanned discography."""

import time
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from discogs.models import ArtistReleaseEntry

UNKNOWN_YEAR = "Unknown"
UNKNOWN_LABEL = "Unknown Label"


class ItemKind(StrEnum):
    """Discogs listing type: a master groups the releases (editions) of one work."""

    MASTER = "master"
    RELEASE = "release"


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class CatalogItemStub(BaseModel):
    """Minimal listing data for one entry of an artist's discography."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str = ""
    kind: ItemKind = ItemKind.RELEASE
    listed_artist: str | None = None
    listed_year: str | None = None
    listed_thumbnail_url: str | None = None
    listed_role: str | None = None

    @property
    def is_grouping(self) -> bool:
        return self.kind == ItemKind.MASTER

    @classmethod
    def from_listing(cls, entry: ArtistReleaseEntry) -> "CatalogItemStub":
        kind = ItemKind.MASTER if entry.type == ItemKind.MASTER else ItemKind.RELEASE
        return cls(
            id=entry.id,
            title=entry.title,
            kind=kind,
            listed_artist=entry.artist,
            listed_year=str(entry.year) if entry.year else None,
            listed_thumbnail_url=entry.thumb or None,
            listed_role=entry.role,
        )


class ProcessedItem(BaseModel):
    """A resolved discography row as shown in the table and stored per artist.

    Identity is the ``(id, is_grouping)`` pair: a master and a release are
    tracked separately even if their numeric ids coincide.
    """

    id: int
    title: str
    artist: str | None = None
    year: str = UNKNOWN_YEAR
    label: str = UNKNOWN_LABEL
    credits: str = "N/A"
    artwork_url: str = ""
    source_url: str = ""
    is_grouping: bool = False
    kind: ItemKind = ItemKind.RELEASE
    representative_edition_id: int | None = None

    @property
    def identity(self) -> tuple[int, bool]:
        return (self.id, self.is_grouping)


class FailedItem(BaseModel):
    """A catalog entry whose last resolution attempt failed."""

    stub: CatalogItemStub
    error: str
    timestamp: int

    @property
    def id(self) -> int:
        return self.stub.id

    @property
    def kind(self) -> ItemKind:
        return self.stub.kind

    @property
    def identity(self) -> tuple[int, ItemKind]:
        return (self.stub.id, self.stub.kind)

    @classmethod
    def from_stub(cls, stub: CatalogItemStub, error: str) -> "FailedItem":
        return cls(stub=stub, error=error, timestamp=now_ms())


class ItemsResponse(BaseModel):
    """Response for the discography table."""

    artist_id: str
    items: list[ProcessedItem] = []
    total: int = 0
    last_synced: int | None = None
    sort: str | None = None
    direction: str = "asc"


class FailedItemsResponse(BaseModel):
    """Response for the failure queue panel."""

    artist_id: str
    failed: list[FailedItem] = []
    total: int = 0
