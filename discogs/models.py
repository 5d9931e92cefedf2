"""Pydantic models for the Discogs API responses the scanner pages through.

Detail records (masters and releases) stay plain dicts: the resolver only
reads a handful of optional keys from them and the credit extractor walks
their ``credits``/``extraartists`` lists directly.
"""

from pydantic import BaseModel, ConfigDict


class Pagination(BaseModel):
    """Pagination block attached to Discogs list endpoints."""

    model_config = ConfigDict(extra="ignore")

    page: int = 1
    pages: int = 0
    per_page: int = 0
    items: int = 0

    @property
    def has_more(self) -> bool:
        return self.pages > 0 and self.page < self.pages


class ArtistReleaseEntry(BaseModel):
    """A single row of ``/artists/{id}/releases``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = "release"
    title: str = ""
    artist: str | None = None
    year: int | str | None = None
    thumb: str | None = None
    role: str | None = None


class ArtistReleasesPage(BaseModel):
    """One page of an artist's release listing."""

    model_config = ConfigDict(extra="ignore")

    pagination: Pagination
    releases: list[ArtistReleaseEntry] = []


class MasterVersion(BaseModel):
    """A single row of ``/masters/{id}/versions``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str | None = None
    released: str | None = None


class MasterVersionsPage(BaseModel):
    """One page of a master's version listing."""

    model_config = ConfigDict(extra="ignore")

    versions: list[MasterVersion] = []


class ArtistDetails(BaseModel):
    """The parts of ``/artists/{id}`` used to configure a scan."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    uri: str | None = None
