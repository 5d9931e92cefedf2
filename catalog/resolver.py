"""Resolve a discography listing entry into a ProcessedItem.

Releases take one fetch. Masters take a progressively deeper walk that stops
as soon as the target artist's credits turn up:

1. the master record itself
2. its key release (``main_release``)
3. only if the key release has no credits for the target artist: up to
   ``max_additional_versions`` other releases of the master, newest first

Only a failure of the top-level fetch fails the item. Key release, version
listing and alternate release failures are logged and the item is built from
whatever was obtained.
"""

import logging
import re
from collections.abc import Mapping, Sequence

from catalog.models import UNKNOWN_LABEL, UNKNOWN_YEAR, CatalogItemStub, ItemKind, ProcessedItem
from core.exceptions import CreditScannerError, ScanCancelledError
from credits.extractor import (
    RoleMap,
    extract_artist_roles,
    format_credit_summary,
    has_target_artist_credits,
    merge_roles,
)
from discogs.client import DiscogsClient
from discogs.models import MasterVersion
from sync.session import ScanSession

logger = logging.getLogger(__name__)

DISCOGS_WEB_BASE = "https://www.discogs.com"
DEFAULT_MAX_ADDITIONAL_VERSIONS = 5

_DISAMBIGUATION_SUFFIX = re.compile(r"\s*\(\d+\)$")


def format_artist_names(artists: Sequence[Mapping] | None) -> str | None:
    """Join artist names, dropping Discogs disambiguation suffixes like "(2)"."""
    if not artists:
        return None
    names = [_DISAMBIGUATION_SUFFIX.sub("", a.get("name", "")).strip() for a in artists]
    joined = ", ".join(n for n in names if n)
    return joined or None


def format_labels(labels: Sequence[Mapping] | None) -> str | None:
    if not labels:
        return None
    names = [label.get("name", "") for label in labels if label.get("name")]
    return " / ".join(names) or None


def first_image_uri(record: Mapping | None) -> str | None:
    if not record:
        return None
    images = record.get("images") or []
    if images and images[0].get("uri"):
        return str(images[0]["uri"])
    return None


def _year(*candidates: object) -> str:
    for candidate in candidates:
        if candidate:
            return str(candidate)
    return UNKNOWN_YEAR


def select_alternate_version_ids(
    versions: Sequence[MasterVersion], key_release_id: int | None, budget: int
) -> list[int]:
    """Pick up to ``budget`` version ids in listing order, skipping the key release."""
    selected: list[int] = []
    for version in versions:
        if len(selected) >= budget:
            break
        if version.id == key_release_id or version.id in selected:
            continue
        selected.append(version.id)
    return selected


class CatalogEntryResolver:
    """Fetches and assembles the detail for one listing entry at a time."""

    def __init__(
        self,
        client: DiscogsClient,
        session: ScanSession,
        max_additional_versions: int = DEFAULT_MAX_ADDITIONAL_VERSIONS,
    ):
        self.client = client
        self.session = session
        self.max_additional_versions = max_additional_versions

    @property
    def name_variants(self) -> tuple[str, ...]:
        return self.session.artist.name_variants

    async def resolve(self, stub: CatalogItemStub) -> ProcessedItem:
        """Resolve one entry.

        Raises:
            DiscogsAPIError: If the top-level master/release fetch fails
            ScanCancelledError: If the session is stopped mid-resolution
        """
        cancel = self.session.cancel
        cancel.raise_if_cancelled(f"before API call for {stub.kind} {stub.id}")

        if stub.is_grouping:
            item = await self._resolve_master(stub)
        else:
            item = await self._resolve_release(stub)

        cancel.raise_if_cancelled(f"after all API fetches for {stub.kind} {stub.id}")
        return item

    async def _resolve_release(self, stub: CatalogItemStub) -> ProcessedItem:
        logger.info(f'Fetching RELEASE ID: {stub.id} ("{stub.title}")')
        release = await self.client.get_release(stub.id, **self.session.request_hooks())
        self.session.record_call("release")

        roles = extract_artist_roles(release, self.name_variants)
        return self._build_release_item(stub, release, roles)

    async def _resolve_master(self, stub: CatalogItemStub) -> ProcessedItem:
        logger.info(f'Fetching MASTER ID: {stub.id} ("{stub.title}")')
        master = await self.client.get_master(stub.id, **self.session.request_hooks())
        self.session.record_call("master")
        self.session.cancel.raise_if_cancelled(f"after master fetch for {stub.id}")

        key_release_id = master.get("main_release")
        key_release: dict | None = None
        if key_release_id:
            logger.info(f"Master {stub.id} has key release {key_release_id}. Fetching its details.")
            await self.session.pause(
                self.session.sub_request_delay, f"before key release fetch for {stub.id}"
            )
            key_release = await self._fetch_optional_release(
                key_release_id, f"key release for master {stub.id}"
            )
        else:
            logger.info(f"Master {stub.id} does not have a key release.")

        alternates: list[dict] = []
        if key_release is not None and has_target_artist_credits(key_release, self.name_variants):
            logger.info(
                f"Key release {key_release_id} for master {stub.id} provided target artist "
                "credits. Not fetching additional versions."
            )
        else:
            logger.info(
                f"Key release ({key_release_id or 'N/A'}) for master {stub.id} lacks target "
                "artist credits or was not fetched. Checking other versions."
            )
            alternates = await self._fetch_alternate_releases(stub.id, key_release_id)

        sources = [r for r in (key_release, *alternates) if r]
        roles = merge_roles(extract_artist_roles(r, self.name_variants) for r in sources)
        if sources and not any(roles.values()):
            logger.info(
                f"Credits still N/A for master {stub.id} after checking {len(sources)} version(s)."
            )

        return self._build_master_item(stub, master, key_release, roles)

    async def _fetch_optional_release(self, release_id: int, purpose: str) -> dict | None:
        """Fetch a release whose failure must not fail the parent item."""
        try:
            release = await self.client.get_release(release_id, **self.session.request_hooks())
        except ScanCancelledError:
            raise
        except CreditScannerError as e:
            logger.warning(f"Failed to fetch {purpose} ({release_id}): {e.message}")
            return None
        self.session.record_call("release")
        return release

    async def _fetch_alternate_releases(
        self, master_id: int, key_release_id: int | None
    ) -> list[dict]:
        budget = self.max_additional_versions
        if budget <= 0:
            return []

        await self.session.pause(
            self.session.sub_request_delay, f"before versions listing for master {master_id}"
        )
        try:
            page = await self.client.list_master_versions(
                master_id,
                per_page=budget * 2 + 5,
                sort="released",
                sort_order="desc",
                **self.session.request_hooks(),
            )
        except ScanCancelledError:
            raise
        except CreditScannerError as e:
            logger.warning(f"Error fetching versions list for master {master_id}: {e.message}")
            return []
        self.session.record_call("versions")

        version_ids = select_alternate_version_ids(page.versions, key_release_id, budget)
        logger.info(
            f"Identified {len(version_ids)} additional version(s) to fetch for master {master_id}."
        )

        releases: list[dict] = []
        for version_id in version_ids:
            await self.session.pause(
                self.session.sub_request_delay, f"before version {version_id} of master {master_id}"
            )
            release = await self._fetch_optional_release(
                version_id, f"additional version for master {master_id}"
            )
            if release is not None:
                releases.append(release)
        return releases

    def _build_release_item(
        self, stub: CatalogItemStub, release: Mapping, roles: RoleMap
    ) -> ProcessedItem:
        artwork = first_image_uri(release) or release.get("thumb") or stub.listed_thumbnail_url
        return ProcessedItem(
            id=stub.id,
            title=release.get("title") or stub.title,
            artist=format_artist_names(release.get("artists")) or stub.listed_artist,
            year=_year(release.get("year"), stub.listed_year),
            label=format_labels(release.get("labels")) or UNKNOWN_LABEL,
            credits=format_credit_summary(roles),
            artwork_url=artwork or "",
            source_url=release.get("uri") or f"{DISCOGS_WEB_BASE}/release/{stub.id}",
            is_grouping=False,
            kind=ItemKind.RELEASE,
            representative_edition_id=None,
        )

    def _build_master_item(
        self,
        stub: CatalogItemStub,
        master: Mapping,
        key_release: Mapping | None,
        roles: RoleMap,
    ) -> ProcessedItem:
        key = key_release or {}
        artwork = (
            first_image_uri(master)
            or first_image_uri(key_release)
            or key.get("thumb")
            or stub.listed_thumbnail_url
        )
        return ProcessedItem(
            id=stub.id,
            title=master.get("title") or key.get("title") or stub.title,
            artist=(
                format_artist_names(master.get("artists"))
                or format_artist_names(key.get("artists"))
                or stub.listed_artist
            ),
            year=_year(master.get("year"), key.get("year"), stub.listed_year),
            label=format_labels(key.get("labels")) or UNKNOWN_LABEL,
            credits=format_credit_summary(roles),
            artwork_url=artwork or "",
            source_url=f"{DISCOGS_WEB_BASE}/master/{stub.id}",
            is_grouping=True,
            kind=ItemKind.MASTER,
            representative_edition_id=key.get("id") if key_release else None,
        )
