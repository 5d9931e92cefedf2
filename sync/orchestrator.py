"""Incremental sync of an artist's discography with a persistent failure queue.

One cycle:

1. retry everything in the failure queue (if any)
2. list catalog entries newer than the watermark (highest known id)
3. resolve them one at a time, pacing requests with the session delay
4. merge successes into the collection, upsert failures into the queue,
   deduplicate and persist

A manual stop is observed at every suspension point. Whatever was resolved
before the stop is kept; entries never reached are queued for the next cycle.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from pydantic import BaseModel, ValidationError

from catalog.dedup import deduplicate
from catalog.models import CatalogItemStub, FailedItem, ItemKind, ProcessedItem, now_ms
from catalog.resolver import DEFAULT_MAX_ADDITIONAL_VERSIONS, CatalogEntryResolver
from core.exceptions import CreditScannerError, ScanCancelledError, SyncInProgressError
from core.sentry import capture_exception
from discogs.client import DiscogsClient
from storage.repository import ArtistRepository
from sync.session import ScanSession, SyncState

logger = logging.getLogger(__name__)

STOPPED_BEFORE_PROCESSING = "Scan stopped before processing item"
FIRST_ITEM_DELAY_S = 0.1
MAIN_ROLE = "Main"


class SyncResult(BaseModel):
    """Summary of one sync cycle."""

    artist_id: str
    retried: int = 0
    retry_succeeded: int = 0
    new_items: int = 0
    succeeded: int = 0
    failed: int = 0
    stopped: bool = False
    total_items: int = 0
    failed_queue_size: int = 0
    last_synced: int | None = None


class RetryResult(BaseModel):
    """Outcome of retrying a single queued entry."""

    id: int
    kind: ItemKind
    succeeded: bool
    item: ProcessedItem | None = None
    failure: FailedItem | None = None


@dataclass
class BatchOutcome:
    successful: list[ProcessedItem] = field(default_factory=list)
    failed: list[FailedItem] = field(default_factory=list)


def merge_items(
    collection: Sequence[ProcessedItem], updates: Iterable[ProcessedItem]
) -> list[ProcessedItem]:
    """Replace items with the same ``(id, is_grouping)`` or append new ones."""
    merged = list(collection)
    index = {item.identity: i for i, item in enumerate(merged)}
    for item in updates:
        position = index.get(item.identity)
        if position is None:
            index[item.identity] = len(merged)
            merged.append(item)
        else:
            merged[position] = item
    return merged


def upsert_failures(
    queue: Sequence[FailedItem], failures: Iterable[FailedItem]
) -> list[FailedItem]:
    """Add failures to the queue; an existing ``(id, kind)`` entry gets the new error and time."""
    merged = list(queue)
    index = {f.identity: i for i, f in enumerate(merged)}
    for failure in failures:
        position = index.get(failure.identity)
        if position is None:
            index[failure.identity] = len(merged)
            merged.append(failure)
        else:
            merged[position] = failure
    return merged


def remove_resolved(
    queue: Sequence[FailedItem], resolved: Iterable[ProcessedItem]
) -> list[FailedItem]:
    """Drop queue entries that now have a resolved item."""
    done = {(item.id, item.kind) for item in resolved}
    return [f for f in queue if f.identity not in done]


def passes_role_filter(stub: CatalogItemStub) -> bool:
    """Main-releases-only filter: keep "Main" entries, masters and entries without a role."""
    return stub.listed_role is None or stub.listed_role == MAIN_ROLE or stub.is_grouping


class SyncOrchestrator:
    """Runs sync cycles for the artist held by ``session``."""

    def __init__(
        self,
        client: DiscogsClient,
        repository: ArtistRepository,
        session: ScanSession,
        *,
        max_additional_versions: int = DEFAULT_MAX_ADDITIONAL_VERSIONS,
        main_releases_only: bool = False,
        page_size: int = 100,
    ):
        self.client = client
        self.repository = repository
        self.session = session
        self.main_releases_only = main_releases_only
        self.page_size = page_size
        self.resolver = CatalogEntryResolver(client, session, max_additional_versions)

    @property
    def artist_id(self) -> str:
        return self.session.artist.artist_id

    async def run_cycle(self) -> SyncResult:
        """Retry the failure queue, then fetch new entries.

        Raises:
            SyncInProgressError: If this session is already running
        """
        session = self.session
        if session.state not in (SyncState.IDLE, SyncState.STOPPED):
            raise SyncInProgressError(f"A sync for artist {self.artist_id} is already running")

        result = SyncResult(artist_id=self.artist_id)
        logger.info(
            f"Starting sync for {session.artist.display_name} "
            f"(delay: {session.request_delay:g}s)"
        )

        try:
            items = await self.repository.load_items()
            queue = await self.repository.load_failed_queue()

            if queue and not session.stopped:
                session.state = SyncState.RETRYING_FAILED
                logger.info(f"Retrying {len(queue)} failed items for artist {self.artist_id}")
                with session.telemetry.track_step("retry_failed"):
                    items, queue = await self.retry_failed(items, queue, result)

            if not session.stopped:
                session.state = SyncState.FETCHING_NEW
                with session.telemetry.track_step("fetch_new"):
                    items, queue = await self.fetch_new(items, queue, result)
        except Exception as e:
            logger.error(f"Sync for artist {self.artist_id} failed: {e}")
            capture_exception(e, {"artist_id": self.artist_id, "state": str(session.state)})
            session.state = SyncState.IDLE
            raise

        result.stopped = session.stopped
        result.total_items = len(items)
        result.failed_queue_size = len(queue)
        result.last_synced = await self.repository.get_last_synced()
        session.state = SyncState.STOPPED if session.stopped else SyncState.IDLE

        logger.info(
            f"Sync finished for artist {self.artist_id}: {result.succeeded} resolved, "
            f"{result.failed} failed, {result.total_items} items"
            f"{' (stopped)' if result.stopped else ''}"
        )
        return result

    async def retry_failed(
        self,
        items: list[ProcessedItem],
        queue: list[FailedItem],
        result: SyncResult,
    ) -> tuple[list[ProcessedItem], list[FailedItem]]:
        """Reprocess every queued entry. Entries that fail again stay queued."""
        to_retry = list(queue)
        outcome = await self.process_items([f.stub for f in to_retry])

        items = deduplicate(merge_items(items, outcome.successful))
        queue = upsert_failures([], outcome.failed)

        result.retried += len(to_retry)
        result.retry_succeeded += len(outcome.successful)
        result.succeeded += len(outcome.successful)
        result.failed += len(outcome.failed)

        if self.session.stopped:
            logger.warning("Retry process stopped by user. Partially processed data handled.")
        else:
            logger.info(
                f"Successfully retried {len(outcome.successful)} items, "
                f"{len(outcome.failed)} still failed."
            )

        await self._persist(items, queue, outcome.successful)
        return items, queue

    async def fetch_new(
        self,
        items: list[ProcessedItem],
        queue: list[FailedItem],
        result: SyncResult,
    ) -> tuple[list[ProcessedItem], list[FailedItem]]:
        """List entries above the watermark, resolve them and persist the merge."""
        highest_resolved = await self.repository.get_highest_resolved_id() or 0
        watermark = max(max((item.id for item in items), default=0), highest_resolved)
        logger.info(f"Highest cached item ID for artist {self.artist_id}: {watermark}")

        queued = {f.identity for f in queue}
        stubs = await self.list_new_items(watermark, exclude=queued)
        if self.session.stopped:
            logger.warning("Sync stopped while listing new items.")
            return items, queue

        if not stubs:
            logger.info(f"No new items to fetch for artist {self.artist_id}.")
            await self.repository.set_last_synced(now_ms())
            return items, queue

        logger.info(f"Found {len(stubs)} new items to fetch for artist {self.artist_id}.")
        result.new_items += len(stubs)

        outcome = await self.process_items(stubs)
        result.succeeded += len(outcome.successful)
        result.failed += len(outcome.failed)

        items = deduplicate(merge_items(items, outcome.successful))
        queue = remove_resolved(upsert_failures(queue, outcome.failed), outcome.successful)

        if self.session.stopped:
            logger.warning("Sync stopped while fetching new items. Partially fetched data processed.")

        await self._persist(items, queue, outcome.successful)

        if not self.session.stopped and outcome.successful:
            await self.repository.set_last_synced(now_ms())
        return items, queue

    async def list_new_items(
        self, watermark: int, exclude: set[tuple[int, ItemKind]] | None = None
    ) -> list[CatalogItemStub]:
        """Page through the artist's listing collecting entries with ``id > watermark``.

        A page failure ends pagination; whatever was collected so far is kept.
        """
        exclude = exclude or set()
        session = self.session
        stubs: list[CatalogItemStub] = []
        page = 1

        while not session.stopped:
            logger.info(f"Fetching artist items page {page} for artist {self.artist_id}")
            try:
                delay = FIRST_ITEM_DELAY_S if page == 1 else session.sub_request_delay
                await session.pause(delay, f"before listing page {page}")
                listing = await self.client.list_artist_releases(
                    self.artist_id,
                    page=page,
                    per_page=self.page_size,
                    **session.request_hooks(),
                )
            except ScanCancelledError as e:
                logger.warning(f"Listing stopped: {e.message}")
                break
            except CreditScannerError as e:
                logger.error(f"Error fetching artist items list (page {page}): {e.message}")
                break
            except ValidationError as e:
                logger.warning(f"Unexpected response structure from artist releases endpoint: {e}")
                break
            session.record_call("listing")

            page_stubs = []
            for entry in listing.releases:
                if entry.id <= watermark:
                    continue
                stub = CatalogItemStub.from_listing(entry)
                if (stub.id, stub.kind) in exclude:
                    continue
                if self.main_releases_only and not passes_role_filter(stub):
                    continue
                page_stubs.append(stub)

            stubs.extend(page_stubs)
            logger.info(
                f"Page {page}: Found {len(page_stubs)} potential new items. "
                f"Total accumulated: {len(stubs)}"
            )

            if not listing.pagination.has_more:
                break
            page += 1

        logger.info(f"Finished listing new items for artist {self.artist_id}. Found {len(stubs)}.")
        return stubs

    async def process_items(self, stubs: Sequence[CatalogItemStub]) -> BatchOutcome:
        """Resolve entries strictly one after another.

        A full request delay precedes every entry except the first of a
        multi-entry batch, which waits briefly. Once a stop is observed, every
        entry not yet started is failed with a stop message.
        """
        outcome = BatchOutcome()
        session = self.session
        total = len(stubs)
        session.items_done = 0
        session.items_total = total

        for index, stub in enumerate(stubs):
            if session.stopped:
                logger.warning(f"Scan stopped. {total - index} items left unprocessed.")
                outcome.failed.extend(
                    FailedItem.from_stub(s, STOPPED_BEFORE_PROCESSING) for s in stubs[index:]
                )
                break

            try:
                if index > 0 or total == 1:
                    await session.pause(session.request_delay, f"before {stub.kind} {stub.id}")
                else:
                    await session.pause(FIRST_ITEM_DELAY_S, f"before {stub.kind} {stub.id}")
                item = await self.resolver.resolve(stub)
            except ScanCancelledError as e:
                logger.warning(f"Processing of {stub.kind} {stub.id} stopped: {e.message}")
                outcome.failed.append(FailedItem.from_stub(stub, e.message))
            except CreditScannerError as e:
                logger.error(f'Error processing {stub.kind} {stub.id} ("{stub.title}"): {e.message}')
                outcome.failed.append(FailedItem.from_stub(stub, e.message))
            except Exception as e:
                logger.error(f'Unexpected error processing {stub.kind} {stub.id} ("{stub.title}"): {e}')
                capture_exception(
                    e, {"artist_id": self.artist_id, "item_id": stub.id, "kind": str(stub.kind)}
                )
                outcome.failed.append(FailedItem.from_stub(stub, str(e) or type(e).__name__))
            else:
                outcome.successful.append(item)
            finally:
                session.items_done = index + 1

        return outcome

    async def retry_single_item(self, item_id: int, kind: ItemKind | str) -> RetryResult | None:
        """Resolve one queued entry outside a full cycle.

        Returns:
            The outcome, or None if the entry is not in the failure queue

        Raises:
            SyncInProgressError: If a cycle is running for this session
        """
        if self.session.state in (SyncState.RETRYING_FAILED, SyncState.FETCHING_NEW):
            raise SyncInProgressError(
                "Full scan in progress. Wait for it or stop it to retry single items."
            )

        kind = ItemKind(kind)
        queue = await self.repository.load_failed_queue()
        target = next((f for f in queue if f.identity == (item_id, kind)), None)
        if target is None:
            logger.info(f"Item {kind} {item_id} not found in failed queue.")
            return None

        logger.info(f"Retrying single {kind} {item_id}: {target.stub.title}")
        self.session.cancel.raise_if_cancelled(f"before retrying {kind} {item_id}")
        outcome = await self.process_items([target.stub])

        items = await self.repository.load_items()
        if outcome.successful:
            item = outcome.successful[0]
            items = deduplicate(merge_items(items, [item]))
            queue = remove_resolved(queue, [item])
            logger.info(f"Successfully retried {kind} {item_id} ({item.title}). Removed from failed queue.")
            retry = RetryResult(id=item_id, kind=kind, succeeded=True, item=item)
        else:
            failure = outcome.failed[0]
            queue = upsert_failures(queue, [failure])
            logger.error(f"Failed to retry {kind} {item_id} ({target.stub.title}): {failure.error}")
            retry = RetryResult(id=item_id, kind=kind, succeeded=False, failure=failure)

        await self._persist(items, queue, outcome.successful)
        return retry

    async def _persist(
        self,
        items: list[ProcessedItem],
        queue: list[FailedItem],
        resolved: Sequence[ProcessedItem] = (),
    ) -> None:
        """Save the collection and queue.

        ``resolved`` raises the stored highest resolved id, which the next
        watermark includes even if deduplication dropped that item.
        """
        with self.session.telemetry.track_step("persist"):
            await self.repository.save_items(items)
            await self.repository.save_failed_queue(queue)
            if resolved:
                await self.repository.raise_highest_resolved_id(max(item.id for item in resolved))
        logger.info(
            f"Persisted {len(items)} items and {len(queue)} queued failures for artist {self.artist_id}"
        )
