"""Remove releases already represented by a master in the same collection."""

import logging
from collections.abc import Iterable

from catalog.models import ProcessedItem

logger = logging.getLogger(__name__)


def deduplicate(items: Iterable[ProcessedItem]) -> list[ProcessedItem]:
    """Masters first, then releases, dropping releases a master already covers.

    A release is covered when its id is some master's
    ``representative_edition_id``. Relative order within each group is kept,
    so applying this twice gives the same result as applying it once.
    """
    items = list(items)
    masters = [item for item in items if item.is_grouping]
    releases = [item for item in items if not item.is_grouping]

    covered = {
        m.representative_edition_id for m in masters if m.representative_edition_id is not None
    }
    kept = [r for r in releases if r.id not in covered]

    dropped = len(releases) - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped} release(s) represented by a master")

    return masters + kept
