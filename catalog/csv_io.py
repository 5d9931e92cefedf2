"""CSV export and import of an artist's discography table."""

import csv
import io
import logging
import re
from collections.abc import Iterable

from catalog.models import UNKNOWN_LABEL, UNKNOWN_YEAR, ItemKind, ProcessedItem
from core.exceptions import CSVImportError

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Artist", "Album Title", "Label", "Year", "Credits", "Artwork URL", "Discogs URL"]

_DISCOGS_URL_ID = re.compile(r"/(master|release)/(\d+)")


def export_filename(artist_name: str | None, artist_id: str | None) -> str:
    """Download name for an export, e.g. "Brian_Eno_production_credits.csv"."""
    if artist_name:
        stem = re.sub(r"\s+", "_", artist_name)
    else:
        stem = artist_id or "unknown_artist"
    return f"{stem}_production_credits.csv"


def export_csv(items: Iterable[ProcessedItem]) -> str:
    """Serialize items in the given order. Every field is quoted."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for item in items:
        writer.writerow(
            [
                item.artist or "",
                item.title,
                item.label,
                item.year,
                item.credits,
                item.artwork_url,
                item.source_url,
            ]
        )
    return output.getvalue()


def _identity_from_url(url: str) -> tuple[int, ItemKind] | None:
    match = _DISCOGS_URL_ID.search(url)
    if not match:
        return None
    return int(match.group(2)), ItemKind(match.group(1))


def parse_csv(content: str) -> list[ProcessedItem]:
    """Parse an exported table back into items.

    Rows whose Discogs URL names a master or release keep that identity;
    other rows get descending negative placeholder ids (-1, -2, ...). When
    an identity repeats, the last row wins and keeps the first row's position.

    Raises:
        CSVImportError: If there is no data row or the header does not match
    """
    rows = list(csv.reader(io.StringIO(content.strip())))
    if len(rows) < 2:
        raise CSVImportError("CSV file must contain a header row and at least one data row.")

    header, *data_rows = rows
    if header != CSV_HEADERS:
        logger.error(
            f"CSV headers do not match. Expected: {', '.join(CSV_HEADERS)}. "
            f"Found: {', '.join(header)}"
        )
        raise CSVImportError(
            "File headers do not match the expected format.",
            details={"expected": CSV_HEADERS, "found": header},
        )

    items: list[ProcessedItem] = []
    positions: dict[tuple[int, bool], int] = {}
    next_placeholder = -1
    for line_number, row in enumerate(data_rows, start=2):
        if not row or all(not field.strip() for field in row):
            continue
        if len(row) != len(CSV_HEADERS):
            logger.warning(
                f"CSV row {line_number} has {len(row)} columns, expected "
                f"{len(CSV_HEADERS)}. Skipping row."
            )
            continue

        artist, title, label, year, credits, artwork_url, source_url = row
        identity = _identity_from_url(source_url)
        if identity is None:
            item_id, kind = next_placeholder, ItemKind.RELEASE
            next_placeholder -= 1
        else:
            item_id, kind = identity

        item = ProcessedItem(
            id=item_id,
            title=title,
            artist=artist or None,
            year=year or UNKNOWN_YEAR,
            label=label or UNKNOWN_LABEL,
            credits=credits or "N/A",
            artwork_url=artwork_url,
            source_url=source_url,
            is_grouping=kind == ItemKind.MASTER,
            kind=kind,
        )
        position = positions.get(item.identity)
        if position is None:
            positions[item.identity] = len(items)
            items.append(item)
        else:
            logger.warning(
                f"CSV row {line_number} repeats {kind.value} {item_id}. "
                "Replacing the earlier row."
            )
            items[position] = item

    logger.info(f"{len(items)} items parsed from CSV")
    return items
