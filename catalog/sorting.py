"""Column sorting for the discography table."""

import math
from collections.abc import Iterable
from enum import StrEnum

from catalog.models import ProcessedItem


class SortColumn(StrEnum):
    ARTIST = "artist"
    TITLE = "title"
    LABEL = "label"
    YEAR = "year"
    CREDITS = "credits"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


def _year_value(year: str | None) -> float:
    try:
        return float(int(str(year).strip()))
    except (TypeError, ValueError):
        return math.nan


def sort_items(
    items: Iterable[ProcessedItem],
    column: SortColumn | str | None,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[ProcessedItem]:
    """Return the items ordered by one table column.

    Years compare numerically and unparseable years ("Unknown") go last in
    both directions. Other columns compare case-insensitively. With no column
    the stored order is returned. The sort is stable.
    """
    items = list(items)
    if not column:
        return items

    column = SortColumn(column)
    reverse = SortDirection(direction) == SortDirection.DESC

    if column == SortColumn.YEAR:
        known = [item for item in items if not math.isnan(_year_value(item.year))]
        unknown = [item for item in items if math.isnan(_year_value(item.year))]
        known.sort(key=lambda item: _year_value(item.year), reverse=reverse)
        return known + unknown

    field = column.value
    return sorted(items, key=lambda item: (getattr(item, field) or "").lower(), reverse=reverse)
