"""Free-text credit role classification."""

import re

from credits.categories import ABBREVIATIONS, CATEGORY_TABLE, RoleCategory

_BRACKETED = re.compile(r"\[.*?\]")
_PARENTHETICAL = re.compile(r"\(.*?\)")
_PUNCTUATION = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")

_ABBREVIATION_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(rf"\b{re.escape(abbrev)}\b"), full) for abbrev, full in ABBREVIATIONS.items()
)


def normalize_role_text(role_text: object) -> str:
    """Normalize a raw Discogs role string for matching.

    Lowercases, drops ``[...]`` and ``(...)`` qualifiers, turns punctuation
    (other than hyphens) into spaces, collapses whitespace and expands known
    abbreviations ("prod" -> "producer", "eng" -> "engineer", ...).

    Returns an empty string for empty or non-string input.
    """
    if not isinstance(role_text, str) or not role_text:
        return ""

    cleaned = role_text.lower()
    cleaned = _BRACKETED.sub("", cleaned)
    cleaned = _PARENTHETICAL.sub("", cleaned)
    cleaned = _PUNCTUATION.sub(" ", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()

    for pattern, full in _ABBREVIATION_PATTERNS:
        cleaned = pattern.sub(full, cleaned)

    return cleaned


def classify_normalized(normalized_role: str) -> RoleCategory | None:
    """Classify text that has already been through :func:`normalize_role_text`."""
    if not normalized_role:
        return None
    for spec in CATEGORY_TABLE:
        if spec.matches(normalized_role):
            return spec.category
    return RoleCategory.OTHER


def classify_role(role_text: object) -> RoleCategory | None:
    """Map a raw role string to a credit category.

    Categories are tested in ``CATEGORY_TABLE`` order so that specific
    vocabulary wins over generic substrings ("Remix" is a remix credit even
    though it contains "mix"). Anything unrecognized lands in ``OTHER``.

    Compound strings such as "Producer, Mixed By" are not split here; the
    extractor splits them before classifying each fragment.

    Returns:
        The matching category, or None for empty / non-string input
    """
    return classify_normalized(normalize_role_text(role_text))
