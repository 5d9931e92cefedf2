"""Attribute credit roles on a Discogs release to the target artist."""

import logging
import re
from collections.abc import Iterable, Mapping

from credits.categories import (
    CATEGORY_SPECS,
    STANDARD_ROLE_DISPLAY,
    SUMMARY_ORDER,
    RoleCategory,
)
from credits.classifier import classify_normalized, normalize_role_text

logger = logging.getLogger(__name__)

RoleMap = dict[RoleCategory, set[str]]

NO_CREDITS = "N/A"

_ROLE_SEPARATORS = re.compile(r"[,;&]+")
_TITLE_WORD = re.compile(r"\w\S*")


def generate_name_variants(artist_name: str | None) -> list[str]:
    """Name forms used to spot the target artist in credit lists.

    "The Weeknd" -> ["the weeknd", "The Weeknd", "weeknd"]
    """
    if not artist_name:
        return []
    name_lower = artist_name.lower()
    variants = [name_lower]
    if artist_name != name_lower:
        variants.append(artist_name)
    if name_lower.startswith("the "):
        variants.append(name_lower[4:])
    return variants


def empty_role_map() -> RoleMap:
    """A role map with an empty set for every category."""
    return {category: set() for category in RoleCategory}


def to_title_case(text: str) -> str:
    return _TITLE_WORD.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


def standardize_role_display(role_text: str, category: RoleCategory) -> str:
    """Display form of a single role fragment.

    Exact normalized matches use the canonical table; otherwise the longest
    standard role of the category contained in the text wins; otherwise the
    original fragment is title-cased.
    """
    normalized = normalize_role_text(role_text)

    if normalized in STANDARD_ROLE_DISPLAY:
        return STANDARD_ROLE_DISPLAY[normalized]

    spec = CATEGORY_SPECS[category]
    for standard_role in sorted(spec.standard_roles, key=len, reverse=True):
        if standard_role.lower() in normalized:
            return standard_role

    return to_title_case(role_text.strip())


def is_target_artist(credit_name: str | None, name_variants: Iterable[str]) -> bool:
    """Substring match of a credit name against the target's name variants.

    "The Weeknd (2)" matches "the weeknd".
    """
    if not credit_name:
        return False
    name_lower = credit_name.lower().strip()
    return any(variant.lower() in name_lower for variant in name_variants if variant)


def _role_texts(credit: Mapping) -> list[str]:
    role = credit.get("role")
    if isinstance(role, list):
        return [r for r in role if isinstance(r, str)]
    if isinstance(role, str) and role:
        return [role]
    return []


def extract_artist_roles(release_data: Mapping | None, name_variants: Iterable[str]) -> RoleMap:
    """Collect the target artist's categorized roles from one release.

    Combines the release's ``credits`` and ``extraartists`` lists, keeps the
    entries whose name matches the target artist, splits compound role
    fields on ``,`` ``;`` ``&`` and classifies every fragment.

    Args:
        release_data: Discogs release detail record (or None)
        name_variants: Output of :func:`generate_name_variants`

    Returns:
        Mapping of every category to the set of display roles found
    """
    roles = empty_role_map()
    if not release_data:
        return roles

    variants = list(name_variants)
    if not variants:
        return roles

    entries = list(release_data.get("credits") or []) + list(release_data.get("extraartists") or [])

    for credit in entries:
        if not isinstance(credit, Mapping) or not is_target_artist(credit.get("name"), variants):
            continue

        for role_text in _role_texts(credit):
            for fragment in _ROLE_SEPARATORS.split(role_text):
                fragment = fragment.strip()
                category = classify_normalized(normalize_role_text(fragment))
                if category is None:
                    continue
                roles[category].add(standardize_role_display(fragment, category))

    return roles


def has_target_artist_credits(release_data: Mapping | None, name_variants: Iterable[str]) -> bool:
    """True if the target artist has at least one categorized role on the release."""
    if not release_data:
        return False
    roles = extract_artist_roles(release_data, name_variants)
    return any(role_set for role_set in roles.values())


def merge_roles(role_maps: Iterable[RoleMap]) -> RoleMap:
    """Union role maps category by category."""
    merged = empty_role_map()
    for role_map in role_maps:
        for category, role_set in role_map.items():
            merged[category].update(role_set)
    return merged


def format_credit_summary(roles: RoleMap) -> str:
    """Summary terms of the non-empty categories, in priority order.

    Returns "N/A" when no category has any role.
    """
    terms = [spec.summary_term for spec in SUMMARY_ORDER if roles.get(spec.category)]
    return ", ".join(terms) if terms else NO_CREDITS
