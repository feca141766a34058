"""Category taxonomy and effective-category resolution.

Precedence for a product's effective category: a user's override on a
global mapping, then the category stored on the mapping, then the category
the extraction model put on the receipt line item.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from product_grouping.schemas.grouping import CategoryStatus

# Category key -> display label.
CATEGORIES: dict[str, str] = {
    "mejeri": "Mejeri",
    "frukt_gront": "Frukt & grönt",
    "brod_bageri": "Bröd & bageri",
    "kott_fagel_chark": "Kött, fågel & chark",
    "fisk_skaldjur": "Fisk & skaldjur",
    "drycker": "Drycker",
    "skafferi": "Skafferi",
    "frysvaror": "Frysvaror",
    "godis_snacks": "Godis & snacks",
    "hushall_hygien": "Hushåll & hygien",
    "pant": "Pant",
    "other": "Övrigt",
}


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None


def category_key(value: str | None) -> str | None:
    """Map a category key or display label (any case) to its key."""
    text = _clean(value)
    if text is None:
        return None
    lowered = text.lower()
    for key, label in CATEGORIES.items():
        if lowered == key or lowered == label.lower():
            return key
    return None


def is_corrupted_category(value: str | None) -> bool:
    """Several categories joined into one field, e.g. "Mejeri, Drycker"."""
    return bool(value) and "," in value


def propose_category_fix(value: str | None) -> str | None:
    """Suggest a repair for a corrupted category: its first part, if known."""
    if not value:
        return None
    return category_key(value.split(",")[0])


def effective_category(product: Any = None, mapping: Any = None, override: Any = None) -> str | None:
    """Category to display for a product.

    Args:
        product: Receipt line item (``.category``) or None
        mapping: User or global mapping (``.category``) or None
        override: UserGlobalOverride (``.override_category``) or None
    """
    if override is not None:
        overridden = _clean(override.override_category)
        if overridden:
            return overridden
    if mapping is not None:
        declared = _clean(mapping.category)
        if declared:
            return declared
    if product is not None:
        return _clean(product.category)
    return None


def resolve_effective_category(global_mapping: Any, override: Any = None) -> str | None:
    """Effective category of a global mapping for one user."""
    if override is not None:
        return override.override_category
    return global_mapping.category


def group_category_status(categories: Iterable[str | None]) -> CategoryStatus:
    """Summarize the categories of a set of products.

    Null and blank categories are ignored. ``common`` is set only when
    exactly one distinct category remains.
    """
    distinct: list[str] = []
    for category in categories:
        cleaned = _clean(category)
        if cleaned and cleaned not in distinct:
            distinct.append(cleaned)

    return CategoryStatus(
        common=distinct[0] if len(distinct) == 1 else None,
        distinct=distinct,
        mixed=len(distinct) > 1,
    )


def most_common_category(categories: Iterable[str | None]) -> str | None:
    """Most frequent non-null category (first seen wins ties)."""
    counts: dict[str, int] = {}
    for category in categories:
        cleaned = _clean(category)
        if cleaned:
            counts[cleaned] = counts.get(cleaned, 0) + 1
    if not counts:
        return None
    return max(counts, key=lambda c: counts[c])
