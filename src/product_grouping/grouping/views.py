"""Derived, read-only views over the mapping layers.

Everything here is pure: the store loads rows and receipt line items, and
these functions combine them into what a user actually sees.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any
from uuid import UUID

from product_grouping.grouping.categories import (
    effective_category,
    group_category_status,
    most_common_category,
)
from product_grouping.schemas.grouping import (
    GroupingStats,
    MappingScope,
    MappingView,
    ProductGroup,
)
from product_grouping.schemas.internal import ReceiptLineItem


def _has_group(mapped_name: str | None) -> bool:
    return bool(mapped_name and mapped_name.strip())


def get_unmapped_names(observed_names: Iterable[str], existing_mappings: Iterable[Any]) -> list[str]:
    """Names with no grouping mapping, by exact (case-sensitive) equality.

    A row whose ``mapped_name`` is null or blank does not count as a mapping.
    Order of first appearance is kept; repeats are dropped.
    """
    mapped = {m.original_name for m in existing_mappings if _has_group(m.mapped_name)}
    return [name for name in dict.fromkeys(observed_names) if name not in mapped]


def count_occurrences(line_items: Iterable[ReceiptLineItem]) -> dict[str, int]:
    """Number of receipt line items per product name."""
    counts: dict[str, int] = {}
    for item in line_items:
        counts[item.name] = counts.get(item.name, 0) + 1
    return counts


def _pick(rows: list[Any]) -> Any:
    # Duplicates: a grouped row beats an ungrouped one, then the newest wins.
    return max(rows, key=lambda r: (_has_group(r.mapped_name), r.updated_at))


def _dedupe(rows: Iterable[Any]) -> dict[str, Any]:
    by_name: dict[str, list[Any]] = {}
    for row in rows:
        by_name.setdefault(row.original_name, []).append(row)
    return {name: _pick(candidates) for name, candidates in by_name.items()}


def resolve_view(
    user_rows: Iterable[Any],
    global_rows: Iterable[Any],
    overrides: Mapping[UUID, Any] | None = None,
) -> list[MappingView]:
    """Combine user and global mappings into one row per original name.

    The user's own grouped mapping wins over a global one with the same
    original name. A user row with a blank ``mapped_name`` is not a mapping:
    when a global row exists for that name the global row is shown, and the
    user row's category is used only if the global row has none.

    Args:
        user_rows: ProductMapping rows of one user
        global_rows: GlobalProductMapping rows
        overrides: global_mapping_id -> UserGlobalOverride for that user
    """
    overrides = overrides or {}
    user = _dedupe(user_rows)
    shared = _dedupe(global_rows)

    views: list[MappingView] = []
    for name, row in user.items():
        if name in shared and not _has_group(row.mapped_name):
            continue
        views.append(
            MappingView(
                id=row.id,
                scope=MappingScope.USER,
                original_name=name,
                mapped_name=row.mapped_name,
                category=effective_category(mapping=row),
                declared_category=row.category,
            )
        )
    for name, row in shared.items():
        own = user.get(name)
        if own is not None and _has_group(own.mapped_name):
            continue
        override = overrides.get(row.id)
        category = effective_category(mapping=row, override=override)
        if category is None and own is not None:
            category = effective_category(mapping=own)
        views.append(
            MappingView(
                id=row.id,
                scope=MappingScope.GLOBAL,
                original_name=name,
                mapped_name=row.mapped_name,
                category=category,
                declared_category=row.category,
                has_override=override is not None,
            )
        )

    views.sort(key=lambda v: v.original_name)
    return views


def build_product_groups(
    views: Iterable[MappingView], line_items: Iterable[ReceiptLineItem] = ()
) -> list[ProductGroup]:
    """Group resolved mappings by canonical name, sorted by name.

    Degenerate rows (blank ``mapped_name``) are ungrouped and never form a
    group named "".
    """
    members_by_group: dict[str, list[MappingView]] = {}
    for view in views:
        if not view.is_grouped:
            continue
        members_by_group.setdefault(view.mapped_name, []).append(view)

    items_by_name: dict[str, list[ReceiptLineItem]] = {}
    for item in line_items:
        items_by_name.setdefault(item.name, []).append(item)

    groups = []
    for name in sorted(members_by_group):
        members = members_by_group[name]
        scopes = {m.scope for m in members}
        if scopes == {MappingScope.USER}:
            source = "user"
        elif scopes == {MappingScope.GLOBAL}:
            source = "global"
        else:
            source = "mixed"

        purchases = [i for m in members for i in items_by_name.get(m.original_name, [])]
        declared = group_category_status(m.category for m in members)
        observed = group_category_status(i.category for i in purchases)

        groups.append(
            ProductGroup(
                name=name,
                members=[m.original_name for m in members],
                refs=[m.ref for m in members],
                declared_categories=declared.distinct,
                observed_categories=observed.distinct,
                category_status=declared,
                source=source,
                purchase_count=len(purchases),
                total_spend=sum((i.price for i in purchases), Decimal("0")),
            )
        )
    return groups


def grouping_stats(
    views: Iterable[MappingView],
    groups: Iterable[ProductGroup],
    observed_names: Iterable[str] = (),
) -> GroupingStats:
    """Counters for the product management screen.

    Products are every name seen on a receipt or in a mapping.
    """
    views = list(views)
    groups = list(groups)
    grouped = {v.original_name for v in views if v.is_grouped}
    products = set(observed_names) | {v.original_name for v in views}

    total = len(products)
    ungrouped = len(products - grouped)
    global_groups = sum(1 for g in groups if g.source == "global")

    return GroupingStats(
        total_products=total,
        ungrouped=ungrouped,
        ungrouped_percentage=round(ungrouped / total * 100) if total else 0,
        total_groups=len(groups),
        global_groups=global_groups,
        personal_groups=len(groups) - global_groups,
    )


def suggest_merge_defaults(products: Iterable[Any]) -> tuple[str | None, str | None]:
    """Pre-fill values for a manual merge dialog.

    Args:
        products: Selected rows (anything with ``original_name``,
            ``mapped_name`` and ``category``)

    Returns:
        (name, category): the first existing group name, else the shortest
        original name; and the most common non-null category.
    """
    products = list(products)
    if not products:
        return None, None

    name = next((p.mapped_name for p in products if _has_group(p.mapped_name)), None)
    if name is None:
        name = min((p.original_name for p in products), key=len)
    return name, most_common_category(p.category for p in products)
