"""Suppression of suggestions the user has already dealt with."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from product_grouping.schemas.grouping import Cluster, suggestion_key


def ignored_key_index(products_lists: Iterable[Iterable[str]]) -> frozenset[str]:
    """Build the immutable lookup of ignored cluster keys."""
    return frozenset(suggestion_key(list(products)) for products in products_lists)


def would_change(cluster: Cluster, current_groups: Mapping[str, str | None]) -> bool:
    """True if applying the cluster changes at least one member's group."""
    target = cluster.suggested_name
    for member in cluster.members:
        current = current_groups.get(member)
        if not current or not current.strip() or current != target:
            return True
    return False


def filter_suggestions(
    clusters: Iterable[Cluster],
    ignored_keys: frozenset[str] | set[str],
    current_groups: Mapping[str, str | None] | None = None,
) -> list[Cluster]:
    """Drop ignored clusters and clusters that are already fully applied.

    Args:
        clusters: Candidate clusters from similarity matching or the AI source
        ignored_keys: Keys of dismissed suggestions (see ``suggestion_key``)
        current_groups: original_name -> mapped_name for the user's view

    Returns:
        Remaining clusters in their original order
    """
    current_groups = current_groups or {}
    kept = []
    for cluster in clusters:
        if cluster.key in ignored_keys:
            continue
        if not would_change(cluster, current_groups):
            continue
        kept.append(cluster)
    return kept
