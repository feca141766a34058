"""Greedy single-pass clustering of unmapped product names.

The result depends on input order, so callers pass names in a stable order
(see ``order_names``). Names that are already mapped must be filtered out
before clustering; this module does not look at stored mappings.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from product_grouping.grouping.similarity import similarity
from product_grouping.schemas.grouping import Cluster

DEFAULT_THRESHOLD = 0.6


def order_names(
    names: Iterable[str], occurrences: Mapping[str, int] | None = None
) -> list[str]:
    """Stable ordering for clustering.

    Alphabetical by default; most frequent first (ties alphabetical) when
    occurrence counts are given.
    """
    unique = set(names)
    if occurrences is None:
        return sorted(unique)
    return sorted(unique, key=lambda n: (-occurrences.get(n, 0), n))


def cluster_score(member_count: int) -> float:
    """Coarse confidence heuristic: 0.9 for three or more members, else 0.7."""
    return 0.9 if member_count > 2 else 0.7


def build_clusters(names: Iterable[str], threshold: float = DEFAULT_THRESHOLD) -> list[Cluster]:
    """Group near-duplicate names into candidate clusters.

    Each not-yet-clustered name seeds a cluster and absorbs every later
    unclustered name whose similarity to the seed reaches ``threshold``.
    Singletons are dropped. The suggested name is the shortest member, the
    first one on ties. Blank names and repeats are ignored.

    This is O(n^2) in the number of names and pure, so it can be recomputed
    from scratch on every call.
    """
    candidates = [n for n in dict.fromkeys(names) if n and n.strip()]
    processed: set[str] = set()
    clusters: list[Cluster] = []

    for i, seed in enumerate(candidates):
        if seed in processed:
            continue

        members = [seed]
        for other in candidates[i + 1:]:
            if other in processed:
                continue
            if similarity(seed, other) >= threshold:
                members.append(other)
                processed.add(other)

        if len(members) < 2:
            continue

        processed.add(seed)
        suggested = min(members, key=len)
        clusters.append(
            Cluster(
                members=members,
                suggested_name=suggested,
                score=cluster_score(len(members)),
            )
        )

    return clusters
