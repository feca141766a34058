"""Producing candidate clusters for a user.

Two interchangeable sources: local similarity clustering over the user's
unmapped names, and the AI collaborator over ungrouped products of one
category. Both end in the same suggestion filter.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.config import settings
from product_grouping.grouping.clustering import build_clusters, order_names
from product_grouping.grouping.filtering import filter_suggestions
from product_grouping.grouping.views import count_occurrences, get_unmapped_names
from product_grouping.schemas.grouping import Cluster, ProductCandidate
from product_grouping.services.ai_client import AISuggestionClient
from product_grouping.services.mapping_store import MappingStore

logger = logging.getLogger(__name__)


class SuggestionService:
    """Builds filtered merge suggestions for one user."""

    def __init__(self, db: AsyncSession, ai_client: AISuggestionClient | None = None):
        self.db = db
        self.store = MappingStore(db)
        self.ai_client = ai_client or AISuggestionClient()

    async def local_suggestions(
        self, user_id: UUID, threshold: float | None = None
    ) -> list[Cluster]:
        """Similarity clusters over names that are not in any group yet.

        Names are clustered most-frequent first so the seed of each cluster
        is the variant the user buys most.
        """
        views = await self.store.view(user_id)
        items = await self.store.receipt_repo.line_items_for_user(user_id)
        occurrences = count_occurrences(items)

        observed = list(occurrences) + [v.original_name for v in views]
        unmapped = get_unmapped_names(observed, views)
        clusters = build_clusters(
            order_names(unmapped, occurrences),
            threshold if threshold is not None else settings.cluster_threshold,
        )

        ignored = await self.store.load_ignored_keys(user_id)
        current = {v.original_name: v.mapped_name for v in views}
        kept = filter_suggestions(clusters, ignored, current)
        logger.info(
            "Local suggestions built",
            extra={"unmapped": len(unmapped), "clusters": len(clusters), "kept": len(kept)},
        )
        return kept

    async def ungrouped_candidates(
        self, user_id: UUID, category: str, limit: int | None = None
    ) -> list[ProductCandidate]:
        """Ungrouped products of a category that appear on receipts.

        Rows with a blank group name count as ungrouped unless a global
        mapping groups the same name.

        Sorted by occurrence count (most frequent first) and capped at
        ``limit`` (default ``suggestion_batch_limit``).
        """
        limit = limit or settings.suggestion_batch_limit
        rows = await self.store.mapping_repo.find_ungrouped_in_category(user_id, category)
        grouped = {v.original_name for v in await self.store.view(user_id) if v.is_grouped}
        occurrences = count_occurrences(await self.store.receipt_repo.line_items_for_user(user_id))

        candidates = [
            ProductCandidate(name=name, occurrences=occurrences[name])
            for name in dict.fromkeys(r.original_name for r in rows)
            if occurrences.get(name, 0) > 0 and name not in grouped
        ]
        candidates.sort(key=lambda c: (-c.occurrences, c.name))
        return candidates[:limit]

    async def ai_suggestions(self, user_id: UUID, category: str) -> list[Cluster]:
        """AI clusters for one category, filtered like local ones.

        Product names the model invented (not among the candidates) are
        removed; clusters left with fewer than two members are dropped.
        """
        candidates = await self.ungrouped_candidates(user_id, category)
        if len(candidates) < 2:
            return []

        clusters = await self.ai_client.suggest_groups(category, candidates)
        known = {c.name for c in candidates}
        grounded = []
        for cluster in clusters:
            members = [m for m in cluster.members if m in known]
            if len(members) >= 2:
                grounded.append(cluster.model_copy(update={"members": members}))

        views = await self.store.view(user_id)
        ignored = await self.store.load_ignored_keys(user_id)
        current = {v.original_name: v.mapped_name for v in views}
        kept = filter_suggestions(grounded, ignored, current)
        logger.info(
            "AI suggestions built",
            extra={"category": category, "received": len(clusters), "kept": len(kept)},
        )
        return kept
