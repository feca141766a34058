"""Applying merge decisions to the mapping store.

Every operation here writes row by row through ``run_batch``: a member that
fails is reported in the BatchResult and does not undo the members already
written.
"""

import asyncio
import logging
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.core.errors import get_error
from product_grouping.core.exceptions import (
    CategoryRequiredError,
    GroupingError,
    InvalidMergeError,
)
from product_grouping.grouping.categories import group_category_status
from product_grouping.grouping.views import suggest_merge_defaults
from product_grouping.models.product_mapping import ProductMapping
from product_grouping.schemas.grouping import (
    BatchResult,
    Cluster,
    ClusterDecision,
    GlobalMappingRef,
    MappingRef,
    MappingScope,
    RowFailure,
    UserMappingRef,
)
from product_grouping.services.batch import CREATED, UPDATED, BatchRow, run_batch
from product_grouping.services.mapping_store import MappingStore

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class MergeOrchestrator:
    """Writes accepted clusters, merges and manual regroupings."""

    def __init__(self, db: AsyncSession, is_admin: bool = False):
        self.db = db
        self.store = MappingStore(db, is_admin=is_admin)

    async def accept_cluster(
        self,
        user_id: UUID,
        cluster: Cluster,
        final_name: str | None = None,
        category: str | None = None,
        target_existing_group: str | None = None,
        excluded_members: Iterable[str] = (),
        cancel: asyncio.Event | None = None,
    ) -> BatchResult:
        """Map the cluster's members (minus exclusions) to one group.

        The group name is ``target_existing_group``, else ``final_name``,
        else the cluster's suggested name. When no category is given, the
        members' receipt categories decide: one shared category becomes the
        default, several distinct ones make the call fail.

        Members with existing user rows have all of those rows updated;
        members without one get a new row.

        Raises:
            InvalidMergeError: No members left after exclusions, or no name
            CategoryRequiredError: Mixed categories and no category given
        """
        excluded = set(excluded_members)
        members = [m for m in dict.fromkeys(cluster.members) if m not in excluded]
        if not members:
            raise InvalidMergeError(details={"reason": "no_members"})

        target = (
            _clean(target_existing_group)
            or _clean(final_name)
            or _clean(cluster.suggested_name)
        )
        if target is None:
            raise InvalidMergeError(details={"field": "final_name"})

        category = _clean(category)
        if category is None:
            items = await self.store.receipt_repo.line_items_for_user(user_id)
            included = set(members)
            status = group_category_status(i.category for i in items if i.name in included)
            if status.mixed:
                raise CategoryRequiredError(details={"categories": status.distinct})
            category = status.common

        rows = [self._accept_row(user_id, name, target, category) for name in members]
        result = await run_batch(self.db, "accept_cluster", rows, cancel)
        logger.info(
            "Cluster accepted",
            extra={"source": cluster.source, "members": len(members), "excluded": len(excluded)},
        )
        return result

    def _accept_row(
        self, user_id: UUID, name: str, target: str, category: str | None
    ) -> BatchRow:
        async def action() -> str:
            values = {"mapped_name": target}
            if category is not None:
                values["category"] = category
            existing = await self.store.mapping_repo.find_by_original_name(user_id, name)
            if existing:
                await self.store.mapping_repo.set_fields_by_original_name(user_id, name, **values)
                return UPDATED
            await self.store.mapping_repo.create(
                ProductMapping(
                    user_id=user_id,
                    original_name=name,
                    mapped_name=target,
                    category=category,
                )
            )
            return CREATED

        return BatchRow(name=name, scope=MappingScope.USER, action=action)

    async def accept_clusters(
        self,
        user_id: UUID,
        decisions: list[ClusterDecision],
        cancel: asyncio.Event | None = None,
    ) -> list[BatchResult]:
        """Accept several clusters; one rejected cluster does not stop the rest."""
        results = []
        for decision in decisions:
            try:
                result = await self.accept_cluster(
                    user_id,
                    decision.cluster,
                    final_name=decision.final_name,
                    category=decision.category,
                    target_existing_group=decision.target_existing_group,
                    excluded_members=decision.excluded_members,
                    cancel=cancel,
                )
            except (CategoryRequiredError, InvalidMergeError) as e:
                result = _rejected("accept_cluster", decision.cluster.members, e)
            results.append(result)
        return results

    async def ignore_cluster(self, user_id: UUID, cluster: Cluster) -> bool:
        """Dismiss a cluster so it is not suggested again.

        Idempotent: dismissing the same member set twice succeeds.

        Returns:
            True if a new record was written, False if it already existed
        """
        if await self.store.ignored_repo.exists(user_id, cluster.key):
            return False
        try:
            await self.store.ignored_repo.add(user_id, cluster.members)
        except IntegrityError:
            # Concurrent dismissal of the same set.
            await self.db.rollback()
            return False
        logger.info("Suggestion ignored", extra={"members": len(set(cluster.members))})
        return True

    async def merge_groups(
        self,
        user_id: UUID,
        group_names: list[str],
        new_name: str,
        cancel: asyncio.Event | None = None,
    ) -> BatchResult:
        """Move every row of the given groups into ``new_name``.

        Global rows are included only when the caller may write them.

        Raises:
            InvalidMergeError: Fewer than two distinct groups, or empty name
        """
        names = list(dict.fromkeys(n for n in group_names if n and n.strip()))
        if len(names) < 2:
            raise InvalidMergeError(details={"reason": "too_few_groups"})
        new_name = _clean(new_name)
        if new_name is None:
            raise InvalidMergeError(details={"field": "new_name"})

        refs: list[tuple[MappingRef, str]] = []
        for row in await self.store.mapping_repo.find_by_mapped_names(user_id, names):
            refs.append((UserMappingRef(id=row.id), row.original_name))
        if self.store.can_write_global:
            for row in await self.store.global_repo.find_by_mapped_names(names):
                refs.append((GlobalMappingRef(id=row.id), row.original_name))

        rows = [self._write_row(user_id, ref, name, mapped_name=new_name) for ref, name in refs]
        return await run_batch(self.db, "merge_groups", rows, cancel)

    async def manual_merge(
        self,
        user_id: UUID,
        refs: list[MappingRef],
        mapped_name: str,
        category: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> BatchResult:
        """Put hand-picked user and global rows into one group.

        Each row is written in its own table. The category is applied only
        when given; otherwise existing categories stay as they are.

        Raises:
            InvalidMergeError: Fewer than two rows, or empty name
        """
        unique_refs = list(dict.fromkeys(refs))
        if len(unique_refs) < 2:
            raise InvalidMergeError(details={"reason": "too_few_products"})
        mapped_name = _clean(mapped_name)
        if mapped_name is None:
            raise InvalidMergeError(details={"field": "mapped_name"})

        values = {"mapped_name": mapped_name}
        category = _clean(category)
        if category is not None:
            values["category"] = category

        names = await self.store.describe_refs(user_id, unique_refs)
        rows = [
            self._write_row(user_id, ref, names.get(ref.id, str(ref.id)), **values)
            for ref in unique_refs
        ]
        return await run_batch(self.db, "manual_merge", rows, cancel)

    async def assign_to_group(
        self, user_id: UUID, target: MappingRef | str, group_name: str
    ) -> str:
        """Assign one product to a group.

        Args:
            target: A raw product name, or a reference to an existing row

        Returns:
            "created" for a new user mapping, "updated" otherwise
        """
        group_name = _clean(group_name)
        if group_name is None:
            raise InvalidMergeError(details={"field": "group_name"})
        if not isinstance(target, str):
            return await self.store.write_ref(user_id, target, mapped_name=group_name)

        name = _clean(target)
        if name is None:
            raise InvalidMergeError(details={"field": "original_name"})
        return await self._accept_row(user_id, name, group_name, None).action()

    async def suggest_merge_defaults(
        self, user_id: UUID, refs: list[MappingRef]
    ) -> tuple[str | None, str | None]:
        """Default (name, category) for merging the selected rows."""
        wanted = {ref.id for ref in refs}
        selected = [v for v in await self.store.view(user_id) if v.id in wanted]
        return suggest_merge_defaults(selected)

    def _write_row(self, user_id: UUID, ref: MappingRef, name: str, **values) -> BatchRow:
        return BatchRow(
            name=name,
            scope=MappingScope(ref.scope),
            action=lambda: self.store.write_ref(user_id, ref, **values),
        )


def _rejected(operation: str, members: list[str], error: GroupingError) -> BatchResult:
    names = list(dict.fromkeys(members))
    message = get_error(error.error_code)["message"]
    return BatchResult(
        operation=operation,
        total=len(names),
        failed=len(names),
        failures=[
            RowFailure(name=n, scope=MappingScope.USER, error_code=error.error_code, message=message)
            for n in names
        ],
    )
