"""Dual-layer mapping store: user mappings, global mappings and overrides.

Global mappings are shared by every user. A regular caller can only change
how a global mapping looks to them (a category override); changing the
shared row itself is an administrative action. ``allow_user_global_writes``
relaxes that for deployments that want the older, permissive behaviour.
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.config import settings
from product_grouping.core.exceptions import (
    ConflictError,
    InvalidMergeError,
    NotFoundError,
    PermissionDeniedError,
)
from product_grouping.grouping.categories import resolve_effective_category
from product_grouping.grouping.views import (
    build_product_groups,
    get_unmapped_names,
    grouping_stats,
    resolve_view,
)
from product_grouping.models.product_mapping import ProductMapping
from product_grouping.models.user_global_override import UserGlobalOverride
from product_grouping.repositories.global_mapping import (
    GlobalMappingRepository,
    OverrideRepository,
)
from product_grouping.repositories.ignored_suggestion import IgnoredSuggestionRepository
from product_grouping.repositories.product_mapping import ProductMappingRepository
from product_grouping.repositories.receipt import ReceiptRepository
from product_grouping.schemas.grouping import (
    BatchResult,
    GlobalMappingRef,
    GroupingStats,
    MappingRef,
    MappingScope,
    MappingView,
    ProductGroup,
    UserMappingRef,
)
from product_grouping.services.batch import UPDATED, BatchRow, run_batch

logger = logging.getLogger(__name__)

__all__ = ["MappingStore", "resolve_effective_category"]


def _require_name(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise InvalidMergeError(details={"field": field})
    return value.strip()


class MappingStore:
    """Reads and writes mapping rows for one caller.

    Args:
        db: Database session
        is_admin: Whether the caller may mutate global mappings
    """

    def __init__(self, db: AsyncSession, is_admin: bool = False):
        self.db = db
        self.is_admin = is_admin
        self.mapping_repo = ProductMappingRepository(db)
        self.global_repo = GlobalMappingRepository(db)
        self.override_repo = OverrideRepository(db)
        self.ignored_repo = IgnoredSuggestionRepository(db)
        self.receipt_repo = ReceiptRepository(db)

    @property
    def can_write_global(self) -> bool:
        return self.is_admin or settings.allow_user_global_writes

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def view(self, user_id: UUID) -> list[MappingView]:
        """The user's resolved mappings, one per original name."""
        user_rows = await self.mapping_repo.list_for_user(user_id)
        global_rows = await self.global_repo.list_all()
        overrides = {
            o.global_mapping_id: o for o in await self.override_repo.list_for_user(user_id)
        }
        return resolve_view(user_rows, global_rows, overrides)

    async def unmapped_names(
        self, user_id: UUID, observed_names: list[str] | None = None
    ) -> list[str]:
        """Observed names that have no group in the user's view.

        Args:
            user_id: User ID
            observed_names: Names to check; defaults to every name on the
                user's receipts
        """
        if observed_names is None:
            items = await self.receipt_repo.line_items_for_user(user_id)
            observed_names = [item.name for item in items]
        return get_unmapped_names(observed_names, await self.view(user_id))

    async def list_groups(self, user_id: UUID) -> tuple[list[ProductGroup], GroupingStats]:
        """Product groups with purchase figures, plus summary counters."""
        views = await self.view(user_id)
        items = await self.receipt_repo.line_items_for_user(user_id)
        groups = build_product_groups(views, items)
        stats = grouping_stats(views, groups, (item.name for item in items))
        return groups, stats

    async def load_ignored_keys(self, user_id: UUID) -> frozenset[str]:
        return await self.ignored_repo.keys_for_user(user_id)

    async def describe_refs(self, user_id: UUID, refs: list[MappingRef]) -> dict[UUID, str]:
        """Original names of referenced rows, for reporting."""
        names: dict[UUID, str] = {}
        wanted_user = {r.id for r in refs if isinstance(r, UserMappingRef)}
        wanted_global = {r.id for r in refs if isinstance(r, GlobalMappingRef)}
        if wanted_user:
            for row in await self.mapping_repo.list_for_user(user_id):
                if row.id in wanted_user:
                    names[row.id] = row.original_name
        if wanted_global:
            for row in await self.global_repo.list_all():
                if row.id in wanted_global:
                    names[row.id] = row.original_name
        return names

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_mapping(
        self,
        user_id: UUID,
        original_name: str,
        mapped_name: str,
        category: str | None = None,
    ) -> ProductMapping:
        """Insert a user mapping.

        Creating a mapping never replaces an existing one: a second mapping
        for the same name is rejected so a previous category choice is not
        silently lost.

        Raises:
            InvalidMergeError: If a name is empty
            ConflictError: If the user already has a row for ``original_name``
        """
        original_name = _require_name(original_name, "original_name")
        mapped_name = _require_name(mapped_name, "mapped_name")

        existing = await self.mapping_repo.find_by_original_name(user_id, original_name)
        if existing:
            raise ConflictError(details={"mapping_id": str(existing[0].id)})

        mapping = await self.mapping_repo.create(
            ProductMapping(
                user_id=user_id,
                original_name=original_name,
                mapped_name=mapped_name,
                category=category,
            )
        )
        logger.info("Mapping created", extra={"mapping_id": str(mapping.id)})
        return mapping

    async def write_ref(self, user_id: UUID, ref: MappingRef, **values) -> str:
        """Update one row in the table its reference points to.

        Raises:
            PermissionDeniedError: For a global row the caller may not change
            NotFoundError: If the row is gone (or is not the user's)
        """
        if isinstance(ref, GlobalMappingRef):
            if not self.can_write_global:
                raise PermissionDeniedError(details={"global_mapping_id": str(ref.id)})
            count = await self.global_repo.set_fields(ref.id, **values)
        else:
            count = await self.mapping_repo.set_fields_for_user(user_id, ref.id, **values)
        if not count:
            raise NotFoundError(details={"scope": ref.scope, "id": str(ref.id)})
        return UPDATED

    async def rename_group(
        self,
        user_id: UUID,
        old_name: str,
        new_name: str,
        scope: MappingScope | None = None,
        cancel: asyncio.Event | None = None,
    ) -> BatchResult:
        """Rename a group on every row carrying ``old_name``.

        Rows are written one at a time, user rows first. A row that fails
        (including a global row the caller may not change) is reported and
        keeps its old name; rows already renamed stay renamed.

        Args:
            user_id: User ID
            old_name: Current group name
            new_name: New group name
            scope: Only touch user or global rows; None means both
            cancel: Optional cancellation flag

        Raises:
            InvalidMergeError: If ``new_name`` is empty
            PermissionDeniedError: If ``scope`` is global and the caller may
                not write global rows
        """
        new_name = _require_name(new_name, "new_name")
        if scope == MappingScope.GLOBAL and not self.can_write_global:
            raise PermissionDeniedError(details={"scope": scope.value})

        rows: list[BatchRow] = []
        if scope in (None, MappingScope.USER):
            for row in await self.mapping_repo.find_by_mapped_names(user_id, [old_name]):
                rows.append(self._rename_row(user_id, UserMappingRef(id=row.id), row.original_name, new_name))
        if scope in (None, MappingScope.GLOBAL):
            for row in await self.global_repo.find_by_mapped_names([old_name]):
                rows.append(self._rename_row(user_id, GlobalMappingRef(id=row.id), row.original_name, new_name))

        return await run_batch(self.db, "rename_group", rows, cancel)

    def _rename_row(self, user_id: UUID, ref: MappingRef, name: str, new_name: str) -> BatchRow:
        return BatchRow(
            name=name,
            scope=MappingScope(ref.scope),
            action=lambda: self.write_ref(user_id, ref, mapped_name=new_name),
        )

    async def update_category(self, user_id: UUID, mapped_name: str, category: str | None) -> int:
        """Set the category on the user's own rows in a group.

        Global rows in the group are left alone; use ``set_override`` for those.

        Returns:
            Number of user rows changed
        """
        count = await self.mapping_repo.update_category_for_group(user_id, mapped_name, category)
        logger.info("Group category updated", extra={"rows": count})
        return count

    async def delete_mapping(self, user_id: UUID, ref: MappingRef) -> bool:
        """Hard delete a mapping. Receipt line items are not touched.

        Returns:
            False if the row was already gone

        Raises:
            PermissionDeniedError: Deleting a global mapping without admin rights
        """
        if isinstance(ref, GlobalMappingRef):
            if not self.is_admin:
                raise PermissionDeniedError(details={"global_mapping_id": str(ref.id)})
            deleted = await self.global_repo.delete_by_id(ref.id)
        else:
            deleted = await self.mapping_repo.delete_for_user(user_id, ref.id)

        if not deleted:
            logger.info("Mapping already deleted", extra={"scope": ref.scope, "id": str(ref.id)})
        return deleted

    async def set_override(
        self, user_id: UUID, global_mapping_id: UUID, category: str
    ) -> UserGlobalOverride:
        """Override the category of a global mapping for this user only."""
        if await self.global_repo.get_by_id(global_mapping_id) is None:
            raise NotFoundError(details={"global_mapping_id": str(global_mapping_id)})
        return await self.override_repo.upsert(user_id, global_mapping_id, category)

    async def clear_override(self, user_id: UUID, global_mapping_id: UUID) -> bool:
        return await self.override_repo.delete_for(user_id, global_mapping_id)
