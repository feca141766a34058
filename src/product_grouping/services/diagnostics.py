"""Finding and repairing bad mapping data left by older writes.

Two known problems: rows with an empty ``mapped_name`` (they look grouped
in some screens and ungrouped in others) and categories holding several
comma-separated values.
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.core.exceptions import GroupingError
from product_grouping.grouping.categories import is_corrupted_category, propose_category_fix
from product_grouping.schemas.diagnostics import CategoryFix, CorruptedCategory, DiagnosticsReport
from product_grouping.schemas.grouping import (
    BatchResult,
    GlobalMappingRef,
    MappingScope,
    MappingView,
    UserMappingRef,
)
from product_grouping.services.batch import BatchRow, run_batch
from product_grouping.services.mapping_store import MappingStore

logger = logging.getLogger(__name__)


class DiagnosticsService:
    def __init__(self, db: AsyncSession, is_admin: bool = False):
        self.db = db
        self.store = MappingStore(db, is_admin=is_admin)

    async def find_degenerate_mappings(self, user_id: UUID) -> list[MappingView]:
        """The user's rows whose mapped_name is null, empty or whitespace."""
        rows = await self.store.mapping_repo.find_degenerate(user_id)
        return [
            MappingView(
                id=r.id,
                scope=MappingScope.USER,
                original_name=r.original_name,
                mapped_name=r.mapped_name,
                category=r.category,
                declared_category=r.category,
            )
            for r in rows
        ]

    async def cleanup_degenerate_mappings(self, user_id: UUID) -> int:
        """Delete the user's degenerate rows. Receipts are not touched."""
        count = await self.store.mapping_repo.delete_degenerate(user_id)
        logger.info("Degenerate mappings removed", extra={"rows": count})
        return count

    async def find_corrupted_categories(self, user_id: UUID) -> list[CorruptedCategory]:
        """User and global rows whose category joins several categories."""
        found: list[CorruptedCategory] = []
        for row in await self.store.mapping_repo.find_with_category_like(user_id, "%,%"):
            if is_corrupted_category(row.category):
                found.append(_corrupted(UserMappingRef(id=row.id), row.original_name, row.category))
        for row in await self.store.global_repo.find_with_category_like("%,%"):
            if is_corrupted_category(row.category):
                found.append(_corrupted(GlobalMappingRef(id=row.id), row.original_name, row.category))
        return found

    async def fix_corrupted_categories(
        self,
        user_id: UUID,
        fixes: list[CategoryFix],
        cancel: asyncio.Event | None = None,
    ) -> BatchResult:
        """Write category fixes row by row.

        A fix without a category counts as failed. Global rows need
        administrative rights.
        """
        names = await self.store.describe_refs(user_id, [f.ref for f in fixes])
        rows = [
            BatchRow(
                name=names.get(fix.ref.id, str(fix.ref.id)),
                scope=MappingScope(fix.ref.scope),
                action=self._fix_action(user_id, fix),
            )
            for fix in fixes
        ]
        return await run_batch(self.db, "fix_categories", rows, cancel)

    def _fix_action(self, user_id: UUID, fix: CategoryFix):
        async def action() -> str:
            if not fix.category or not fix.category.strip():
                raise GroupingError("VAL_001", details={"reason": "no_fix"}, http_status=400)
            return await self.store.write_ref(user_id, fix.ref, category=fix.category.strip())

        return action

    async def report(self, user_id: UUID) -> DiagnosticsReport:
        degenerate = await self.find_degenerate_mappings(user_id)
        corrupted = await self.find_corrupted_categories(user_id)
        ignored = await self.store.load_ignored_keys(user_id)
        return DiagnosticsReport(
            degenerate_mappings=degenerate,
            corrupted_categories=corrupted,
            ignored_suggestions=len(ignored),
        )


def _corrupted(ref, original_name: str, category: str) -> CorruptedCategory:
    return CorruptedCategory(
        ref=ref,
        original_name=original_name,
        category=category,
        proposed_category=propose_category_fix(category),
    )
