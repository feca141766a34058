"""Repository for user-scoped product mappings.

Every query filters on user_id: a user only ever sees their own rows.
"""
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.models.product_mapping import ProductMapping
from product_grouping.repositories.base import BaseRepository


def _blank(column):
    return or_(column.is_(None), func.trim(column) == "")


class ProductMappingRepository(BaseRepository[ProductMapping]):
    """Repository for ProductMapping with per-user queries."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ProductMapping)

    async def list_for_user(self, user_id: UUID) -> list[ProductMapping]:
        """All mappings of a user, oldest first."""
        result = await self.db.execute(
            select(ProductMapping)
            .where(ProductMapping.user_id == user_id)
            .order_by(ProductMapping.original_name, ProductMapping.created_at)
        )
        return list(result.scalars().all())

    async def get_for_user(self, user_id: UUID, mapping_id: UUID) -> ProductMapping | None:
        """Get one mapping, only if it belongs to the user."""
        result = await self.db.execute(
            select(ProductMapping).where(
                ProductMapping.id == mapping_id, ProductMapping.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def find_by_original_name(
        self, user_id: UUID, original_name: str
    ) -> list[ProductMapping]:
        """Rows for one raw name (there may be legacy duplicates)."""
        result = await self.db.execute(
            select(ProductMapping).where(
                ProductMapping.user_id == user_id,
                ProductMapping.original_name == original_name,
            )
        )
        return list(result.scalars().all())

    async def find_by_mapped_names(
        self, user_id: UUID, mapped_names: list[str]
    ) -> list[ProductMapping]:
        """Rows currently carrying any of the given group names."""
        result = await self.db.execute(
            select(ProductMapping)
            .where(
                ProductMapping.user_id == user_id,
                ProductMapping.mapped_name.in_(mapped_names),
            )
            .order_by(ProductMapping.original_name)
        )
        return list(result.scalars().all())

    async def find_ungrouped_in_category(
        self, user_id: UUID, category: str
    ) -> list[ProductMapping]:
        """Rows in a category that have not been put in a group yet."""
        result = await self.db.execute(
            select(ProductMapping)
            .where(
                ProductMapping.user_id == user_id,
                ProductMapping.category == category,
                _blank(ProductMapping.mapped_name),
            )
            .order_by(ProductMapping.original_name)
        )
        return list(result.scalars().all())

    async def find_degenerate(self, user_id: UUID) -> list[ProductMapping]:
        """Rows whose mapped_name is null, empty or only whitespace."""
        result = await self.db.execute(
            select(ProductMapping)
            .where(ProductMapping.user_id == user_id, _blank(ProductMapping.mapped_name))
            .order_by(ProductMapping.original_name)
        )
        return list(result.scalars().all())

    async def find_with_category_like(self, user_id: UUID, pattern: str) -> list[ProductMapping]:
        result = await self.db.execute(
            select(ProductMapping)
            .where(ProductMapping.user_id == user_id, ProductMapping.category.like(pattern))
            .order_by(ProductMapping.original_name)
        )
        return list(result.scalars().all())

    async def set_fields_for_user(self, user_id: UUID, mapping_id: UUID, **values) -> int:
        """Update one of the user's rows; 0 means it does not exist (for them)."""
        result = await self.db.execute(
            update(ProductMapping)
            .where(ProductMapping.id == mapping_id, ProductMapping.user_id == user_id)
            .values(**values)
        )
        await self.db.commit()
        return result.rowcount

    async def set_fields_by_original_name(
        self, user_id: UUID, original_name: str, **values
    ) -> int:
        """Update every row of one raw name in a single statement."""
        result = await self.db.execute(
            update(ProductMapping)
            .where(
                ProductMapping.user_id == user_id,
                ProductMapping.original_name == original_name,
            )
            .values(**values)
        )
        await self.db.commit()
        return result.rowcount

    async def update_category_for_group(
        self, user_id: UUID, mapped_name: str, category: str | None
    ) -> int:
        """Set the category on all of the user's rows in a group."""
        result = await self.db.execute(
            update(ProductMapping)
            .where(
                ProductMapping.user_id == user_id,
                ProductMapping.mapped_name == mapped_name,
            )
            .values(category=category)
        )
        await self.db.commit()
        return result.rowcount

    async def delete_for_user(self, user_id: UUID, mapping_id: UUID) -> bool:
        """Hard delete one of the user's rows."""
        result = await self.db.execute(
            delete(ProductMapping).where(
                ProductMapping.id == mapping_id, ProductMapping.user_id == user_id
            )
        )
        await self.db.commit()
        return result.rowcount > 0

    async def delete_degenerate(self, user_id: UUID) -> int:
        """Hard delete the user's rows with an empty mapped_name."""
        result = await self.db.execute(
            delete(ProductMapping).where(
                ProductMapping.user_id == user_id, _blank(ProductMapping.mapped_name)
            )
        )
        await self.db.commit()
        return result.rowcount
