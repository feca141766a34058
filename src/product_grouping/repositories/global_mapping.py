"""Repository for curated global mappings and per-user overrides."""
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.models.global_product_mapping import GlobalProductMapping
from product_grouping.models.user_global_override import UserGlobalOverride
from product_grouping.repositories.base import BaseRepository


class GlobalMappingRepository(BaseRepository[GlobalProductMapping]):
    """Repository for GlobalProductMapping (readable by everyone)."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, GlobalProductMapping)

    async def list_all(self) -> list[GlobalProductMapping]:
        result = await self.db.execute(
            select(GlobalProductMapping).order_by(
                GlobalProductMapping.original_name, GlobalProductMapping.created_at
            )
        )
        return list(result.scalars().all())

    async def find_by_mapped_names(self, mapped_names: list[str]) -> list[GlobalProductMapping]:
        """Rows currently carrying any of the given group names."""
        result = await self.db.execute(
            select(GlobalProductMapping)
            .where(GlobalProductMapping.mapped_name.in_(mapped_names))
            .order_by(GlobalProductMapping.original_name)
        )
        return list(result.scalars().all())

    async def find_with_category_like(self, pattern: str) -> list[GlobalProductMapping]:
        result = await self.db.execute(
            select(GlobalProductMapping)
            .where(GlobalProductMapping.category.like(pattern))
            .order_by(GlobalProductMapping.original_name)
        )
        return list(result.scalars().all())


class OverrideRepository(BaseRepository[UserGlobalOverride]):
    """Repository for a user's category overrides on global mappings."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, UserGlobalOverride)

    async def list_for_user(self, user_id: UUID) -> list[UserGlobalOverride]:
        result = await self.db.execute(
            select(UserGlobalOverride).where(UserGlobalOverride.user_id == user_id)
        )
        return list(result.scalars().all())

    async def get_for(self, user_id: UUID, global_mapping_id: UUID) -> UserGlobalOverride | None:
        result = await self.db.execute(
            select(UserGlobalOverride).where(
                UserGlobalOverride.user_id == user_id,
                UserGlobalOverride.global_mapping_id == global_mapping_id,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self, user_id: UUID, global_mapping_id: UUID, category: str
    ) -> UserGlobalOverride:
        """Create or replace the user's override for one global mapping."""
        override = await self.get_for(user_id, global_mapping_id)
        if override is None:
            return await self.create(
                UserGlobalOverride(
                    user_id=user_id,
                    global_mapping_id=global_mapping_id,
                    override_category=category,
                )
            )
        override.override_category = category
        await self.db.commit()
        await self.db.refresh(override)
        return override

    async def delete_for(self, user_id: UUID, global_mapping_id: UUID) -> bool:
        result = await self.db.execute(
            delete(UserGlobalOverride).where(
                UserGlobalOverride.user_id == user_id,
                UserGlobalOverride.global_mapping_id == global_mapping_id,
            )
        )
        await self.db.commit()
        return result.rowcount > 0
