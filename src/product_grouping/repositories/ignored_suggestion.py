"""Repository for dismissed merge suggestions."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.models.ignored_suggestion import IgnoredSuggestion
from product_grouping.repositories.base import BaseRepository
from product_grouping.schemas.grouping import suggestion_key


class IgnoredSuggestionRepository(BaseRepository[IgnoredSuggestion]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, IgnoredSuggestion)

    async def keys_for_user(self, user_id: UUID) -> frozenset[str]:
        """Load the user's ignore list once, as an immutable lookup."""
        result = await self.db.execute(
            select(IgnoredSuggestion.suggestion_key).where(IgnoredSuggestion.user_id == user_id)
        )
        return frozenset(result.scalars().all())

    async def exists(self, user_id: UUID, key: str) -> bool:
        result = await self.db.execute(
            select(IgnoredSuggestion.id).where(
                IgnoredSuggestion.user_id == user_id,
                IgnoredSuggestion.suggestion_key == key,
            )
        )
        return result.first() is not None

    async def add(self, user_id: UUID, products: list[str]) -> IgnoredSuggestion:
        """Record a dismissal. Raises IntegrityError if already recorded."""
        members = sorted(set(products))
        return await self.create(
            IgnoredSuggestion(
                user_id=user_id,
                suggestion_key=suggestion_key(members),
                products=members,
            )
        )
