"""Base repository with generic CRUD operations."""
from typing import Any, Generic, Type, TypeVar
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.models.base import BaseModel

T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """Generic repository providing CRUD operations for any model.

    Mutating methods commit, so every call is its own unit of work. Batch
    services rely on this to keep earlier rows when a later one fails.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: UUID) -> T | None:
        """Get a single record by ID."""
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def create(self, obj: T) -> T:
        """Create a new record."""
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def set_fields(self, id: UUID, **values: Any) -> int:
        """Update columns of one record; returns the number of rows changed."""
        result = await self.db.execute(
            update(self.model).where(self.model.id == id).values(**values)
        )
        await self.db.commit()
        return result.rowcount

    async def delete_by_id(self, id: UUID) -> bool:
        """Hard delete a record by ID."""
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        await self.db.commit()
        return result.rowcount > 0
