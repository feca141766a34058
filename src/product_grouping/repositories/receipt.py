"""Read-only access to receipt line items."""
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.models.receipt import Receipt
from product_grouping.repositories.base import BaseRepository
from product_grouping.schemas.internal import ReceiptLineItem, coerce_line_items


class ReceiptRepository(BaseRepository[Receipt]):
    """Repository for Receipt. Receipts are never written here."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Receipt)

    async def get_by_user(
        self,
        user_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Receipt]:
        """Get a user's receipts, optionally within a date range."""
        query = select(Receipt).where(Receipt.user_id == user_id)
        if start_date:
            query = query.where(Receipt.receipt_date >= start_date)
        if end_date:
            query = query.where(Receipt.receipt_date <= end_date)
        result = await self.db.execute(query.order_by(Receipt.receipt_date.desc()))
        return list(result.scalars().all())

    async def line_items_for_user(
        self,
        user_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ReceiptLineItem]:
        """Validated line items across all of the user's receipts."""
        items: list[ReceiptLineItem] = []
        for receipt in await self.get_by_user(user_id, start_date, end_date):
            items.extend(coerce_line_items(receipt.items))
        return items
