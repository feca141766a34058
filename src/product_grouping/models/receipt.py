"""Receipts as written by the upload pipeline.

This service only reads them: line items are the source of observed
product names, categories and spend.
"""
from datetime import date
from uuid import UUID

from sqlalchemy import JSON, Date, String
from sqlalchemy.orm import Mapped, mapped_column

from product_grouping.models.base import BaseModel


class Receipt(BaseModel):
    """A parsed grocery receipt with its raw extracted line items."""

    __tablename__ = "receipts"

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    store_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    receipt_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    # Untyped JSON from the extraction model; validated on read.
    items: Mapped[list | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Receipt(id={self.id}, store_name={self.store_name})>"
