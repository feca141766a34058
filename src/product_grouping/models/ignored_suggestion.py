"""Dismissed merge suggestions.

Rows are append-only. The canonical key is the sorted, de-duplicated member
list joined with "|", so two clusters with the same members in a different
order map to the same row.
"""

from uuid import UUID

from sqlalchemy import JSON, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from product_grouping.models.base import BaseModel


class IgnoredSuggestion(BaseModel):
    """A cluster the user explicitly dismissed."""

    __tablename__ = "ignored_merge_suggestions"

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    suggestion_key: Mapped[str] = mapped_column(Text, nullable=False)
    products: Mapped[list[str]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "suggestion_key", name="uq_ignored_user_key"),
    )

    def __repr__(self) -> str:
        return f"<IgnoredSuggestion(id={self.id}, products={self.products})>"
