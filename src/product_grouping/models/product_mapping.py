"""User-scoped product name -> group mappings."""
from uuid import UUID

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from product_grouping.models.base import BaseModel


class ProductMapping(BaseModel):
    """Maps a raw product name to a canonical group name for one user.

    A null or blank ``mapped_name`` means "ungrouped". There is deliberately
    no unique constraint on (user_id, original_name): older rows contain
    duplicates, so reads must tolerate them while writes refuse to add more.
    """

    __tablename__ = "product_mappings"

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mapped_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        Index("ix_product_mappings_user_original", "user_id", "original_name"),
        Index("ix_product_mappings_user_mapped", "user_id", "mapped_name"),
    )

    def __repr__(self) -> str:
        return (
            f"<ProductMapping(id={self.id}, original_name={self.original_name}, "
            f"mapped_name={self.mapped_name})>"
        )
