"""Curated product mappings shared by all users."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from product_grouping.models.base import BaseModel


class GlobalProductMapping(BaseModel):
    """Community default grouping for a raw product name."""

    __tablename__ = "global_product_mappings"

    original_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    mapped_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    overrides: Mapped[list["UserGlobalOverride"]] = relationship(
        "UserGlobalOverride",
        back_populates="global_mapping",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<GlobalProductMapping(id={self.id}, original_name={self.original_name}, "
            f"mapped_name={self.mapped_name})>"
        )
