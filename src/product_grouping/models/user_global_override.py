"""User-specific category overrides on global mappings.

A user can recategorize a shared mapping for themselves without touching
the shared record. Only the category can be overridden, never the group name.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from product_grouping.models.base import BaseModel


class UserGlobalOverride(BaseModel):
    """Override category of a global mapping for a specific user."""

    __tablename__ = "user_global_overrides"

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    global_mapping_id: Mapped[UUID] = mapped_column(
        ForeignKey("global_product_mappings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    override_category: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "global_mapping_id", name="uq_user_global_override"
        ),
    )

    global_mapping: Mapped["GlobalProductMapping"] = relationship(
        "GlobalProductMapping", back_populates="overrides"
    )

    def __repr__(self) -> str:
        return (
            f"<UserGlobalOverride(id={self.id}, user_id={self.user_id}, "
            f"global_mapping_id={self.global_mapping_id}, "
            f"override_category={self.override_category})>"
        )
