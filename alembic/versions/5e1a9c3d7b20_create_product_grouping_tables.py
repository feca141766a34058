"""Create product mapping, override and ignored suggestion tables.

The receipts table belongs to the upload pipeline and is not created here.

Revision ID: 5e1a9c3d7b20
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5e1a9c3d7b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # 1) User-scoped mappings. No unique constraint: legacy duplicates exist.
    op.create_table(
        "product_mappings",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("mapped_name", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_product_mappings_user_id", "product_mappings", ["user_id"], unique=False)
    op.create_index(
        "ix_product_mappings_user_original",
        "product_mappings",
        ["user_id", "original_name"],
        unique=False,
    )
    op.create_index(
        "ix_product_mappings_user_mapped",
        "product_mappings",
        ["user_id", "mapped_name"],
        unique=False,
    )

    # 2) Shared mappings.
    op.create_table(
        "global_product_mappings",
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("mapped_name", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_global_product_mappings_original_name",
        "global_product_mappings",
        ["original_name"],
        unique=False,
    )
    op.create_index(
        "ix_global_product_mappings_mapped_name",
        "global_product_mappings",
        ["mapped_name"],
        unique=False,
    )

    # 3) Per-user category overrides on shared mappings.
    op.create_table(
        "user_global_overrides",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("global_mapping_id", sa.Uuid(), nullable=False),
        sa.Column("override_category", sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["global_mapping_id"], ["global_product_mappings.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "global_mapping_id", name="uq_user_global_override"),
    )
    op.create_index(
        "ix_user_global_overrides_user_id", "user_global_overrides", ["user_id"], unique=False
    )
    op.create_index(
        "ix_user_global_overrides_global_mapping_id",
        "user_global_overrides",
        ["global_mapping_id"],
        unique=False,
    )

    # 4) Dismissed suggestions, keyed by the sorted member list.
    op.create_table(
        "ignored_merge_suggestions",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("suggestion_key", sa.Text(), nullable=False),
        sa.Column("products", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "suggestion_key", name="uq_ignored_user_key"),
    )
    op.create_index(
        "ix_ignored_merge_suggestions_user_id",
        "ignored_merge_suggestions",
        ["user_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_ignored_merge_suggestions_user_id", table_name="ignored_merge_suggestions")
    op.drop_table("ignored_merge_suggestions")

    op.drop_index("ix_user_global_overrides_global_mapping_id", table_name="user_global_overrides")
    op.drop_index("ix_user_global_overrides_user_id", table_name="user_global_overrides")
    op.drop_table("user_global_overrides")

    op.drop_index("ix_global_product_mappings_mapped_name", table_name="global_product_mappings")
    op.drop_index("ix_global_product_mappings_original_name", table_name="global_product_mappings")
    op.drop_table("global_product_mappings")

    op.drop_index("ix_product_mappings_user_mapped", table_name="product_mappings")
    op.drop_index("ix_product_mappings_user_original", table_name="product_mappings")
    op.drop_index("ix_product_mappings_user_id", table_name="product_mappings")
    op.drop_table("product_mappings")
