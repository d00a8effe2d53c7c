"""Create guesty_listings and sync_logs

Revision ID: 3b9d2c71a4e0
Revises:
Create Date: 2026-10-19 09:12:31.418204

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "3b9d2c71a4e0"
down_revision = None
branch_labels = None
depends_on = None

JSON_DOCUMENT = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "guesty_listings",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("address", JSON_DOCUMENT, nullable=True),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Float(), nullable=True),
        sa.Column("max_guests", sa.Integer(), nullable=True),
        sa.Column("square_meters", sa.Float(), nullable=True),
        sa.Column("property_type", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("highres_url", sa.Text(), nullable=True),
        sa.Column("images", JSON_DOCUMENT, nullable=True),
        sa.Column("raw_data", JSON_DOCUMENT, nullable=False),
        sa.Column("sync_status", sa.String(), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        sa.Column(
            "first_synced_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "last_synced",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "sync_status IN ('active', 'archived')",
            name="ck_guesty_listings_sync_status",
        ),
        sa.CheckConstraint(
            "is_deleted = (sync_status = 'archived')",
            name="ck_guesty_listings_deleted_matches_status",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_guesty_listings_sync_status", "guesty_listings", ["sync_status"], unique=False
    )

    op.create_table(
        "sync_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("service", sa.String(), nullable=False),
        sa.Column("sync_type", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("items_count", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sync_logs_service", "sync_logs", ["service"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_sync_logs_service", table_name="sync_logs")
    op.drop_table("sync_logs")
    op.drop_index("ix_guesty_listings_sync_status", table_name="guesty_listings")
    op.drop_table("guesty_listings")
