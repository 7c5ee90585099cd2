"""Fortune media schema."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "fortunes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
    )
    op.create_index("ix_fortunes_user_id", "fortunes", ["user_id"])

    op.create_table(
        "subscriptions",
        sa.Column("user_id", sa.String(length=36), primary_key=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column(
            "is_lifetime", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")
        ),
    )

    op.create_table(
        "profiles",
        sa.Column("user_id", sa.String(length=36), primary_key=True),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "fortune_media",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("fortune_id", sa.String(length=36), nullable=False, unique=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column(
            "bucket", sa.String(length=64), nullable=False, server_default="photos"
        ),
        sa.Column("path", sa.String(length=512), nullable=False),
        sa.Column("mime_type", sa.String(length=64), nullable=False),
        sa.Column("width", sa.Integer()),
        sa.Column("height", sa.Integer()),
        sa.Column("size_bytes", sa.BigInteger()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index("ix_fortune_media_user_id", "fortune_media", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_fortune_media_user_id", table_name="fortune_media")
    op.drop_table("fortune_media")
    op.drop_table("profiles")
    op.drop_table("subscriptions")
    op.drop_index("ix_fortunes_user_id", table_name="fortunes")
    op.drop_table("fortunes")
