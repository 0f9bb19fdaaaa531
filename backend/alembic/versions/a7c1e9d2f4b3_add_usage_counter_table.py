"""Add usage_counter table.

Revision ID: a7c1e9d2f4b3
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "a7c1e9d2f4b3"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create usage_counter table.

    One row per (user_id, period_key); period_key is the UTC calendar month
    as YYYY-MM. Earlier months are kept as history.
    """
    op.create_table(
        "usage_counter",
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("period_key", sa.String(7), nullable=False),
        sa.Column("plan_type", sa.String(32), nullable=False, server_default="free"),
        # Metered lanes
        sa.Column("basic_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("advanced_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_reset_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_reset_reason", sa.String(32), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "modified_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.PrimaryKeyConstraint("user_id", "period_key"),
        sa.CheckConstraint("basic_count >= 0", name="ck_usage_counter_basic_non_negative"),
        sa.CheckConstraint("advanced_count >= 0", name="ck_usage_counter_advanced_non_negative"),
    )

    # Lookups of all users for one month (reporting, cleanup)
    op.create_index("idx_usage_counter_period_key", "usage_counter", ["period_key"])


def downgrade():
    """Drop usage_counter table."""
    op.drop_index("idx_usage_counter_period_key", table_name="usage_counter")
    op.drop_table("usage_counter")
