"""Add usage_log table.

Revision ID: c8e1a3f5b7d2
Revises: b4d2f8e6a1c9
Create Date: 2026-10-17 15:30:00.000000

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "c8e1a3f5b7d2"
down_revision = "b4d2f8e6a1c9"
branch_labels = None
depends_on = None


def upgrade():
    """Create usage_log table, one row per completed generation."""
    op.create_table(
        "usage_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("logged_at", sa.DateTime(timezone=True), nullable=False),
        # Request details
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("model", sa.String(64), nullable=False),
        sa.Column("language", sa.String(32), nullable=True),
        sa.Column("tone", sa.String(32), nullable=True),
        sa.Column("length", sa.String(32), nullable=True),
        sa.Column("prompt_length", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("response_length", sa.Integer(), nullable=False, server_default="0"),
        # Provider-reported tokens
        sa.Column("input_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("output_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processing_time_ms", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "modified_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Per-user stats and most-recent-first listing
    op.create_index("ix_usage_log_user_logged_at", "usage_log", ["user_id", "logged_at"])


def downgrade():
    """Drop usage_log table."""
    op.drop_index("ix_usage_log_user_logged_at", table_name="usage_log")
    op.drop_table("usage_log")
