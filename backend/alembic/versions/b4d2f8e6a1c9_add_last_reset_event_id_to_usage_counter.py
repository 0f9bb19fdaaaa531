"""Add last_reset_event_id to usage_counter.

Revision ID: b4d2f8e6a1c9
Revises: a7c1e9d2f4b3
Create Date: 2026-10-17 15:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "b4d2f8e6a1c9"
down_revision = "a7c1e9d2f4b3"
branch_labels = None
depends_on = None


def upgrade():
    """Record which payment event last reset a counter.

    A redelivered payment webhook carries the same event id and is skipped.
    """
    op.add_column(
        "usage_counter",
        sa.Column("last_reset_event_id", sa.String(255), nullable=True),
    )


def downgrade():
    """Drop last_reset_event_id."""
    op.drop_column("usage_counter", "last_reset_event_id")
