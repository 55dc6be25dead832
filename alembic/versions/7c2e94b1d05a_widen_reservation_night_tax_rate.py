"""Widen reservation_nights.tax_rate_applied to twelve decimals

Revision ID: 7c2e94b1d05a
Revises: 3a1f0c9d2b7e
Create Date: 2026-10-24 14:03:51.274610

"""

import sqlalchemy as sa

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "7c2e94b1d05a"
down_revision = "3a1f0c9d2b7e"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Upgrade schema."""
    # Combined rates with flat levies need more than four decimals
    op.alter_column(
        "reservation_nights",
        "tax_rate_applied",
        type_=sa.Numeric(16, 12),
        existing_type=sa.Numeric(7, 4),
        existing_nullable=False,
        existing_server_default="0",
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.alter_column(
        "reservation_nights",
        "tax_rate_applied",
        type_=sa.Numeric(7, 4),
        existing_type=sa.Numeric(16, 12),
        existing_nullable=False,
        existing_server_default="0",
    )
