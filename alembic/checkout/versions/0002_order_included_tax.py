"""add included tax to orders

The tax sits on orders rather than on a separate adjustments table.

Revision ID: 0002_order_included_tax
Revises: 0001_checkout
Create Date: 2026-10-14
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_order_included_tax"
down_revision = "0001_checkout"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "orders",
        sa.Column("included_tax_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )


def downgrade() -> None:
    op.drop_column("orders", "included_tax_cents")
