"""create tabular_records table

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tabular_records",
        sa.Column("id", sa.CHAR(length=24), nullable=False, comment="24 hex character opaque identifier"),
        sa.Column(
            "data",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment='Record fields; dates encoded as {"$date": iso}',
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_tabular_records"),
    )
    op.create_index("ix_tabular_records_created_at", "tabular_records", ["created_at"], unique=False)
    op.create_index("ix_tabular_records_updated_at", "tabular_records", ["updated_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_tabular_records_updated_at", table_name="tabular_records")
    op.drop_index("ix_tabular_records_created_at", table_name="tabular_records")
    op.drop_table("tabular_records")
