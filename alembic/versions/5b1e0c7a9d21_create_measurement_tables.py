"""create measurement tables

Revision ID: 5b1e0c7a9d21
Revises:
Create Date: 2026-10-18 09:12:40.118204

Customers, measurement sheets, slab entries and the sheet number counter.
On PostgreSQL the sheet number comes from measurement_sheet_seq instead of
the counter table; the table is still created so both paths share a schema.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1e0c7a9d21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CUSTOMER_TYPES = "'retail', 'granite_shops', 'builders', 'outstation_parties', 'exporters'"
SLAB_CATEGORIES = "'F', 'LD', 'D', 'S'"


def upgrade() -> None:
    bind = op.get_bind()

    if bind.dialect.name == "postgresql":
        op.execute(sa.text("CREATE SEQUENCE IF NOT EXISTS measurement_sheet_seq START 1"))

    op.create_table(
        "customers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )

    op.create_table(
        "measurement_sheets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("sheet_number", sa.String(20), nullable=False, unique=True),
        sa.Column("customer_id", sa.String(36),
                  sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("customer_type", sa.String(50), nullable=False),
        sa.Column("total_area", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.CheckConstraint(f"customer_type IN ({CUSTOMER_TYPES})",
                           name="ck_measurement_sheets_customer_type"),
        sa.CheckConstraint("status IN ('draft', 'completed')",
                           name="ck_measurement_sheets_status"),
    )
    op.create_index("ix_measurement_sheets_customer_id", "measurement_sheets", ["customer_id"])
    op.create_index("ix_measurement_sheets_customer_type", "measurement_sheets", ["customer_type"])
    op.create_index("ix_measurement_sheets_status", "measurement_sheets", ["status"])
    op.create_index("ix_measurement_sheets_created_at", "measurement_sheets", ["created_at"])

    op.create_table(
        "slab_entries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("sheet_id", sa.String(36),
                  sa.ForeignKey("measurement_sheets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("serial_number", sa.Integer(), nullable=False),
        sa.Column("block_number", sa.String(50), nullable=False),
        sa.Column("length", sa.Float(), nullable=False),
        sa.Column("breadth", sa.Float(), nullable=False),
        sa.Column("category", sa.String(5), nullable=False),
        sa.Column("final_length", sa.Float(), nullable=False),
        sa.Column("final_breadth", sa.Float(), nullable=False),
        sa.Column("area", sa.Float(), nullable=False),
        sa.Column("calculation_trail", sa.Text()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.UniqueConstraint("sheet_id", "serial_number", name="uq_slab_entries_sheet_serial"),
        sa.CheckConstraint("length > 0", name="ck_slab_entries_length"),
        sa.CheckConstraint("breadth > 0", name="ck_slab_entries_breadth"),
        sa.CheckConstraint("area >= 0", name="ck_slab_entries_area"),
        sa.CheckConstraint(f"category IN ({SLAB_CATEGORIES})", name="ck_slab_entries_category"),
    )
    op.create_index("ix_slab_entries_sheet_id", "slab_entries", ["sheet_id"])
    op.create_index("ix_slab_entries_block_number", "slab_entries", ["block_number"])
    op.create_index("ix_slab_entries_category", "slab_entries", ["category"])

    op.create_table(
        "sheet_number_counters",
        sa.Column("name", sa.String(50), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("sheet_number_counters")
    op.drop_table("slab_entries")
    op.drop_table("measurement_sheets")
    op.drop_table("customers")

    if op.get_bind().dialect.name == "postgresql":
        op.execute(sa.text("DROP SEQUENCE IF EXISTS measurement_sheet_seq"))
