"""Slot engine tables.

- businesses: operating hours source (opening_time, closing_time, slot_duration).
- slots: one row per bookable window; unique per (business_id, date, start_time, end_time).
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "businesses",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("opening_time", sa.String(8), nullable=True),
        sa.Column("closing_time", sa.String(8), nullable=True),
        sa.Column("slot_duration", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "slots",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("business_id", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(8), nullable=False),
        sa.Column("end_time", sa.String(8), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'available'")),
        sa.Column("reserved_until", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_id", "date", "start_time", "end_time", name="uq_slots_window"),
        sa.CheckConstraint(
            "status IN ('available', 'reserved', 'booked')",
            name="ck_slots_status",
        ),
        sa.CheckConstraint(
            "(status = 'reserved' AND reserved_until IS NOT NULL) "
            "OR (status <> 'reserved' AND reserved_until IS NULL)",
            name="ck_slots_reserved_until",
        ),
    )
    op.create_index("ix_slots_business_date_status", "slots", ["business_id", "date", "status"], unique=False)
    op.create_index("ix_slots_status_reserved_until", "slots", ["status", "reserved_until"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_slots_status_reserved_until", table_name="slots")
    op.drop_index("ix_slots_business_date_status", table_name="slots")
    op.drop_table("slots")
    op.drop_table("businesses")
