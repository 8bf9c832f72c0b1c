"""Business downtime.

- business_closures: inclusive date ranges a business is closed (holidays are one-day ranges).
- business_special_hours: per-weekday hours (0 = Monday) replacing the regular ones, or closing the day.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "business_closures",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("business_id", sa.String(64), nullable=False),
        sa.Column("date_start", sa.Date(), nullable=False),
        sa.Column("date_end", sa.Date(), nullable=False),
        sa.Column("kind", sa.String(16), nullable=False, server_default=sa.text("'closure'")),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("date_end >= date_start", name="ck_business_closures_range"),
    )
    op.create_index(
        "ix_business_closures_business_end", "business_closures", ["business_id", "date_end"], unique=False
    )

    op.create_table(
        "business_special_hours",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("business_id", sa.String(64), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("opening_time", sa.String(8), nullable=True),
        sa.Column("closing_time", sa.String(8), nullable=True),
        sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_id", "day_of_week", name="uq_business_special_hours_day"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_business_special_hours_day"),
    )


def downgrade() -> None:
    op.drop_table("business_special_hours")
    op.drop_index("ix_business_closures_business_end", table_name="business_closures")
    op.drop_table("business_closures")
