"""Mandate and day value schema

Revision ID: 20261019_01
Revises: None
Create Date: 2026-10-19
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        "mandate",
        sa.Column("mandate_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("organization_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("mandate_group", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("total_revenue", sa.Float(precision=53), nullable=False, server_default=sa.text("0")),
        sa.Column("last_entry", sa.Date(), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("mandate_group in ('LODGING', 'DINING')", name="ck_mandate_group"),
        sa.UniqueConstraint("organization_id", "name", name="uq_mandate_organization_name"),
    )
    op.create_index("ix_mandate_organization_id", "mandate", ["organization_id"])

    op.create_table(
        "day_value",
        sa.Column("day_value_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("value_date", sa.Date(), nullable=False),
        sa.Column("value", sa.Float(precision=53), nullable=False),
        sa.Column(
            "mandate_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("mandate.mandate_id", ondelete="CASCADE", name="fk_day_value_mandate"),
            nullable=False,
        ),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("value >= 0", name="ck_day_value_value_non_negative"),
        sa.UniqueConstraint("value_date", "mandate_id", name="uq_day_value_date_mandate"),
    )
    op.create_index("ix_day_value_mandate_date", "day_value", ["mandate_id", "value_date"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_day_value_mandate_date", table_name="day_value")
    op.drop_table("day_value")
    op.drop_index("ix_mandate_organization_id", table_name="mandate")
    op.drop_table("mandate")
