"""Initial schema - countries, rules, calculations.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "countries",
        sa.Column("country_code", sa.String(2), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("currency_code", sa.String(3), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "rules",
        sa.Column("rule_id", sa.String(64), primary_key=True),
        sa.Column("country_code", sa.String(2), nullable=True),
        sa.Column("rule_type", sa.String(32), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("expression", sa.Text(), nullable=False),
        sa.Column("parameters", JSON, nullable=False),
        sa.Column("conditions", JSON, nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.String(50), nullable=False),
    )
    op.create_index("ix_rules_country_code", "rules", ["country_code"])

    op.create_table(
        "calculations",
        sa.Column("calculation_id", sa.String(36), primary_key=True),
        sa.Column("idempotency_key", sa.Text(), nullable=True),
        sa.Column("request_hash", sa.Text(), nullable=False),
        sa.Column("rules_hash", sa.Text(), nullable=False),
        sa.Column("input_json", JSON, nullable=False),
        sa.Column("output_json", JSON, nullable=False),
        sa.Column("total_cost", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency_code", sa.String(3), nullable=False),
        sa.Column("created_at", sa.String(50), nullable=False),
    )
    # Partial unique: only when idempotency_key is provided
    op.create_index(
        "uq_calculations_idempotency",
        "calculations",
        ["idempotency_key"],
        unique=True,
        postgresql_where=sa.text("idempotency_key IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_calculations_idempotency", table_name="calculations")
    op.drop_table("calculations")
    op.drop_index("ix_rules_country_code", table_name="rules")
    op.drop_table("rules")
    op.drop_table("countries")
