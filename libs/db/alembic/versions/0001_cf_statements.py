# ruff: noqa: I001
"""Saved cash-flow statements.

Revision ID: 0001_cf_statements
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_cf_statements"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "cf_statements",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("schema_version", sa.Integer(), nullable=False),
        sa.Column("variance", sa.Numeric(18, 2), nullable=False),
        sa.Column("period_label", sa.Text(), nullable=True),
        sa.Column("company_name", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
    )
    op.create_index("ix_cf_statements_created_at", "cf_statements", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_cf_statements_created_at", table_name="cf_statements")
    op.drop_table("cf_statements")
