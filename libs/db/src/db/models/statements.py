from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# cf_statements
# ---------------------------


class CfStatement(Base):
    """A saved cash-flow statement.

    Rows are immutable once written. ``payload`` carries the full statement,
    extracted figures and cash anchors as JSON; the scalar columns exist for
    filtering and listing without decoding the payload.
    """

    __tablename__ = "cf_statements"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    schema_version: Mapped[int] = mapped_column(Integer, nullable=False)
    # Frozen at save time: ending_cash - (beginning_cash + net_increase).
    variance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    period_label: Mapped[str | None] = mapped_column(Text, nullable=True)
    company_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (Index("ix_cf_statements_created_at", "created_at"),)
