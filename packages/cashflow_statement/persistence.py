# ruff: noqa: I001
"""Saved-statement storage.

:class:`StatementStore` is the port the rest of the package depends on;
:class:`SqlStatementStore` implements it on the shared database owned by
``libs/db`` (table ``cf_statements``, sessions via ``db.client``).

Each row keeps the complete statement as a versioned JSON payload plus a few
scalar columns (``created_at``, ``variance``, metadata) used for filtering.
Payloads are upgraded through :func:`migrate_payload` when read.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from db.client import session_scope
from db.models.statements import CfStatement

from .errors import PersistenceError
from .logging_setup import get_logger
from .models import (
    BalanceInputs,
    CanonicalField,
    CashFlowLineItem,
    CashFlowStatement,
    ExtractedData,
    StatementFilter,
    StatementMetadata,
    StoredStatement,
)
from .reconcile import ensure_saveable, reconcile

_logger = get_logger("cashflow_statement.persistence")

STATEMENT_SCHEMA_VERSION = 1
ID_PREFIX = "stmt_"


# ---------------------------------------------------------------------------
# Port
# ---------------------------------------------------------------------------


class StatementStore(Protocol):
    def save(
        self,
        statement: CashFlowStatement,
        extracted: ExtractedData,
        balances: BalanceInputs,
        *,
        metadata: StatementMetadata | None = None,
        now: datetime | None = None,
    ) -> StoredStatement: ...

    def list(self, statement_filter: StatementFilter | None = None) -> list[StoredStatement]: ...

    def get(self, statement_id: str) -> StoredStatement | None: ...

    def delete(self, statement_id: str) -> bool: ...

    def count(self, statement_filter: StatementFilter | None = None) -> int: ...

    def clear(self) -> int: ...


# ---------------------------------------------------------------------------
# JSON payload
# ---------------------------------------------------------------------------


class LineItemPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    description: str
    amount: Decimal
    indent_level: int = 0


class StatementBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    operating_activities: list[LineItemPayload]
    investing_activities: list[LineItemPayload]
    financing_activities: list[LineItemPayload]
    net_increase: Decimal
    beginning_cash: Decimal
    ending_cash: Decimal


class BalancesPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    beginning_cash: Decimal
    ending_cash: Decimal


class MetadataPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    period_label: str | None = None
    company_name: str | None = None
    notes: str | None = None


class StatementPayload(BaseModel):
    """Versioned JSON document stored in ``cf_statements.payload``."""

    model_config = ConfigDict(extra="forbid")

    schema_version: int
    statement: StatementBody
    extracted: dict[CanonicalField, Decimal]
    balances: BalancesPayload
    variance: Decimal
    metadata: MetadataPayload = MetadataPayload()


def _lines(items: tuple[CashFlowLineItem, ...]) -> list[LineItemPayload]:
    return [
        LineItemPayload(description=i.description, amount=i.amount, indent_level=i.indent_level)
        for i in items
    ]


def _items(lines: list[LineItemPayload]) -> tuple[CashFlowLineItem, ...]:
    return tuple(CashFlowLineItem(li.description, li.amount, li.indent_level) for li in lines)


def to_payload(stored: StoredStatement) -> dict[str, Any]:
    st = stored.statement
    dto = StatementPayload(
        schema_version=stored.schema_version,
        statement=StatementBody(
            operating_activities=_lines(st.operating_activities),
            investing_activities=_lines(st.investing_activities),
            financing_activities=_lines(st.financing_activities),
            net_increase=st.net_increase,
            beginning_cash=st.beginning_cash,
            ending_cash=st.ending_cash,
        ),
        extracted=stored.extracted.as_dict(),
        balances=BalancesPayload(
            beginning_cash=stored.balances.beginning_cash,
            ending_cash=stored.balances.ending_cash,
        ),
        variance=stored.variance,
        metadata=MetadataPayload(
            period_label=stored.metadata.period_label,
            company_name=stored.metadata.company_name,
            notes=stored.metadata.notes,
        ),
    )
    # Decimals become strings so amounts survive the JSON column exactly.
    return dto.model_dump(mode="json")


def migrate_payload(data: Mapping[str, Any]) -> dict[str, Any]:
    """Upgrade a stored payload to :data:`STATEMENT_SCHEMA_VERSION`.

    Payloads written before versioning (no ``schema_version``) are treated as
    version 1. A payload from a newer schema cannot be read by this build.
    """

    out = dict(data)
    raw_version = out.get("schema_version", 1)
    try:
        version = int(raw_version)
    except (TypeError, ValueError) as exc:
        raise PersistenceError(
            f"stored statement has an invalid schema_version: {raw_version!r}"
        ) from exc
    if version > STATEMENT_SCHEMA_VERSION:
        raise PersistenceError(
            f"stored statement uses schema version {version}; "
            f"this version of cashflow-statement reads up to {STATEMENT_SCHEMA_VERSION}"
        )
    # Version 1 is current; later upgrades chain here (v1 -> v2 -> ...).
    out["schema_version"] = STATEMENT_SCHEMA_VERSION
    return out


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes; everything is written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def from_row(row: CfStatement) -> StoredStatement:
    try:
        dto = StatementPayload.model_validate(migrate_payload(row.payload))
    except ValidationError as exc:
        raise PersistenceError(
            f"stored statement {row.id} has an unreadable payload: {exc}"
        ) from exc
    body = dto.statement
    return StoredStatement(
        id=row.id,
        timestamp=_as_utc(row.created_at),
        statement=CashFlowStatement(
            operating_activities=_items(body.operating_activities),
            investing_activities=_items(body.investing_activities),
            financing_activities=_items(body.financing_activities),
            net_increase=body.net_increase,
            beginning_cash=body.beginning_cash,
            ending_cash=body.ending_cash,
        ),
        extracted=ExtractedData.from_mapping(dto.extracted),
        balances=BalanceInputs(dto.balances.beginning_cash, dto.balances.ending_cash),
        variance=dto.variance,
        metadata=StatementMetadata(
            period_label=dto.metadata.period_label,
            company_name=dto.metadata.company_name,
            notes=dto.metadata.notes,
        ),
        schema_version=dto.schema_version,
    )


def new_statement_id() -> str:
    return f"{ID_PREFIX}{uuid.uuid4().hex}"


# ---------------------------------------------------------------------------
# SQL adapter
# ---------------------------------------------------------------------------


class SqlStatementStore:
    """:class:`StatementStore` backed by the ``cf_statements`` table.

    Parameters
    ----------
    database_url:
        SQLAlchemy URL. ``None`` defers to ``DATABASE_URL`` and then the local
        SQLite default (see ``db.client``).
    """

    def __init__(self, database_url: str | None = None) -> None:
        self.database_url = database_url

    def _filtered(self, stmt: Any, statement_filter: StatementFilter | None) -> Any:
        if statement_filter is None:
            return stmt
        if statement_filter.max_variance is not None:
            stmt = stmt.where(func.abs(CfStatement.variance) <= statement_filter.max_variance)
        if statement_filter.start is not None:
            stmt = stmt.where(CfStatement.created_at >= _as_utc(statement_filter.start))
        if statement_filter.end is not None:
            stmt = stmt.where(CfStatement.created_at <= _as_utc(statement_filter.end))
        return stmt

    def save(
        self,
        statement: CashFlowStatement,
        extracted: ExtractedData,
        balances: BalanceInputs,
        *,
        metadata: StatementMetadata | None = None,
        now: datetime | None = None,
    ) -> StoredStatement:
        """Persist a reconciled statement and return the stored record.

        Raises
        ------
        SaveRejectedError
            When the variance is at or over the save limit. Nothing is written.
        PersistenceError
            When the database write fails.
        """

        variance = reconcile(statement).variance
        ensure_saveable(variance)

        stored = StoredStatement(
            id=new_statement_id(),
            timestamp=_as_utc(now or datetime.now(UTC)),
            statement=statement,
            extracted=extracted,
            balances=balances,
            variance=variance,
            metadata=metadata or StatementMetadata(),
            schema_version=STATEMENT_SCHEMA_VERSION,
        )
        row = CfStatement(
            id=stored.id,
            created_at=stored.timestamp,
            schema_version=stored.schema_version,
            variance=variance.quantize(Decimal("0.01")),
            period_label=stored.metadata.period_label,
            company_name=stored.metadata.company_name,
            notes=stored.metadata.notes,
            payload=to_payload(stored),
        )
        try:
            with session_scope(database_url=self.database_url) as session:
                session.add(row)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save statement: {exc}") from exc
        _logger.info("saved statement %s (variance=%s)", stored.id, variance)
        return stored

    def list(self, statement_filter: StatementFilter | None = None) -> list[StoredStatement]:
        newest_first = statement_filter.newest_first if statement_filter is not None else True
        order = (
            (CfStatement.created_at.desc(), CfStatement.id.desc())
            if newest_first
            else (CfStatement.created_at.asc(), CfStatement.id.asc())
        )
        stmt = self._filtered(select(CfStatement), statement_filter).order_by(*order)
        try:
            with session_scope(database_url=self.database_url) as session:
                rows = session.scalars(stmt).all()
                return [from_row(r) for r in rows]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to list statements: {exc}") from exc

    def get(self, statement_id: str) -> StoredStatement | None:
        try:
            with session_scope(database_url=self.database_url) as session:
                row = session.get(CfStatement, statement_id)
                return from_row(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load statement {statement_id}: {exc}") from exc

    def delete(self, statement_id: str) -> bool:
        try:
            with session_scope(database_url=self.database_url) as session:
                result = session.execute(delete(CfStatement).where(CfStatement.id == statement_id))
                deleted = bool(result.rowcount)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to delete statement {statement_id}: {exc}") from exc
        if deleted:
            _logger.info("deleted statement %s", statement_id)
        return deleted

    def count(self, statement_filter: StatementFilter | None = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(CfStatement), statement_filter)
        try:
            with session_scope(database_url=self.database_url) as session:
                return int(session.scalar(stmt) or 0)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to count statements: {exc}") from exc

    def clear(self) -> int:
        try:
            with session_scope(database_url=self.database_url) as session:
                result = session.execute(delete(CfStatement))
                removed = int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to clear statements: {exc}") from exc
        _logger.info("cleared %d statements", removed)
        return removed


__all__ = [
    "STATEMENT_SCHEMA_VERSION",
    "SqlStatementStore",
    "StatementPayload",
    "StatementStore",
    "from_row",
    "migrate_payload",
    "new_statement_id",
    "to_payload",
]
