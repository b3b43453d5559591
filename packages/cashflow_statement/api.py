"""Public API for deriving, reconciling and saving cash-flow statements.

The pipeline is: CSV text -> :func:`~.ingest.parse_rows` ->
:func:`~.extract.extract_data` -> :func:`~.assemble.assemble_statement` ->
:func:`~.reconcile.reconcile`. Every step is pure; only
:func:`save_derivation` touches storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike
from typing import TYPE_CHECKING

from .assemble import assemble_statement
from .chart import DEFAULT_CHART, ChartOfAccounts
from .extract import extract_data
from .ingest import empty_upload_warning, parse_rows, read_csv_text
from .logging_setup import get_logger
from .models import (
    BalanceInputs,
    CashFlowStatement,
    ExtractedData,
    RawRow,
    StatementMetadata,
    StoredStatement,
)
from .reconcile import Reconciliation, reconcile

if TYPE_CHECKING:
    from .persistence import StatementStore

_logger = get_logger("cashflow_statement.api")


@dataclass(frozen=True, slots=True)
class Derivation:
    """Everything produced by one run over a pair of uploads.

    ``warnings`` holds user-facing notices (for example an upload that parsed
    to zero rows). They never block the derivation.
    """

    balance_sheet_rows: tuple[RawRow, ...]
    income_statement_rows: tuple[RawRow, ...]
    extracted: ExtractedData
    balances: BalanceInputs
    statement: CashFlowStatement
    reconciliation: Reconciliation
    warnings: tuple[str, ...] = ()


def derive_cash_flow(
    balance_sheet_text: str,
    income_statement_text: str,
    balances: BalanceInputs,
    *,
    chart: ChartOfAccounts = DEFAULT_CHART,
    preamble_lines: int | None = None,
) -> Derivation:
    """Derive a reconciled statement from raw CSV text.

    Parameters
    ----------
    balance_sheet_text / income_statement_text:
        Full contents of the two exports.
    balances:
        Beginning and ending cash as entered by the user.
    chart:
        Keyword tables and accrued-liabilities strategy.
    preamble_lines:
        Lines above the header row in both files; ``None`` detects the header.
    """

    bs_rows = parse_rows(balance_sheet_text, preamble_lines=preamble_lines)
    is_rows = parse_rows(income_statement_text, preamble_lines=preamble_lines)

    warnings: list[str] = []
    if not bs_rows:
        warnings.append(
            empty_upload_warning(
                "balance sheet",
                balance_sheet_text,
                preamble_lines=preamble_lines,
                amount_header="Amount (As of ...)",
            )
        )
    if not is_rows:
        warnings.append(
            empty_upload_warning(
                "income statement",
                income_statement_text,
                preamble_lines=preamble_lines,
                amount_header="Amount",
            )
        )
    for w in warnings:
        _logger.warning(w)

    extracted = extract_data(is_rows, bs_rows, chart=chart)
    statement = assemble_statement(extracted, balances)
    rec = reconcile(statement)
    _logger.info(
        "derived statement: net_increase=%s variance=%s", statement.net_increase, rec.variance
    )
    return Derivation(
        balance_sheet_rows=tuple(bs_rows),
        income_statement_rows=tuple(is_rows),
        extracted=extracted,
        balances=balances,
        statement=statement,
        reconciliation=rec,
        warnings=tuple(warnings),
    )


def derive_cash_flow_from_files(
    balance_sheet_path: str | PathLike[str],
    income_statement_path: str | PathLike[str],
    balances: BalanceInputs,
    *,
    chart: ChartOfAccounts = DEFAULT_CHART,
    preamble_lines: int | None = None,
) -> Derivation:
    """File-path variant of :func:`derive_cash_flow`; ``OSError`` propagates."""

    return derive_cash_flow(
        read_csv_text(balance_sheet_path),
        read_csv_text(income_statement_path),
        balances,
        chart=chart,
        preamble_lines=preamble_lines,
    )


def save_derivation(
    store: StatementStore,
    derivation: Derivation,
    *,
    metadata: StatementMetadata | None = None,
) -> StoredStatement:
    """Save a derivation through ``store``.

    Raises :class:`~.errors.SaveRejectedError` when the variance is too large
    and :class:`~.errors.PersistenceError` when storage fails.
    """

    return store.save(
        derivation.statement,
        derivation.extracted,
        derivation.balances,
        metadata=metadata,
    )


__all__ = [
    "Derivation",
    "derive_cash_flow",
    "derive_cash_flow_from_files",
    "save_derivation",
]
