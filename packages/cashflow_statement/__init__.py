"""Public interface for the ``cashflow_statement`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
Persistence (``cashflow_statement.persistence``) is imported on demand because
it pulls in SQLAlchemy and the ``db`` library.
"""

from .api import (
    Derivation,
    derive_cash_flow,
    derive_cash_flow_from_files,
    save_derivation,
)
from .assemble import assemble_statement
from .chart import DEFAULT_CHART, ChartOfAccounts, accrued_liabilities_change, load_chart
from .errors import ChartConfigError, PersistenceError, SaveRejectedError
from .export import format_amount, render_csv, render_text
from .extract import extract_data
from .ingest import parse_rows
from .models import (
    BalanceInputs,
    CanonicalField,
    CashFlowLineItem,
    CashFlowStatement,
    ExtractedData,
    PeriodTag,
    RawRow,
    StatementFilter,
    StatementMetadata,
    StoredStatement,
)
from .reconcile import (
    BALANCED_TOLERANCE,
    SAVE_VARIANCE_LIMIT,
    Reconciliation,
    ensure_saveable,
    reconcile,
)

__all__ = [
    # API
    "derive_cash_flow",
    "derive_cash_flow_from_files",
    "save_derivation",
    "parse_rows",
    "extract_data",
    "assemble_statement",
    "reconcile",
    "ensure_saveable",
    "render_csv",
    "render_text",
    "format_amount",
    "load_chart",
    "accrued_liabilities_change",
    # Models / types
    "Derivation",
    "RawRow",
    "PeriodTag",
    "CanonicalField",
    "ExtractedData",
    "BalanceInputs",
    "CashFlowLineItem",
    "CashFlowStatement",
    "StatementMetadata",
    "StatementFilter",
    "StoredStatement",
    "Reconciliation",
    "ChartOfAccounts",
    "DEFAULT_CHART",
    "SAVE_VARIANCE_LIMIT",
    "BALANCED_TOLERANCE",
    # Errors
    "SaveRejectedError",
    "PersistenceError",
    "ChartConfigError",
]
