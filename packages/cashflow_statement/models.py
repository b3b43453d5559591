"""Data models for ``cashflow_statement``.

Money is represented as :class:`decimal.Decimal` throughout the core so that
subtotals, deltas, and the reconciliation variance are exact. Rounding to two
decimals happens only when values are rendered (see ``export.py``) or stored
in a NUMERIC column.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

ZERO = Decimal("0")

# ---------------------------------------------------------------------------
# Parsed CSV rows
# ---------------------------------------------------------------------------


class PeriodTag(StrEnum):
    """Which reporting period an amount column belongs to."""

    CURRENT = "current"
    PREVIOUS = "previous"
    UNLABELED = "unlabeled"


@dataclass(frozen=True, slots=True)
class RawRow:
    """One account amount read from a CSV export.

    A balance-sheet account that appears in both periods of a comparative
    export yields two rows sharing ``account_name``.

    Attributes
    ----------
    account_name:
        Trimmed account label as exported (e.g. ``"11000 - Accounts Receivable"``).
    amount:
        Signed amount; accounting parentheses are already applied.
    period:
        Period marker derived from the amount column the value came from.
    period_label:
        Text inside the amount column's parentheses, when present
        (``"As of Dec 31, 2024"``).
    as_of:
        The label parsed as a date, when it reads as one.
    """

    account_name: str
    amount: Decimal
    period: PeriodTag = PeriodTag.UNLABELED
    period_label: str | None = None
    as_of: date | None = None


type RawRows = Sequence[RawRow]


# ---------------------------------------------------------------------------
# Canonical figures
# ---------------------------------------------------------------------------


class CanonicalField(StrEnum):
    """Financial concepts that raw account names are mapped onto.

    Values equal the attribute names on :class:`ExtractedData`.
    """

    NET_INCOME = "net_income"
    DEPRECIATION = "depreciation"
    ACCOUNTS_RECEIVABLE_CHANGE = "accounts_receivable_change"
    INVENTORY_CHANGE = "inventory_change"
    PREPAID_AND_OTHER_CURRENT_ASSETS_CHANGE = "prepaid_and_other_current_assets_change"
    OTHER_ASSETS_CHANGE = "other_assets_change"
    ACCOUNTS_PAYABLE_CHANGE = "accounts_payable_change"
    ACCRUED_LIABILITIES_CHANGE = "accrued_liabilities_change"
    DEFERRED_REVENUE_CHANGE = "deferred_revenue_change"
    CAPITAL_EXPENDITURES = "capital_expenditures"
    DEBT_PROCEEDS = "debt_proceeds"
    DEBT_REPAYMENTS = "debt_repayments"
    STOCK_ISSUANCE = "stock_issuance"
    DIVIDENDS_PAID = "dividends_paid"
    OPENING_BALANCE_EQUITY = "opening_balance_equity"


@dataclass(frozen=True, slots=True)
class ExtractedData:
    """Canonical figures resolved from one pair of uploads.

    Every field defaults to zero; an unmatched account is a legitimate
    "no activity this period" value rather than an error. Sign conventions are
    already applied (asset increases are negative, liability increases are
    positive, capital expenditures are a magnitude).
    """

    net_income: Decimal = ZERO
    depreciation: Decimal = ZERO
    accounts_receivable_change: Decimal = ZERO
    inventory_change: Decimal = ZERO
    prepaid_and_other_current_assets_change: Decimal = ZERO
    other_assets_change: Decimal = ZERO
    accounts_payable_change: Decimal = ZERO
    accrued_liabilities_change: Decimal = ZERO
    deferred_revenue_change: Decimal = ZERO
    capital_expenditures: Decimal = ZERO
    debt_proceeds: Decimal = ZERO
    debt_repayments: Decimal = ZERO
    stock_issuance: Decimal = ZERO
    dividends_paid: Decimal = ZERO
    opening_balance_equity: Decimal = ZERO

    def get(self, canonical: CanonicalField) -> Decimal:
        return getattr(self, canonical.value)

    def as_dict(self) -> dict[CanonicalField, Decimal]:
        return {CanonicalField(f.name): getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_mapping(cls, values: dict[CanonicalField, Decimal]) -> ExtractedData:
        return cls(**{CanonicalField(k).value: Decimal(v) for k, v in values.items()})


@dataclass(frozen=True, slots=True)
class BalanceInputs:
    """Cash anchors entered by the user; never derived from the CSVs."""

    beginning_cash: Decimal
    ending_cash: Decimal


# ---------------------------------------------------------------------------
# Assembled statement
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CashFlowLineItem:
    description: str
    amount: Decimal
    indent_level: int = 0

    @property
    def is_total(self) -> bool:
        return self.description.lower().startswith("net cash")

    @property
    def is_subheading(self) -> bool:
        """Zero-amount, non-total lines are display-only headings."""

        return self.amount == 0 and not self.is_total


@dataclass(frozen=True, slots=True)
class CashFlowStatement:
    """A three-section indirect-method statement.

    ``net_increase`` equals the sum of the three sections' net-cash totals.
    ``beginning_cash`` and ``ending_cash`` are passed through from
    :class:`BalanceInputs` unchanged.
    """

    operating_activities: tuple[CashFlowLineItem, ...]
    investing_activities: tuple[CashFlowLineItem, ...]
    financing_activities: tuple[CashFlowLineItem, ...]
    net_increase: Decimal
    beginning_cash: Decimal
    ending_cash: Decimal

    def sections(self) -> tuple[tuple[str, tuple[CashFlowLineItem, ...]], ...]:
        return (
            ("Cash Flows from Operating Activities", self.operating_activities),
            ("Cash Flows from Investing Activities", self.investing_activities),
            ("Cash Flows from Financing Activities", self.financing_activities),
        )


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StatementMetadata:
    period_label: str | None = None
    company_name: str | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class StoredStatement:
    """A saved statement. Created by an explicit save and never mutated.

    ``variance`` is ``ending_cash - (beginning_cash + net_increase)`` frozen at
    save time.
    """

    id: str
    timestamp: datetime
    statement: CashFlowStatement
    extracted: ExtractedData
    balances: BalanceInputs
    variance: Decimal
    metadata: StatementMetadata = field(default_factory=StatementMetadata)
    schema_version: int = 1


@dataclass(frozen=True, slots=True)
class StatementFilter:
    """Query options for listing stored statements.

    Attributes
    ----------
    max_variance:
        Keep only statements with ``abs(variance) <= max_variance``.
    start / end:
        Inclusive bounds on the save timestamp.
    newest_first:
        Sort order on the save timestamp.
    """

    max_variance: Decimal | None = None
    start: datetime | None = None
    end: datetime | None = None
    newest_first: bool = True


__all__ = [
    "BalanceInputs",
    "CanonicalField",
    "CashFlowLineItem",
    "CashFlowStatement",
    "ExtractedData",
    "PeriodTag",
    "RawRow",
    "RawRows",
    "StatementFilter",
    "StatementMetadata",
    "StoredStatement",
]
