"""Chart-of-accounts configuration: keyword tables and derivation rules.

Which account names feed which canonical figure is business specific: the
default table below was tuned on a NetSuite-style chart with numbered GL
accounts, with plain-name fallbacks for simpler exports. Everything a tenant
might need to change lives in a :class:`ChartOfAccounts` value so the
extractor's control flow stays fixed:

- ``rules``: one :class:`FieldRule` per canonical figure (source statement,
  ordered keywords, sign convention);
- ``accrued_liabilities``: the strategy that derives the accrued-liabilities
  change, which on the observed chart is a small formula over several
  liability accounts rather than a single keyword lookup.

A JSON override file can replace keyword lists and the accrued strategy (see
:func:`load_chart`). Sources and sign conventions are fixed per field.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import StrEnum
from os import PathLike
from pathlib import Path
from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import ChartConfigError
from .matching import select_matching_rows
from .models import CanonicalField, RawRow
from .periods import balance_sheet_change

# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


class StatementSource(StrEnum):
    INCOME_STATEMENT = "income_statement"
    BALANCE_SHEET = "balance_sheet"


class SignConvention(StrEnum):
    """How a raw value is turned into the canonical figure.

    - ``AS_IS``: income-statement amounts, liability and equity deltas.
    - ``NEGATE``: asset deltas (an asset increase is a use of cash).
    - ``ABSOLUTE``: magnitude only; direction is applied by the assembler.
    - ``POSITIVE_PART``: ``max(0, delta)``.
    - ``NEGATIVE_PART``: ``abs(min(0, delta))``.
    """

    AS_IS = "as_is"
    NEGATE = "negate"
    ABSOLUTE = "absolute"
    POSITIVE_PART = "positive_part"
    NEGATIVE_PART = "negative_part"


def apply_sign(value: Decimal, sign: SignConvention) -> Decimal:
    match sign:
        case SignConvention.AS_IS:
            return value
        case SignConvention.NEGATE:
            return -value
        case SignConvention.ABSOLUTE:
            return abs(value)
        case SignConvention.POSITIVE_PART:
            return max(Decimal("0"), value)
        case SignConvention.NEGATIVE_PART:
            return abs(min(Decimal("0"), value))
    raise ValueError(f"unknown sign convention: {sign!r}")


@dataclass(frozen=True, slots=True)
class FieldRule:
    """One row of the extraction table.

    Attributes
    ----------
    field:
        Canonical figure produced by this rule.
    source:
        Statement the keywords are matched against.
    keywords:
        Ordered, most specific first.
    sign:
        Convention applied to the raw lookup or delta.
    also:
        Additional keyword families (balance sheet only) whose deltas are
        summed with the primary one before the sign is applied.
    """

    field: CanonicalField
    source: StatementSource
    keywords: tuple[str, ...]
    sign: SignConvention = SignConvention.AS_IS
    also: tuple[tuple[str, ...], ...] = ()

    def keyword_families(self) -> tuple[tuple[str, ...], ...]:
        return (self.keywords, *self.also)


# ---------------------------------------------------------------------------
# Accrued liabilities
# ---------------------------------------------------------------------------


def accrued_liabilities_change(
    total_other_current_liabilities: Decimal,
    deferred_revenue: Decimal,
    credit_card: Decimal,
    operating_lease_liability: Decimal,
) -> Decimal:
    """Net the accrued-liabilities change out of its component deltas.

    ``total_other_current_liabilities`` already contains deferred revenue,
    which is reported on its own line, so it is subtracted here. Credit-card
    balances and operating-lease liabilities sit outside that subtotal on the
    observed chart and are added back.
    """

    return (
        total_other_current_liabilities
        - deferred_revenue
        + credit_card
        + operating_lease_liability
    )


class AccruedLiabilitiesStrategy(Protocol):
    def __call__(
        self, balance_sheet: Sequence[RawRow], *, deferred_revenue_change: Decimal
    ) -> Decimal: ...


@dataclass(frozen=True, slots=True)
class KeywordAccruedLiabilities:
    """Accrued liabilities as the plain delta of one keyword family."""

    keywords: tuple[str, ...]

    def __call__(
        self, balance_sheet: Sequence[RawRow], *, deferred_revenue_change: Decimal
    ) -> Decimal:
        return balance_sheet_change(balance_sheet, self.keywords)


@dataclass(frozen=True, slots=True)
class NetOtherCurrentLiabilities:
    """Accrued liabilities via :func:`accrued_liabilities_change`.

    When the balance sheet has no "total other current liabilities" row the
    chart is not the one this formula was built for, and ``fallback`` (if
    any) is used instead.
    """

    total_other_current_liabilities: tuple[str, ...]
    credit_card: tuple[str, ...]
    operating_lease_liability: tuple[str, ...]
    fallback: KeywordAccruedLiabilities | None = None

    def __call__(
        self, balance_sheet: Sequence[RawRow], *, deferred_revenue_change: Decimal
    ) -> Decimal:
        if not select_matching_rows(balance_sheet, self.total_other_current_liabilities):
            if self.fallback is not None:
                return self.fallback(balance_sheet, deferred_revenue_change=deferred_revenue_change)
            return Decimal("0")
        return accrued_liabilities_change(
            balance_sheet_change(balance_sheet, self.total_other_current_liabilities),
            deferred_revenue_change,
            balance_sheet_change(balance_sheet, self.credit_card),
            balance_sheet_change(balance_sheet, self.operating_lease_liability),
        )


# ---------------------------------------------------------------------------
# Chart
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ChartOfAccounts:
    name: str
    rules: tuple[FieldRule, ...]
    accrued_liabilities: AccruedLiabilitiesStrategy

    def rule_for(self, canonical: CanonicalField) -> FieldRule | None:
        for rule in self.rules:
            if rule.field is canonical:
                return rule
        return None


_IS = StatementSource.INCOME_STATEMENT
_BS = StatementSource.BALANCE_SHEET

_DEBT_KEYWORDS: tuple[str, ...] = (
    "long-term debt",
    "long term debt",
    "notes payable",
    "borrowings",
    "loans",
)

DEFAULT_RULES: tuple[FieldRule, ...] = (
    FieldRule(
        CanonicalField.NET_INCOME,
        _IS,
        ("net income", "net loss", "net earnings", "bottom line"),
    ),
    FieldRule(
        CanonicalField.DEPRECIATION,
        _IS,
        (
            "depreciation and amortization",
            "depreciation & amortization",
            "depreciation",
            "amortization",
            "d&a",
        ),
    ),
    FieldRule(
        CanonicalField.ACCOUNTS_RECEIVABLE_CHANGE,
        _BS,
        (
            "11000 - accounts receivable",
            "accounts receivable",
            "trade receivables",
            "receivables",
            "a/r",
        ),
        SignConvention.NEGATE,
    ),
    FieldRule(
        CanonicalField.INVENTORY_CHANGE,
        _BS,
        ("inventory asset", "inventories", "inventory"),
        SignConvention.NEGATE,
    ),
    FieldRule(
        CanonicalField.PREPAID_AND_OTHER_CURRENT_ASSETS_CHANGE,
        _BS,
        (
            "prepaid and other current assets",
            "prepaid expenses",
            "prepaids",
            "prepaid",
            "other current assets",
        ),
        SignConvention.NEGATE,
    ),
    FieldRule(
        CanonicalField.OTHER_ASSETS_CHANGE,
        _BS,
        ("other non-current assets", "other noncurrent assets", "other assets"),
        SignConvention.NEGATE,
    ),
    FieldRule(
        CanonicalField.ACCOUNTS_PAYABLE_CHANGE,
        _BS,
        (
            "20001 - accounts payable - trade",
            "accounts payable - trade",
            "accounts payable",
            "trade payables",
            "payables",
            "a/p",
        ),
    ),
    FieldRule(
        CanonicalField.DEFERRED_REVENUE_CHANGE,
        _BS,
        ("deferred revenue", "unearned revenue", "deferred income"),
    ),
    FieldRule(
        CanonicalField.CAPITAL_EXPENDITURES,
        _BS,
        (
            "property, plant and equipment",
            "property, plant",
            "property and equipment",
            "fixed assets",
            "capital assets",
            "ppe",
        ),
        SignConvention.ABSOLUTE,
    ),
    FieldRule(CanonicalField.DEBT_PROCEEDS, _BS, _DEBT_KEYWORDS, SignConvention.POSITIVE_PART),
    FieldRule(CanonicalField.DEBT_REPAYMENTS, _BS, _DEBT_KEYWORDS, SignConvention.NEGATIVE_PART),
    FieldRule(
        CanonicalField.STOCK_ISSUANCE,
        _BS,
        ("common stock",),
        also=(("additional paid-in capital", "additional paid in capital", "apic"),),
    ),
    FieldRule(
        CanonicalField.DIVIDENDS_PAID,
        _IS,
        ("dividends paid", "dividend", "distributions"),
    ),
    FieldRule(
        CanonicalField.OPENING_BALANCE_EQUITY,
        _BS,
        ("opening balance equity", "opening balance"),
    ),
)

DEFAULT_ACCRUED_KEYWORDS: tuple[str, ...] = (
    "accrued expenses and other current liabilities",
    "accrued liabilities",
    "accrued expenses",
    "accrued",
)

DEFAULT_CHART = ChartOfAccounts(
    name="default",
    rules=DEFAULT_RULES,
    accrued_liabilities=NetOtherCurrentLiabilities(
        total_other_current_liabilities=("total other current liabilities",),
        credit_card=("total credit card", "credit card"),
        operating_lease_liability=(
            "operating lease liabilities",
            "operating lease liability",
            "lease liability",
        ),
        fallback=KeywordAccruedLiabilities(DEFAULT_ACCRUED_KEYWORDS),
    ),
)


# ---------------------------------------------------------------------------
# JSON overrides
# ---------------------------------------------------------------------------


class KeywordOverride(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    keywords: list[str]
    also: list[list[str]] | None = None

    @field_validator("keywords")
    @classmethod
    def _non_empty(cls, v: list[str]) -> list[str]:
        items = [k for k in v if k.strip()]
        if not items:
            raise ValueError("keywords must contain at least one non-empty entry")
        return items


class AccruedOverride(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    strategy: Literal["keywords", "net_other_current_liabilities"]
    keywords: list[str] = []
    total_other_current_liabilities: list[str] = []
    credit_card: list[str] = []
    operating_lease_liability: list[str] = []


class ChartFile(BaseModel):
    """Schema of a chart-of-accounts override file."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str
    fields: dict[CanonicalField, KeywordOverride] = {}
    accrued_liabilities: AccruedOverride | None = None


def _accrued_from_override(override: AccruedOverride) -> AccruedLiabilitiesStrategy:
    fallback = KeywordAccruedLiabilities(tuple(override.keywords)) if override.keywords else None
    if override.strategy == "keywords":
        if fallback is None:
            raise ChartConfigError("accrued_liabilities: 'keywords' strategy needs keywords")
        return fallback
    if not override.total_other_current_liabilities:
        raise ChartConfigError(
            "accrued_liabilities: 'net_other_current_liabilities' needs "
            "total_other_current_liabilities keywords"
        )
    return NetOtherCurrentLiabilities(
        total_other_current_liabilities=tuple(override.total_other_current_liabilities),
        credit_card=tuple(override.credit_card),
        operating_lease_liability=tuple(override.operating_lease_liability),
        fallback=fallback,
    )


def chart_from_file(
    chart_file: ChartFile, *, base: ChartOfAccounts = DEFAULT_CHART
) -> ChartOfAccounts:
    """Apply a validated override onto ``base`` and return the new chart."""

    rules: list[FieldRule] = []
    for rule in base.rules:
        override = chart_file.fields.get(rule.field)
        if override is None:
            rules.append(rule)
            continue
        also = rule.also
        if override.also is not None:
            also = tuple(tuple(group) for group in override.also if group)
        rules.append(replace(rule, keywords=tuple(override.keywords), also=also))

    unknown = set(chart_file.fields) - {r.field for r in base.rules}
    if unknown:
        names = ", ".join(sorted(f.value for f in unknown))
        raise ChartConfigError(f"fields without a keyword rule cannot be overridden: {names}")

    accrued = base.accrued_liabilities
    if chart_file.accrued_liabilities is not None:
        accrued = _accrued_from_override(chart_file.accrued_liabilities)

    return ChartOfAccounts(name=chart_file.name, rules=tuple(rules), accrued_liabilities=accrued)


def load_chart(path: str | PathLike[str]) -> ChartOfAccounts:
    """Load a JSON chart-of-accounts override file.

    Raises
    ------
    ChartConfigError
        When the file cannot be read, is not JSON, or fails validation.
    """

    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ChartConfigError(f"cannot read chart file {p}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ChartConfigError(f"chart file {p} is not valid JSON: {exc}") from exc
    try:
        chart_file = ChartFile.model_validate(raw)
    except ValidationError as exc:
        raise ChartConfigError(f"chart file {p} is invalid: {exc}") from exc
    return chart_from_file(chart_file)


__all__ = [
    "DEFAULT_CHART",
    "DEFAULT_RULES",
    "AccruedLiabilitiesStrategy",
    "ChartFile",
    "ChartOfAccounts",
    "FieldRule",
    "KeywordAccruedLiabilities",
    "NetOtherCurrentLiabilities",
    "SignConvention",
    "StatementSource",
    "accrued_liabilities_change",
    "apply_sign",
    "chart_from_file",
    "load_chart",
]
