"""Resolve parsed CSV rows into the canonical figures of a cash-flow statement.

The control flow is a table walk over :attr:`ChartOfAccounts.rules`: each rule
names a source statement, a keyword list and a sign convention. The only
non-tabular figure is the accrued-liabilities change, which the chart
provides as a strategy.

Extraction never raises. An account that cannot be found resolves to zero,
which keeps partial uploads usable.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from .chart import DEFAULT_CHART, ChartOfAccounts, FieldRule, StatementSource, apply_sign
from .logging_setup import get_logger
from .matching import find_account
from .models import CanonicalField, ExtractedData, PeriodTag, RawRow
from .periods import balance_sheet_change

_logger = get_logger("cashflow_statement.extract")


def _income_rows(rows: Sequence[RawRow]) -> list[RawRow]:
    # Comparative income statements: only the reporting period feeds the statement.
    return [r for r in rows if r.period is not PeriodTag.PREVIOUS]


def _resolve(rule: FieldRule, income: Sequence[RawRow], balance: Sequence[RawRow]) -> Decimal:
    if rule.source is StatementSource.INCOME_STATEMENT:
        raw = find_account(income, rule.keywords)
    else:
        raw = sum(
            (balance_sheet_change(balance, family) for family in rule.keyword_families()),
            Decimal("0"),
        )
    return apply_sign(raw, rule.sign)


def extract_data(
    income_statement_rows: Sequence[RawRow],
    balance_sheet_rows: Sequence[RawRow],
    *,
    chart: ChartOfAccounts = DEFAULT_CHART,
) -> ExtractedData:
    """Build :class:`ExtractedData` from one income statement and one balance sheet.

    Parameters
    ----------
    income_statement_rows:
        Rows in document order; the first row matching a keyword wins.
    balance_sheet_rows:
        Rows from a comparative balance sheet; figures are period deltas.
    chart:
        Keyword tables and the accrued-liabilities strategy.
    """

    income = _income_rows(income_statement_rows)
    balance = list(balance_sheet_rows)

    values: dict[CanonicalField, Decimal] = {}
    for rule in chart.rules:
        values[rule.field] = _resolve(rule, income, balance)

    values[CanonicalField.ACCRUED_LIABILITIES_CHANGE] = chart.accrued_liabilities(
        balance,
        deferred_revenue_change=values.get(CanonicalField.DEFERRED_REVENUE_CHANGE, Decimal("0")),
    )

    for canonical, value in values.items():
        _logger.debug("%s = %s", canonical.value, value)

    data = ExtractedData.from_mapping(values)
    matched = sum(1 for v in values.values() if v != 0)
    _logger.info(
        "extracted %d/%d non-zero fields from %d income-statement and %d balance-sheet rows"
        " (chart=%s)",
        matched,
        len(values),
        len(income),
        len(balance),
        chart.name,
    )
    return data


__all__ = ["extract_data"]
