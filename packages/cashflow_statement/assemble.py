"""Indirect-method assembly of a :class:`CashFlowStatement`.

Pure and total: any :class:`ExtractedData` yields a statement, possibly with
zeroed lines. Capital expenditures are treated as a magnitude and always
presented as a use of cash.
"""

from __future__ import annotations

from decimal import Decimal

from .models import BalanceInputs, CashFlowLineItem, CashFlowStatement, ExtractedData

NET_INCOME = "Net income"
ADJUSTMENTS_HEADING = "Adjustments to reconcile net income to net cash from operating activities:"
DEPRECIATION = "Depreciation and amortization"
WORKING_CAPITAL_HEADING = "Changes in operating assets and liabilities:"
NET_CASH_OPERATING = "Net cash provided by operating activities"
CAPITAL_EXPENDITURES = "Capital expenditures"
NET_CASH_INVESTING = "Net cash used in investing activities"
DEBT_PROCEEDS = "Proceeds from debt"
DEBT_REPAYMENTS = "Repayment of debt"
STOCK_ISSUANCE = "Proceeds from stock issuance"
OPENING_BALANCE_EQUITY = "Opening balance equity adjustment (system migration)"
NET_CASH_FINANCING = "Net cash provided by (used in) financing activities"


def _working_capital(data: ExtractedData) -> list[tuple[str, Decimal]]:
    lines = [("Accounts receivable", data.accounts_receivable_change)]
    if data.inventory_change != 0:
        lines.append(("Inventory", data.inventory_change))
    lines += [
        ("Prepaid and other current assets", data.prepaid_and_other_current_assets_change),
        ("Other assets", data.other_assets_change),
        ("Accounts payable", data.accounts_payable_change),
        ("Accrued expenses and other current liabilities", data.accrued_liabilities_change),
        ("Deferred revenue", data.deferred_revenue_change),
    ]
    return lines


def net_cash_from_operating(data: ExtractedData) -> Decimal:
    """Net income plus depreciation plus every working-capital change."""

    return (
        data.net_income
        + data.depreciation
        + data.accounts_receivable_change
        + data.inventory_change
        + data.prepaid_and_other_current_assets_change
        + data.other_assets_change
        + data.accounts_payable_change
        + data.accrued_liabilities_change
        + data.deferred_revenue_change
    )


def net_cash_from_investing(data: ExtractedData) -> Decimal:
    return -abs(data.capital_expenditures)


def net_cash_from_financing(data: ExtractedData) -> Decimal:
    """Debt proceeds less repayments plus stock issuance less opening balance equity.

    Dividends paid are extracted but not part of this total.
    """

    return (
        data.debt_proceeds
        - data.debt_repayments
        + data.stock_issuance
        - data.opening_balance_equity
    )


def _operating_section(data: ExtractedData) -> tuple[CashFlowLineItem, ...]:
    items = [
        CashFlowLineItem(NET_INCOME, data.net_income),
        CashFlowLineItem(ADJUSTMENTS_HEADING, Decimal("0")),
        CashFlowLineItem(DEPRECIATION, data.depreciation, 1),
        CashFlowLineItem(WORKING_CAPITAL_HEADING, Decimal("0"), 1),
    ]
    items += [CashFlowLineItem(desc, amount, 2) for desc, amount in _working_capital(data)]
    items.append(CashFlowLineItem(NET_CASH_OPERATING, net_cash_from_operating(data)))
    return tuple(items)


def _investing_section(data: ExtractedData) -> tuple[CashFlowLineItem, ...]:
    capex = net_cash_from_investing(data)
    return (
        CashFlowLineItem(CAPITAL_EXPENDITURES, capex),
        CashFlowLineItem(NET_CASH_INVESTING, capex),
    )


def _financing_section(data: ExtractedData) -> tuple[CashFlowLineItem, ...]:
    items: list[CashFlowLineItem] = []
    if data.debt_proceeds > 0:
        items.append(CashFlowLineItem(DEBT_PROCEEDS, data.debt_proceeds))
    if data.debt_repayments > 0:
        items.append(CashFlowLineItem(DEBT_REPAYMENTS, -data.debt_repayments))
    if data.stock_issuance > 0:
        items.append(CashFlowLineItem(STOCK_ISSUANCE, data.stock_issuance))
    if data.opening_balance_equity != 0:
        items.append(CashFlowLineItem(OPENING_BALANCE_EQUITY, -data.opening_balance_equity))
    items.append(CashFlowLineItem(NET_CASH_FINANCING, net_cash_from_financing(data)))
    return tuple(items)


def assemble_statement(data: ExtractedData, balances: BalanceInputs) -> CashFlowStatement:
    """Build the three-section statement from canonical figures and cash anchors.

    ``net_increase`` is operating cash less ``abs(capital_expenditures)`` plus
    financing cash, i.e. the sum of the three section totals. The cash anchors
    are copied from ``balances`` as entered.
    """

    net_increase = (
        net_cash_from_operating(data)
        + net_cash_from_investing(data)
        + net_cash_from_financing(data)
    )
    return CashFlowStatement(
        operating_activities=_operating_section(data),
        investing_activities=_investing_section(data),
        financing_activities=_financing_section(data),
        net_increase=net_increase,
        beginning_cash=balances.beginning_cash,
        ending_cash=balances.ending_cash,
    )


__all__ = [
    "assemble_statement",
    "net_cash_from_financing",
    "net_cash_from_investing",
    "net_cash_from_operating",
]
