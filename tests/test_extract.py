import json
from decimal import Decimal
from pathlib import Path

import pytest

from cashflow_statement.chart import (
    DEFAULT_CHART,
    KeywordAccruedLiabilities,
    accrued_liabilities_change,
    load_chart,
)
from cashflow_statement.errors import ChartConfigError
from cashflow_statement.extract import extract_data
from cashflow_statement.models import CanonicalField, ExtractedData, PeriodTag, RawRow

CUR = PeriodTag.CURRENT
PREV = PeriodTag.PREVIOUS


def _is(name: str, amount: str, period: PeriodTag = PeriodTag.UNLABELED) -> RawRow:
    return RawRow(account_name=name, amount=Decimal(amount), period=period)


def _bs(name: str, previous: str, current: str) -> list[RawRow]:
    return [
        RawRow(account_name=name, amount=Decimal(current), period=CUR),
        RawRow(account_name=name, amount=Decimal(previous), period=PREV),
    ]


def test_scenario_a_receivables_and_payables():
    income = [_is("Net Income", "10000")]
    balance = [*_bs("Accounts Receivable", "5000", "7000"), *_bs("Accounts Payable", "3000", "3000")]

    data = extract_data(income, balance)

    assert data.net_income == Decimal("10000")
    assert data.accounts_receivable_change == Decimal("-2000")
    assert data.accounts_payable_change == Decimal("0")


def test_empty_inputs_give_all_zero_data():
    assert extract_data([], []) == ExtractedData()


def test_asset_fields_are_negated_and_liability_fields_are_as_is():
    balance = [
        *_bs("Inventory", "100", "160"),
        *_bs("Prepaid Expenses", "50", "20"),
        *_bs("Other Assets", "10", "15"),
        *_bs("Accounts Payable", "400", "450"),
        *_bs("Deferred Revenue", "90", "60"),
    ]
    data = extract_data([], balance)

    assert data.inventory_change == Decimal("-60")
    assert data.prepaid_and_other_current_assets_change == Decimal("30")
    assert data.other_assets_change == Decimal("-5")
    assert data.accounts_payable_change == Decimal("50")
    assert data.deferred_revenue_change == Decimal("-30")


def test_income_lookups_ignore_previous_period_rows():
    income = [
        _is("Net Income", "800", PREV),
        _is("Net Income", "1000", CUR),
        _is("Depreciation and Amortization", "75", CUR),
        _is("Dividends Paid", "20", CUR),
    ]
    data = extract_data(income, [])
    assert (data.net_income, data.depreciation, data.dividends_paid) == (
        Decimal("1000"),
        Decimal("75"),
        Decimal("20"),
    )


def test_capital_expenditures_are_a_magnitude():
    up = extract_data([], _bs("Property and Equipment", "10000", "12500"))
    down = extract_data([], _bs("Property and Equipment", "12500", "10000"))
    assert up.capital_expenditures == Decimal("2500")
    assert down.capital_expenditures == Decimal("2500")


@pytest.mark.parametrize(
    ("previous", "current", "proceeds", "repayments"),
    [
        ("5000", "8000", "3000", "0"),
        ("5000", "4000", "0", "1000"),
        ("5000", "5000", "0", "0"),
    ],
)
def test_debt_delta_splits_into_one_leg(previous, current, proceeds, repayments):
    data = extract_data([], _bs("Long-Term Debt", previous, current))
    assert data.debt_proceeds == Decimal(proceeds)
    assert data.debt_repayments == Decimal(repayments)
    assert data.debt_proceeds == 0 or data.debt_repayments == 0


def test_stock_issuance_sums_common_stock_and_apic():
    balance = [*_bs("Common Stock", "1000", "1500"), *_bs("Additional Paid-in Capital", "200", "900")]
    assert extract_data([], balance).stock_issuance == Decimal("1200")


def test_opening_balance_equity_is_the_raw_delta():
    data = extract_data([], _bs("Opening Balance Equity", "0", "-350"))
    assert data.opening_balance_equity == Decimal("-350")


def test_accrued_liabilities_change_formula():
    assert accrued_liabilities_change(
        Decimal("500"), Decimal("120"), Decimal("30"), Decimal("-10")
    ) == Decimal("400")


def test_accrued_liabilities_uses_net_other_current_liabilities_when_present():
    balance = [
        *_bs("Total Other Current Liabilities", "1000", "1500"),
        *_bs("Deferred Revenue", "300", "420"),
        *_bs("Total Credit Card", "80", "110"),
        *_bs("Operating Lease Liabilities", "900", "890"),
    ]
    data = extract_data([], balance)
    assert data.deferred_revenue_change == Decimal("120")
    assert data.accrued_liabilities_change == Decimal("500") - Decimal("120") + Decimal("30") - Decimal("10")


def test_accrued_liabilities_falls_back_to_accrued_accounts():
    data = extract_data([], _bs("Accrued Liabilities", "2000", "2200"))
    assert data.accrued_liabilities_change == Decimal("200")


def test_unmatched_fields_are_zero():
    data = extract_data([_is("Revenue", "100")], _bs("Cash", "1", "2"))
    assert all(v == 0 for v in data.as_dict().values())


def test_load_chart_overrides_keywords_and_accrued_strategy(tmp_path: Path):
    path = tmp_path / "chart.json"
    path.write_text(
        json.dumps(
            {
                "name": "retail",
                "fields": {"accounts_receivable_change": {"keywords": ["customer balances"]}},
                "accrued_liabilities": {"strategy": "keywords", "keywords": ["wages payable"]},
            }
        ),
        encoding="utf-8",
    )
    chart = load_chart(path)

    assert chart.name == "retail"
    assert chart.rule_for(CanonicalField.ACCOUNTS_RECEIVABLE_CHANGE).keywords == ("customer balances",)
    assert chart.rule_for(CanonicalField.NET_INCOME) == DEFAULT_CHART.rule_for(CanonicalField.NET_INCOME)
    assert chart.accrued_liabilities == KeywordAccruedLiabilities(("wages payable",))

    balance = [*_bs("Customer Balances", "10", "40"), *_bs("Wages Payable", "5", "9")]
    data = extract_data([], balance, chart=chart)
    assert data.accounts_receivable_change == Decimal("-30")
    assert data.accrued_liabilities_change == Decimal("4")


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        json.dumps({"fields": {}}),
        json.dumps({"name": "x", "fields": {"no_such_field": {"keywords": ["a"]}}}),
        json.dumps({"name": "x", "fields": {"net_income": {"keywords": ["a"], "sign": "negate"}}}),
        json.dumps({"name": "x", "fields": {"net_income": {"keywords": [" "]}}}),
        json.dumps({"name": "x", "fields": {"accrued_liabilities_change": {"keywords": ["a"]}}}),
        json.dumps({"name": "x", "accrued_liabilities": {"strategy": "keywords"}}),
    ],
)
def test_load_chart_rejects_invalid_files(tmp_path: Path, payload: str):
    path = tmp_path / "chart.json"
    path.write_text(payload, encoding="utf-8")
    with pytest.raises(ChartConfigError):
        load_chart(path)


def test_load_chart_missing_file(tmp_path: Path):
    with pytest.raises(ChartConfigError):
        load_chart(tmp_path / "missing.json")
