import csv
from decimal import Decimal
from io import StringIO

import pytest

from cashflow_statement.assemble import assemble_statement
from cashflow_statement.export import format_amount, render_csv, render_text
from cashflow_statement.models import BalanceInputs, ExtractedData


@pytest.fixture()
def statement():
    data = ExtractedData(
        net_income=Decimal("10000"),
        accounts_receivable_change=Decimal("-2000"),
        capital_expenditures=Decimal("1234.56"),
    )
    return assemble_statement(
        data, BalanceInputs(beginning_cash=Decimal("50000"), ending_cash=Decimal("60500"))
    )


@pytest.mark.parametrize(
    ("value", "plain", "display"),
    [
        (Decimal("1234.56"), "1234.56", "$1,234.56"),
        (Decimal("-1234.56"), "-1234.56", "($1,234.56)"),
        (Decimal("0"), "0.00", "$0.00"),
        (Decimal("-0.001"), "0.00", "$0.00"),
        (Decimal("1000000.005"), "1000000.01", "$1,000,000.01"),
    ],
)
def test_format_amount_variants(value, plain, display):
    assert format_amount(value, variant="plain") == plain
    assert format_amount(value, variant="display") == display


def test_format_amount_rejects_unknown_variant():
    with pytest.raises(ValueError):
        format_amount(Decimal("1"), variant="fancy")  # type: ignore[arg-type]


def test_render_csv_plain_layout(statement):
    rows = list(csv.reader(StringIO(render_csv(statement, variant="plain"))))

    assert rows[:3] == [["Statement of Cash Flows"], ["U.S. GAAP Indirect Method"], []]
    assert rows[3] == ["Cash Flows from Operating Activities"]
    assert rows[4] == ["Net income", "10000.00"]
    # Subheadings carry a blank amount.
    assert rows[5] == ["Adjustments to reconcile net income to net cash from operating activities:", ""]
    assert rows[6] == ["  Depreciation and amortization", ""]
    assert ["    Accounts receivable", "-2000.00"] in rows
    assert ["Net cash provided by operating activities", "8000.00"] in rows
    assert ["Capital expenditures", "-1234.56"] in rows
    assert ["Cash Flows from Financing Activities"] in rows
    assert rows[-3:] == [
        ["Net increase (decrease) in cash", "6765.44"],
        ["Cash at beginning of period", "50000.00"],
        ["Cash at end of period", "60500.00"],
    ]


def test_render_csv_display_variant_quotes_grouped_amounts(statement):
    text = render_csv(statement, variant="display")
    assert 'Capital expenditures,"($1,234.56)"' in text
    assert 'Net income,"$10,000.00"' in text


def test_render_text_includes_reconciliation(statement):
    text = render_text(statement)
    assert text.splitlines()[0] == "Statement of Cash Flows"
    assert "Calculated ending cash: $56,765.44" in text
    assert "Variance: $3,734.56 (discrepancy)" in text
