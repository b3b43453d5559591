from decimal import Decimal

from cashflow_statement.matching import account_matches, find_account, select_matching_rows
from cashflow_statement.models import RawRow


def _row(name: str, amount: str = "1") -> RawRow:
    return RawRow(account_name=name, amount=Decimal(amount))


def test_account_matches_is_case_and_whitespace_insensitive():
    assert account_matches("20001 - Accounts  Payable - Trade", ["accounts payable"])
    assert account_matches("NET INCOME", ["net income"])
    assert not account_matches("Net Operating Income", ["net income"])
    assert not account_matches("Cash", ["", "  "])


def test_find_account_first_row_in_document_order_wins():
    rows = [_row("Revenue", "100"), _row("Net Income", "10"), _row("Net Income (adjusted)", "12")]
    assert find_account(rows, ["net income"]) == Decimal("10")


def test_find_account_any_keyword_on_the_earliest_row_wins():
    # Row order, not keyword order, decides single-value lookups.
    rows = [_row("Net Loss", "-5"), _row("Net Income", "10")]
    assert find_account(rows, ["net income", "net loss"]) == Decimal("-5")


def test_find_account_missing_is_zero():
    assert find_account([_row("Revenue", "100")], ["net income"]) == Decimal("0")
    assert find_account([], ["net income"]) == Decimal("0")


def test_select_matching_rows_prefers_most_specific_keyword():
    rows = [
        _row("Accounts Payable - Other"),
        _row("20001 - Accounts Payable - Trade"),
    ]
    picked = select_matching_rows(rows, ["20001 - accounts payable - trade", "accounts payable"])
    assert [r.account_name for r in picked] == ["20001 - Accounts Payable - Trade"]


def test_select_matching_rows_drops_subtotals_when_details_exist():
    rows = [
        _row("Accounts Receivable - Trade"),
        _row("Accounts Receivable - Other"),
        _row("Total Accounts Receivable"),
    ]
    picked = select_matching_rows(rows, ["accounts receivable"])
    assert [r.account_name for r in picked] == [
        "Accounts Receivable - Trade",
        "Accounts Receivable - Other",
    ]


def test_select_matching_rows_keeps_total_when_keyword_names_it():
    rows = [_row("Total Other Current Liabilities"), _row("Other Current Liabilities - Misc")]
    picked = select_matching_rows(rows, ["total other current liabilities"])
    assert [r.account_name for r in picked] == ["Total Other Current Liabilities"]


def test_select_matching_rows_falls_back_to_total_only_rows():
    rows = [_row("Total Fixed Assets")]
    assert select_matching_rows(rows, ["fixed assets"]) == rows


def test_select_matching_rows_no_match_is_empty():
    assert select_matching_rows([_row("Cash")], ["inventory"]) == []
