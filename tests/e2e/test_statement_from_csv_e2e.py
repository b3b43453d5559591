# ruff: noqa: I001
from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from cashflow_statement.api import derive_cash_flow_from_files, save_derivation
from cashflow_statement.errors import SaveRejectedError
from cashflow_statement.export import render_csv
from cashflow_statement.models import BalanceInputs, StatementFilter, StatementMetadata
from cashflow_statement.persistence import SqlStatementStore

from tests.helpers.db import bootstrap_sqlite_db

_DATA = Path(__file__).resolve().parents[1] / "data"


def test_e2e_netsuite_exports_to_stored_statement(tmp_path: Path):
    # -------------------------
    # Input (fixture file paths)
    # -------------------------
    bs_path = _DATA / "balance_sheet_comparative.csv"
    is_path = _DATA / "income_statement.csv"
    balances = BalanceInputs(beginning_cash=Decimal("50000"), ending_cash=Decimal("57900"))

    # -------------------------
    # Derive (6 preamble lines, as exported)
    # -------------------------
    derivation = derive_cash_flow_from_files(bs_path, is_path, balances, preamble_lines=6)
    detected = derive_cash_flow_from_files(bs_path, is_path, balances)
    assert detected.statement == derivation.statement
    assert derivation.warnings == ()

    # -------------------------
    # Expected figures
    # -------------------------
    x = derivation.extracted
    assert x.net_income == Decimal("10000.00")
    assert x.depreciation == Decimal("1200.00")
    assert x.accounts_receivable_change == Decimal("-2000.00")
    assert x.prepaid_and_other_current_assets_change == Decimal("-500.00")
    assert x.accounts_payable_change == Decimal("0")
    assert x.accrued_liabilities_change == Decimal("200.00")
    assert x.capital_expenditures == Decimal("2000.00")
    assert (x.debt_proceeds, x.debt_repayments) == (Decimal("0"), Decimal("1000.00"))
    assert x.stock_issuance == Decimal("2000.00")

    st = derivation.statement
    assert st.operating_activities[-1].amount == Decimal("8900.00")
    assert st.financing_activities[-1].amount == Decimal("1000.00")
    assert st.net_increase == Decimal("7900.00")
    assert derivation.reconciliation.balanced

    # -------------------------
    # Persist and read back
    # -------------------------
    store = SqlStatementStore(bootstrap_sqlite_db(tmp_path / "cf-e2e.db"))
    saved = save_derivation(
        store, derivation, metadata=StatementMetadata(period_label="FY2024", company_name="Acme Corp")
    )
    [listed] = store.list(StatementFilter(max_variance=Decimal("0.01")))
    assert listed == saved
    assert render_csv(listed.statement) == render_csv(st)


def test_e2e_unreconciled_statement_is_exportable_but_not_saved(tmp_path: Path):
    balances = BalanceInputs(beginning_cash=Decimal("50000"), ending_cash=Decimal("60400"))
    derivation = derive_cash_flow_from_files(
        _DATA / "balance_sheet_comparative.csv", _DATA / "income_statement.csv", balances
    )
    assert derivation.reconciliation.variance == Decimal("2500.00")
    assert "Cash at end of period,60400.00" in render_csv(derivation.statement)

    store = SqlStatementStore(bootstrap_sqlite_db(tmp_path / "cf-e2e.db"))
    with pytest.raises(SaveRejectedError):
        save_derivation(store, derivation)
    assert store.count() == 0
