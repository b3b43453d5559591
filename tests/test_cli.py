from __future__ import annotations

import json
from datetime import datetime, time
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cashflow_statement.cli import _parse_bound, app, cmd_history
from cashflow_statement.persistence import SqlStatementStore

DATA_DIR = Path(__file__).resolve().parent / "data"
BALANCE_SHEET = DATA_DIR / "balance_sheet_comparative.csv"
INCOME_STATEMENT = DATA_DIR / "income_statement.csv"

runner = CliRunner()


def _generate(*extra: str, ending: str = "57900"):
    return runner.invoke(
        app,
        [
            "generate",
            "--balance-sheet",
            str(BALANCE_SHEET),
            "--income-statement",
            str(INCOME_STATEMENT),
            "--beginning-cash",
            "50,000",
            "--ending-cash",
            ending,
            *extra,
        ],
    )


def test_generate_prints_text_statement():
    result = _generate()
    assert result.exit_code == 0, result.output
    assert "Statement of Cash Flows" in result.output
    assert "Net cash provided by operating activities" in result.output
    assert "Variance: $0.00 (balanced)" in result.output


def test_generate_csv_to_file(tmp_path: Path):
    out = tmp_path / "statement.csv"
    result = _generate("--format", "csv", "--output", str(out))
    assert result.exit_code == 0, result.output
    text = out.read_text(encoding="utf-8")
    assert "Net increase (decrease) in cash,7900.00" in text
    assert "Capital expenditures,-2000.00" in text


def test_generate_save_then_history_show_delete():
    result = _generate("--save", "--company-name", "Acme", "--period-label", "FY2024")
    assert result.exit_code == 0, result.output
    assert "Saved statement stmt_" in result.output

    stored = SqlStatementStore().list()
    assert len(stored) == 1
    statement_id = stored[0].id

    history = runner.invoke(app, ["history"])
    assert history.exit_code == 0
    line = history.output.strip().splitlines()[-1].split("\t")
    assert line[0] == statement_id
    assert line[2:] == ["FY2024", "Acme", "0.00", "balanced"]

    shown = runner.invoke(app, ["show", statement_id])
    assert shown.exit_code == 0
    assert "# Company: Acme" in shown.output
    assert "Cash at end of period" in shown.output

    deleted = runner.invoke(app, ["delete", statement_id])
    assert deleted.exit_code == 0
    assert runner.invoke(app, ["show", statement_id]).exit_code == 1


def test_generate_save_rejected_still_prints_statement():
    result = _generate("--save", ending="60400")
    assert result.exit_code == 1
    assert "Statement of Cash Flows" in result.output
    assert "Error: Statement variance ($2,500.00) exceeds the $1,000.00 threshold." in result.output
    assert SqlStatementStore().count() == 0


def test_generate_reports_missing_file(tmp_path: Path):
    result = runner.invoke(
        app,
        [
            "generate",
            "--balance-sheet",
            str(tmp_path / "nope.csv"),
            "--income-statement",
            str(INCOME_STATEMENT),
            "--beginning-cash",
            "0",
            "--ending-cash",
            "0",
        ],
    )
    assert result.exit_code == 1
    assert "Error: File not found" in result.output


def test_generate_rejects_bad_amount():
    result = _generate(ending="lots")
    assert result.exit_code == 1
    assert "Error: ending cash is not a valid amount" in result.output


def test_generate_warns_on_empty_upload(tmp_path: Path):
    empty = tmp_path / "bs.csv"
    empty.write_text("Account,Balance\nCash,1\n", encoding="utf-8")
    result = runner.invoke(
        app,
        [
            "generate",
            "--balance-sheet",
            str(empty),
            "--income-statement",
            str(INCOME_STATEMENT),
            "--beginning-cash",
            "0",
            "--ending-cash",
            "10000",
        ],
    )
    assert result.exit_code == 0
    assert "Warning: No data was found in the balance sheet CSV." in result.output
    assert "Headers found: 'Account', 'Balance'" in result.output


def test_generate_with_chart_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    chart = tmp_path / "chart.json"
    chart.write_text(
        json.dumps({"name": "t", "fields": {"net_income": {"keywords": ["revenue"]}}}),
        encoding="utf-8",
    )
    monkeypatch.setenv("CASHFLOW_CHART_PATH", str(chart))
    result = _generate("--format", "csv", "--variant", "plain")
    assert result.exit_code == 0, result.output
    assert "Net income,50000.00" in result.output


def test_generate_invalid_chart_is_an_error(tmp_path: Path):
    chart = tmp_path / "chart.json"
    chart.write_text("{}", encoding="utf-8")
    result = _generate("--chart", str(chart))
    assert result.exit_code == 1
    assert "Error: chart file" in result.output


def test_history_empty_and_bad_dates():
    result = runner.invoke(app, ["history"])
    assert result.exit_code == 0
    assert "No saved statements." in result.output
    assert cmd_history(since="not a date at all") == 1


def test_delete_requires_target():
    result = runner.invoke(app, ["delete"])
    assert result.exit_code == 1
    assert runner.invoke(app, ["delete", "--all"]).output.strip() == "Deleted 0 statement(s)."


def test_init_db_creates_table(tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'fresh.db'}"
    result = runner.invoke(app, ["init-db", "--database-url", url])
    assert result.exit_code == 0
    assert SqlStatementStore(url).count() == 0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2026-10-19", datetime(2026, 10, 19, 23, 59, 59, 999999)),
        ("Oct 19 2026 5pm", datetime(2026, 10, 19, 17, 0)),
        ("Oct 19 2026 11pm", datetime(2026, 10, 19, 23, 0)),
        ("2026-10-19T08:30", datetime(2026, 10, 19, 8, 30)),
    ],
)
def test_until_bound_widens_only_bare_dates(raw: str, expected: datetime):
    assert _parse_bound(raw, end_of_day=True) == expected


def test_since_bound_starts_at_midnight():
    assert _parse_bound("2026-10-19", end_of_day=False).time() == time.min
