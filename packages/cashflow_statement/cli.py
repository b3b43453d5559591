# ruff: noqa: I001
"""CLI for the ``cashflow_statement`` package.

This module exposes callable command handlers (``cmd_generate``,
``cmd_history`` ...) and a Typer-based console interface. Environment
variables (``DATABASE_URL``, ``CASHFLOW_PREAMBLE_LINES``,
``CASHFLOW_CHART_PATH``, ``CASHFLOW_STATEMENT_LOG_LEVEL``) are loaded from a
local ``.env`` using ``python-dotenv`` before delegating to command logic.
Business logic lives in ``cashflow_statement.api`` and related modules.

Handlers print results to stdout, diagnostics as ``Error: ...`` or
``Warning: ...`` to stderr, and return a process exit code.
"""

from __future__ import annotations

import os
import sys
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Annotated, Literal

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .chart import DEFAULT_CHART, ChartOfAccounts, load_chart
from .errors import ChartConfigError, PersistenceError, SaveRejectedError
from .export import AmountVariant, render_csv, render_text
from .logging_setup import configure_logging
from .models import (
    BalanceInputs,
    CashFlowStatement,
    StatementFilter,
    StatementMetadata,
    StoredStatement,
)
from .reconcile import is_balanced

type OutputFormat = Literal["text", "csv"]


# ---- Small module-level helpers used by CLI commands -------------------------


def _parse_money(raw: str, *, name: str) -> Decimal:
    from .ingest import clean_amount

    try:
        return clean_amount(raw)
    except ValueError as exc:
        raise ValueError(f"{name} is not a valid amount: {raw!r}") from exc


def _resolve_preamble_lines(value: int | None) -> int | None:
    """Explicit option wins; else ``CASHFLOW_PREAMBLE_LINES``; else auto-detect."""

    if value is not None:
        return value
    env_val = os.getenv("CASHFLOW_PREAMBLE_LINES")
    if env_val is None or not env_val.strip():
        return None
    try:
        return int(env_val.strip())
    except ValueError as exc:
        raise ValueError(f"CASHFLOW_PREAMBLE_LINES must be an integer, got {env_val!r}") from exc


def _resolve_chart(chart_path: str | None) -> ChartOfAccounts:
    path = chart_path or os.getenv("CASHFLOW_CHART_PATH")
    if not path:
        return DEFAULT_CHART
    return load_chart(path)


def _parse_bound(raw: str | None, *, end_of_day: bool) -> datetime | None:
    """Parse a ``--since``/``--until`` value; bare dates cover the whole day."""

    if raw is None or not raw.strip():
        return None
    from dateutil import parser as date_parser

    midnight = datetime.combine(date.today(), time.min)
    try:
        parsed = date_parser.parse(raw, default=midnight)
        if end_of_day:
            # Time fields absent from ``raw`` take the default's values.
            last_instant = datetime.combine(midnight.date(), time.max)
            late = date_parser.parse(raw, default=last_instant)
            if parsed.time() == time.min and late.time() == time.max:
                parsed = datetime.combine(parsed.date(), time.max, tzinfo=parsed.tzinfo)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"invalid date: {raw!r}") from exc
    return parsed


def _open_store(database_url: str | None):
    """Return a SQL store, creating the schema for local SQLite databases."""

    from sqlalchemy.engine import make_url
    from sqlalchemy.exc import SQLAlchemyError

    from db.client import create_schema, resolve_database_url
    from .persistence import SqlStatementStore

    url = resolve_database_url(database_url)
    try:
        if make_url(url).get_backend_name() == "sqlite":
            create_schema(database_url=url)
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Failed to prepare database: {exc}") from exc
    return SqlStatementStore(url)


def _render(statement: CashFlowStatement, *, fmt: OutputFormat, variant: AmountVariant) -> str:
    if fmt == "csv":
        return render_csv(statement, variant=variant)
    return render_text(statement, variant=variant)


def _history_line(s: StoredStatement) -> str:
    status = "balanced" if is_balanced(s.variance) else "unbalanced"
    return "\t".join(
        [
            s.id,
            s.timestamp.isoformat(timespec="seconds"),
            s.metadata.period_label or "",
            s.metadata.company_name or "",
            f"{s.variance:.2f}",
            status,
        ]
    )


# ---- Command handlers ---------------------------------------------------------


def cmd_generate(
    balance_sheet: str,
    income_statement: str,
    *,
    beginning_cash: str,
    ending_cash: str,
    preamble_lines: int | None = None,
    chart_path: str | None = None,
    fmt: OutputFormat = "text",
    variant: AmountVariant | None = None,
    output: str | None = None,
    save: bool = False,
    period_label: str | None = None,
    company_name: str | None = None,
    notes: str | None = None,
    database_url: str | None = None,
) -> int:
    """Derive a statement from two CSV exports, print it, and optionally save it.

    Behavior
    --------
    - Upload warnings (no usable rows) go to stderr and do not stop the run.
    - The statement is always rendered, even when ``save`` is rejected
      because the reconciliation variance is too large.
    - Exit code is ``0`` on success and ``1`` on any error, including a
      rejected save.
    """

    from .api import derive_cash_flow_from_files

    try:
        balances = BalanceInputs(
            beginning_cash=_parse_money(beginning_cash, name="beginning cash"),
            ending_cash=_parse_money(ending_cash, name="ending cash"),
        )
        preamble = _resolve_preamble_lines(preamble_lines)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        chart = _resolve_chart(chart_path)
    except ChartConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        derivation = derive_cash_flow_from_files(
            balance_sheet, income_statement, balances, chart=chart, preamble_lines=preamble
        )
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except PermissionError as e:
        print(f"Error: Permission denied: {e.filename}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Failed to read CSV: {e}", file=sys.stderr)
        return 1

    for w in derivation.warnings:
        print(f"Warning: {w}", file=sys.stderr)

    resolved_variant: AmountVariant = variant or ("plain" if fmt == "csv" else "display")
    rendered = _render(derivation.statement, fmt=fmt, variant=resolved_variant)
    if output:
        try:
            Path(output).write_text(rendered, encoding="utf-8")
        except OSError as e:
            print(f"Error: Failed to write {output}: {e}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(rendered)

    if not save:
        return 0

    from .api import save_derivation

    metadata = StatementMetadata(period_label=period_label, company_name=company_name, notes=notes)
    try:
        stored = save_derivation(_open_store(database_url), derivation, metadata=metadata)
    except SaveRejectedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Saved statement {stored.id}", file=sys.stderr)
    return 0


def cmd_history(
    *,
    max_variance: str | None = None,
    since: str | None = None,
    until: str | None = None,
    oldest_first: bool = False,
    database_url: str | None = None,
) -> int:
    """Print saved statements as tab-separated lines.

    Columns: id, timestamp (UTC), period label, company, variance, and
    ``balanced``/``unbalanced``.
    """

    try:
        statement_filter = StatementFilter(
            max_variance=(
                _parse_money(max_variance, name="max variance") if max_variance else None
            ),
            start=_parse_bound(since, end_of_day=False),
            end=_parse_bound(until, end_of_day=True),
            newest_first=not oldest_first,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        statements = _open_store(database_url).list(statement_filter)
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not statements:
        print("No saved statements.")
        return 0
    for s in statements:
        print(_history_line(s))
    return 0


def cmd_show(
    statement_id: str,
    *,
    fmt: OutputFormat = "text",
    variant: AmountVariant | None = None,
    database_url: str | None = None,
) -> int:
    """Render one saved statement."""

    try:
        stored = _open_store(database_url).get(statement_id)
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if stored is None:
        print(f"Error: Statement not found: {statement_id}", file=sys.stderr)
        return 1

    meta = stored.metadata
    header = [f"# {stored.id} saved {stored.timestamp.isoformat(timespec='seconds')}"]
    if meta.company_name:
        header.append(f"# Company: {meta.company_name}")
    if meta.period_label:
        header.append(f"# Period: {meta.period_label}")
    if meta.notes:
        header.append(f"# Notes: {meta.notes}")
    if fmt == "text":
        print("\n".join(header))
    resolved_variant: AmountVariant = variant or ("plain" if fmt == "csv" else "display")
    sys.stdout.write(_render(stored.statement, fmt=fmt, variant=resolved_variant))
    return 0


def cmd_delete(
    statement_id: str | None,
    *,
    delete_all: bool = False,
    database_url: str | None = None,
) -> int:
    """Delete one saved statement, or all of them with ``delete_all``."""

    if not delete_all and not statement_id:
        print("Error: Provide a statement id or --all.", file=sys.stderr)
        return 1

    try:
        store = _open_store(database_url)
        if statement_id and not delete_all:
            deleted = store.delete(statement_id)
        else:
            removed = store.clear()
            print(f"Deleted {removed} statement(s).")
            return 0
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not deleted:
        print(f"Error: Statement not found: {statement_id}", file=sys.stderr)
        return 1
    print(f"Deleted {statement_id}")
    return 0


def cmd_init_db(*, database_url: str | None = None) -> int:
    """Create the ``cf_statements`` table directly (no Alembic)."""

    from sqlalchemy.exc import SQLAlchemyError

    from db.client import create_schema, resolve_database_url

    url = resolve_database_url(database_url)
    try:
        create_schema(database_url=url)
    except SQLAlchemyError as e:
        print(f"Error: failed to create schema: {e}", file=sys.stderr)
        return 1
    print("Database schema is ready.")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Derive a GAAP indirect-method Statement of Cash Flows from balance-sheet "
        "and income-statement CSV exports. Loads settings from a local .env."
    ),
)


# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
FORMAT_OPTION: OptionInfo = typer.Option("text", "--format", help="Output format: text or csv.")
VARIANT_OPTION: OptionInfo = typer.Option(
    None,
    "--variant",
    help="Amount style: plain (-1234.56) or display (($1,234.56)). Defaults by format.",
)


@app.command("generate")
def generate_cmd(
    balance_sheet: Annotated[
        Path, typer.Option("--balance-sheet", help="Comparative balance sheet CSV.")
    ],
    income_statement: Annotated[
        Path, typer.Option("--income-statement", help="Income statement CSV.")
    ],
    beginning_cash: Annotated[
        str, typer.Option("--beginning-cash", help="Cash at beginning of period.")
    ],
    ending_cash: Annotated[
        str, typer.Option("--ending-cash", help="Cash at end of period (as entered).")
    ],
    *,
    preamble_lines: int | None = typer.Option(
        None,
        "--preamble-lines",
        help="Lines above the header row (env CASHFLOW_PREAMBLE_LINES; default: detect).",
    ),
    chart: str | None = typer.Option(
        None, "--chart", help="Chart-of-accounts JSON override (env CASHFLOW_CHART_PATH)."
    ),
    fmt: str = FORMAT_OPTION,
    variant: str | None = VARIANT_OPTION,
    output: str | None = typer.Option(None, "--output", "-o", help="Write to a file."),
    save: bool = typer.Option(False, "--save", help="Save the statement when reconciled."),
    period_label: str | None = typer.Option(None, "--period-label"),
    company_name: str | None = typer.Option(None, "--company-name"),
    notes: str | None = typer.Option(None, "--notes"),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Derive, print and optionally save a statement."""

    if fmt not in ("text", "csv") or variant not in (None, "plain", "display"):
        print("Error: --format must be text|csv and --variant plain|display.", file=sys.stderr)
        raise typer.Exit(code=2)
    raise typer.Exit(
        code=cmd_generate(
            str(balance_sheet),
            str(income_statement),
            beginning_cash=beginning_cash,
            ending_cash=ending_cash,
            preamble_lines=preamble_lines,
            chart_path=chart,
            fmt=fmt,  # type: ignore[arg-type]
            variant=variant,  # type: ignore[arg-type]
            output=output,
            save=save,
            period_label=period_label,
            company_name=company_name,
            notes=notes,
            database_url=database_url,
        )
    )


@app.command("history")
def history_cmd(
    *,
    max_variance: str | None = typer.Option(
        None, "--max-variance", help="Only statements with abs(variance) <= this amount."
    ),
    since: str | None = typer.Option(None, "--since", help="Saved on or after (date/time)."),
    until: str | None = typer.Option(None, "--until", help="Saved on or before (date/time)."),
    oldest_first: bool = typer.Option(False, "--oldest-first"),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """List saved statements, newest first."""

    raise typer.Exit(
        code=cmd_history(
            max_variance=max_variance,
            since=since,
            until=until,
            oldest_first=oldest_first,
            database_url=database_url,
        )
    )


@app.command("show")
def show_cmd(
    statement_id: Annotated[str, typer.Argument(help="Saved statement id (stmt_...).")],
    *,
    fmt: str = FORMAT_OPTION,
    variant: str | None = VARIANT_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print a saved statement."""

    if fmt not in ("text", "csv") or variant not in (None, "plain", "display"):
        print("Error: --format must be text|csv and --variant plain|display.", file=sys.stderr)
        raise typer.Exit(code=2)
    raise typer.Exit(
        code=cmd_show(
            statement_id,
            fmt=fmt,  # type: ignore[arg-type]
            variant=variant,  # type: ignore[arg-type]
            database_url=database_url,
        )
    )


@app.command("delete")
def delete_cmd(
    statement_id: Annotated[str | None, typer.Argument(help="Saved statement id.")] = None,
    *,
    delete_all: bool = typer.Option(False, "--all", help="Delete every saved statement."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Delete a saved statement."""

    raise typer.Exit(
        code=cmd_delete(statement_id, delete_all=delete_all, database_url=database_url)
    )


@app.command("init-db")
def init_db_cmd(*, database_url: str | None = DATABASE_URL_OPTION) -> None:
    """Create the statements table (use Alembic for managed databases)."""

    raise typer.Exit(code=cmd_init_db(database_url=database_url))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Override CASHFLOW_STATEMENT_LOG_LEVEL."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    # Running as a module: `python -m cashflow_statement.cli`
    app()
