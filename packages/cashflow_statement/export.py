"""Render a :class:`CashFlowStatement` as CSV or as a plain-text table.

Two amount formats are supported:

- ``"plain"``: machine-parseable, two decimals, leading minus, no currency
  symbol or grouping (``-1234.56``).
- ``"display"``: ``$`` prefix with thousands separators; negatives in
  accounting parentheses (``($1,234.56)``).

Subheadings (zero-amount, non-total lines) render with a blank amount; each
indent level adds two spaces in front of the description.
"""

from __future__ import annotations

import csv
from decimal import ROUND_HALF_UP, Decimal
from io import StringIO
from typing import Literal

from .models import CashFlowLineItem, CashFlowStatement
from .reconcile import reconcile

type AmountVariant = Literal["plain", "display"]

TITLE = "Statement of Cash Flows"
SUBTITLE = "U.S. GAAP Indirect Method"
NET_INCREASE = "Net increase (decrease) in cash"
BEGINNING_CASH = "Cash at beginning of period"
ENDING_CASH = "Cash at end of period"

_CENTS = Decimal("0.01")
_INDENT = "  "


def format_amount(value: Decimal, *, variant: AmountVariant = "plain") -> str:
    """Format ``value`` to two decimals in the requested variant."""

    q = Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)
    if q == 0:
        q = abs(q)  # no "-0.00"
    if variant == "plain":
        return f"{q:.2f}"
    if variant == "display":
        text = f"${abs(q):,.2f}"
        return f"({text})" if q < 0 else text
    raise ValueError(f"unknown amount variant: {variant!r}")


def _line_cells(item: CashFlowLineItem, variant: AmountVariant) -> tuple[str, str]:
    label = _INDENT * max(0, item.indent_level) + item.description
    amount = "" if item.is_subheading else format_amount(item.amount, variant=variant)
    return label, amount


def statement_rows(
    statement: CashFlowStatement, *, variant: AmountVariant = "plain"
) -> list[tuple[str, ...]]:
    """Return the export layout as rows of cells (blank rows are ``()``)."""

    rows: list[tuple[str, ...]] = [(TITLE,), (SUBTITLE,), ()]
    for heading, items in statement.sections():
        rows.append((heading,))
        rows.extend(_line_cells(item, variant) for item in items)
        rows.append(())
    rows += [
        (NET_INCREASE, format_amount(statement.net_increase, variant=variant)),
        (BEGINNING_CASH, format_amount(statement.beginning_cash, variant=variant)),
        (ENDING_CASH, format_amount(statement.ending_cash, variant=variant)),
    ]
    return rows


def render_csv(statement: CashFlowStatement, *, variant: AmountVariant = "plain") -> str:
    """Serialize the statement to CSV text (``\\n`` line endings)."""

    buf = StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(statement_rows(statement, variant=variant))
    return buf.getvalue()


def render_text(statement: CashFlowStatement, *, variant: AmountVariant = "display") -> str:
    """Render an aligned text table followed by the reconciliation line."""

    rows = statement_rows(statement, variant=variant)
    width = max(len(r[0]) for r in rows if r)
    amount_width = max((len(r[1]) for r in rows if len(r) > 1), default=0)

    lines: list[str] = []
    for row in rows:
        if not row:
            lines.append("")
        elif len(row) == 1 or not row[1]:
            lines.append(row[0].rstrip())
        else:
            lines.append(f"{row[0]:<{width}}  {row[1]:>{amount_width}}")

    rec = reconcile(statement)
    if rec.balanced:
        status = "balanced"
    elif rec.has_discrepancy:
        status = "discrepancy"
    else:
        status = "within tolerance"
    lines += [
        "",
        f"Calculated ending cash: {format_amount(rec.calculated_ending_cash, variant=variant)}",
        f"Variance: {format_amount(rec.variance, variant=variant)} ({status})",
    ]
    return "\n".join(lines) + "\n"


__all__ = [
    "AmountVariant",
    "format_amount",
    "render_csv",
    "render_text",
    "statement_rows",
]
