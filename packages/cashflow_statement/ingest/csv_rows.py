"""CSV → ``RawRow`` parsing for financial-report exports.

Accepts the loosely structured exports produced by accounting systems
(NetSuite "Financial Row" reports and similar):

- an optional byte-order mark and a fixed number of non-data preamble lines
  (report title, company, period) above the real header;
- an account-name column under one of several header spellings;
- either a single ``Amount`` (or ``Variance``) column, or a comparative pair
  ``Amount (As of <period>)`` / ``Comparison Amount (As of <period>)``.

Parsing follows RFC 4180 rules via the stdlib :mod:`csv` module. Rows with an
empty account name, or cells whose amount does not parse, are dropped without
raising: sparse exports (section headers, blank spacer rows) are expected.
"""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from io import StringIO

from dateutil import parser as date_parser

from ..logging_setup import get_logger
from ..models import PeriodTag, RawRow

_logger = get_logger("cashflow_statement.ingest.csv_rows")

BOM = "\ufeff"

# Header spellings for the account-name column, compared after normalization.
ACCOUNT_NAME_ALIASES: tuple[str, ...] = ("financialrow", "accountname", "account")

_CURRENCY_RE = re.compile(r"[$€£¥\s]")
_PAREN_LABEL_RE = re.compile(r"\((?P<label>[^)]*)\)")


# ---------------------------------------------------------------------------
# Header helpers
# ---------------------------------------------------------------------------


def normalize_header(header: str) -> str:
    """Return a comparison key: BOM-stripped, lower-cased, whitespace removed."""

    return "".join(header.replace(BOM, "").split()).lower()


def _clean_header(header: str | None) -> str:
    return (header or "").replace(BOM, "").strip()


@dataclass(frozen=True, slots=True)
class AmountColumn:
    """An amount-bearing column and the period its values belong to."""

    header: str
    period: PeriodTag
    label: str | None
    as_of: date | None


def _paren_label(header: str) -> str | None:
    m = _PAREN_LABEL_RE.search(header)
    if not m:
        return None
    label = m.group("label").strip()
    return label or None


def parse_period_label(label: str | None) -> date | None:
    """Parse ``"As of Dec 31, 2024"`` / ``"Dec 2024"`` into a date, if possible.

    Missing day components default to the first of the month. Labels such as
    ``"current"`` that do not read as dates return ``None``.
    """

    if not label:
        return None
    text = re.sub(r"(?i)\b(as\s+of|end\s+of|period\s+ending)\b", " ", label).strip()
    if not any(ch.isdigit() for ch in text):
        return None
    try:
        parsed = date_parser.parse(text, fuzzy=True, default=datetime(2000, 1, 1))
    except (ValueError, OverflowError):
        return None
    return parsed.date()


def find_account_column(headers: list[str]) -> str | None:
    """Return the first header that is an accepted account-name alias."""

    for alias in ACCOUNT_NAME_ALIASES:
        for h in headers:
            if normalize_header(h) == alias:
                return h
    return None


def classify_amount_columns(headers: list[str]) -> list[AmountColumn]:
    """Pick the amount-bearing columns and tag each with its period.

    - ``Comparison Amount (...)`` is the previous period; when present, the
      ``Amount (...)`` column is the current period.
    - Without a comparison column, a single ``Amount`` column is unlabeled.
    - ``Variance`` is used only when no amount column exists.
    """

    amount_cols: list[str] = []
    comparison_cols: list[str] = []
    variance_cols: list[str] = []
    for h in headers:
        key = normalize_header(h)
        if key.startswith("comparisonamount"):
            comparison_cols.append(h)
        elif key == "amount" or key.startswith("amount("):
            amount_cols.append(h)
        elif key == "variance" or key.startswith("variance("):
            variance_cols.append(h)

    columns: list[AmountColumn] = []
    if comparison_cols and amount_cols:
        for h in amount_cols[:1]:
            label = _paren_label(h)
            columns.append(AmountColumn(h, PeriodTag.CURRENT, label, parse_period_label(label)))
        for h in comparison_cols[:1]:
            label = _paren_label(h)
            columns.append(AmountColumn(h, PeriodTag.PREVIOUS, label, parse_period_label(label)))
        return columns

    for h in (amount_cols or comparison_cols or variance_cols)[:1]:
        label = _paren_label(h)
        columns.append(AmountColumn(h, PeriodTag.UNLABELED, label, parse_period_label(label)))
    return columns


# ---------------------------------------------------------------------------
# Amount cleaning
# ---------------------------------------------------------------------------


def clean_amount(raw: str | None) -> Decimal:
    """Parse an exported money cell into a signed :class:`Decimal`.

    Strips currency symbols, thousands separators, parentheses and
    whitespace. A value wrapped in parentheses (accounting notation) or with a
    leading or trailing minus (``"1,234.56-"``) is negative; combinations such
    as ``"-($1,234.56)"`` are still a single negative.

    Raises
    ------
    ValueError
        When the cleaned text is empty or not a finite number.
    """

    if raw is None:
        raise ValueError("amount is required")
    s = _CURRENCY_RE.sub("", raw)
    if not s:
        raise ValueError("amount is empty")

    negative = "(" in s or s.startswith("-") or s.endswith("-")
    s = s.replace("(", "").replace(")", "").replace(",", "").strip("+-")

    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    if not d.is_finite():
        raise ValueError(f"invalid amount: {raw!r}")
    return -abs(d) if negative else d


# ---------------------------------------------------------------------------
# Record reading
# ---------------------------------------------------------------------------


def _detect_header_index(lines: list[str]) -> int:
    """Index of the first line whose first cell is an account-name alias."""

    for idx, line in enumerate(lines):
        try:
            first = next(csv.reader([line]), [])
        except csv.Error:
            continue
        if first and normalize_header(first[0]) in ACCOUNT_NAME_ALIASES:
            return idx
    return 0


def read_records(
    csv_text: str, *, preamble_lines: int | None = None
) -> tuple[list[str], list[dict[str, str]]]:
    """Read CSV text into ``(headers, records)`` with normalized header keys.

    Parameters
    ----------
    csv_text:
        Full file contents. A leading BOM is ignored.
    preamble_lines:
        Number of non-data lines above the header row. ``None`` detects the
        header as the first line whose first cell is an account-name alias
        (falling back to the first line).

    Headers are BOM-stripped and trimmed. Values are returned as strings
    (``""`` for missing cells); columns without a header are discarded.
    """

    text = csv_text[1:] if csv_text.startswith(BOM) else csv_text
    # Keep original line endings so quoted newlines survive the re-join.
    lines = text.splitlines(keepends=True)
    if preamble_lines is None:
        start = _detect_header_index(lines)
    else:
        start = max(0, preamble_lines)
    body = "".join(lines[start:])

    with StringIO(body) as f:
        reader = csv.reader(f)
        raw_headers = next(reader, None)
        if raw_headers is None:
            return [], []
        headers = [_clean_header(h) for h in raw_headers]
        records: list[dict[str, str]] = []
        for cells in reader:
            if not any((c or "").strip() for c in cells):
                continue
            record = {h: (cells[i] if i < len(cells) else "") for i, h in enumerate(headers) if h}
            records.append(record)
    return headers, records


def rows_from_records(headers: list[str], records: list[dict[str, str]]) -> list[RawRow]:
    """Map header-keyed records to :class:`RawRow` values.

    Each amount column of a record yields at most one row; a record whose
    account name is blank yields none.
    """

    account_col = find_account_column(headers)
    columns = classify_amount_columns(headers)
    if account_col is None or not columns:
        _logger.debug(
            "no usable columns (account=%r, amounts=%d) in headers %r",
            account_col,
            len(columns),
            headers,
        )
        return []

    rows: list[RawRow] = []
    dropped = 0
    for record in records:
        name = (record.get(account_col) or "").strip()
        if not name:
            dropped += 1
            continue
        for col in columns:
            raw_amount = (record.get(col.header) or "").strip()
            if not raw_amount:
                dropped += 1
                continue
            try:
                amount = clean_amount(raw_amount)
            except ValueError:
                dropped += 1
                continue
            rows.append(
                RawRow(
                    account_name=name,
                    amount=amount,
                    period=col.period,
                    period_label=col.label,
                    as_of=col.as_of,
                )
            )
    _logger.debug("parsed %d rows (%d cells dropped)", len(rows), dropped)
    return rows


def parse_rows(csv_text: str, *, preamble_lines: int | None = None) -> list[RawRow]:
    """Parse raw CSV text into an ordered list of :class:`RawRow`.

    Order is document order, and within a record the current-period column
    precedes the comparison column.
    """

    headers, records = read_records(csv_text, preamble_lines=preamble_lines)
    return rows_from_records(headers, records)


__all__ = [
    "ACCOUNT_NAME_ALIASES",
    "AmountColumn",
    "classify_amount_columns",
    "clean_amount",
    "find_account_column",
    "normalize_header",
    "parse_period_label",
    "parse_rows",
    "read_records",
    "rows_from_records",
]
