"""Ingest utilities shared by CLI commands and the derivation API.

Exposes file-level helpers around :mod:`.csv_rows`: reading an export from
disk (``utf-8-sig`` so a BOM never reaches the header) and describing an
upload that produced no usable rows.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from ..models import RawRow
from .csv_rows import parse_rows, read_records


def read_csv_text(csv_path: str | PathLike[str]) -> str:
    """Return the decoded contents of ``csv_path``.

    ``OSError`` (missing file, permission denied) propagates to the caller.
    """

    with Path(csv_path).open(encoding="utf-8-sig", newline="") as f:
        return f.read()


def load_rows_from_csv(
    csv_path: str | PathLike[str], *, preamble_lines: int | None = None
) -> list[RawRow]:
    """Read a financial-report CSV export and return its :class:`RawRow` list."""

    return parse_rows(read_csv_text(csv_path), preamble_lines=preamble_lines)


def empty_upload_warning(
    label: str, csv_text: str, *, preamble_lines: int | None = None, amount_header: str
) -> str:
    """Describe an upload that parsed to zero rows.

    The message names the expected headers and the headers actually found so
    a mismatched export (wrong preamble count, renamed columns) is obvious.
    """

    headers, _records = read_records(csv_text, preamble_lines=preamble_lines)
    found = ", ".join(repr(h) for h in headers if h) or "none"
    return (
        f"No data was found in the {label} CSV. "
        f'Expected headers: "Financial Row" and "{amount_header}". '
        f"Headers found: {found}."
    )


__all__ = ["empty_upload_warning", "load_rows_from_csv", "read_csv_text"]
