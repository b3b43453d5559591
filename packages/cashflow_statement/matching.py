"""Map free-text account names onto canonical concepts.

Matching is case-insensitive substring containment against an ordered keyword
list. Lists mix general-ledger-code prefixed names
(``"20001 - accounts payable - trade"``) with plain descriptive names
(``"accounts payable"``), most specific first.

Two lookups are provided:

- :func:`find_account`: single-value lookup for income-statement lines.
  Rows are scanned in the caller's order and the first row whose name
  contains any keyword wins; later matches are ignored.
- :func:`select_matching_rows`: the row set for a balance-sheet account
  family, consumed by :func:`cashflow_statement.periods.balance_sheet_change`.

Neither raises. An account that is absent resolves to zero or an empty list.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from .models import RawRow

_TOTAL_PREFIX = "total "


def _norm(text: str) -> str:
    return " ".join(text.split()).lower()


def account_matches(account_name: str, keywords: Iterable[str]) -> bool:
    """Return ``True`` when ``account_name`` contains any of ``keywords``."""

    name = _norm(account_name)
    return any(_norm(k) in name for k in keywords if k.strip())


def find_account(rows: Iterable[RawRow], keywords: Sequence[str]) -> Decimal:
    """Return the amount of the first row matching any keyword, else ``0``."""

    for row in rows:
        if account_matches(row.account_name, keywords):
            return row.amount
    return Decimal("0")


def _is_total(row: RawRow) -> bool:
    return _norm(row.account_name).startswith(_TOTAL_PREFIX)


def select_matching_rows(rows: Iterable[RawRow], keywords: Sequence[str]) -> list[RawRow]:
    """Return the rows that represent one account family.

    Keywords are tried in order; the first keyword that matches at least one
    row decides the result, so a generic keyword listed later never pulls in
    a more specific account. Within that keyword's matches, ``Total ...``
    subtotal rows are dropped when detail rows exist, unless the keyword
    itself names a total.
    """

    candidates = list(rows)
    for keyword in keywords:
        key = _norm(keyword)
        if not key:
            continue
        hits = [r for r in candidates if key in _norm(r.account_name)]
        if not hits:
            continue
        if not key.startswith(_TOTAL_PREFIX):
            details = [r for r in hits if not _is_total(r)]
            if details:
                return details
        return hits
    return []


__all__ = ["account_matches", "find_account", "select_matching_rows"]
