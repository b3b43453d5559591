"""Period-over-period deltas for balance-sheet accounts.

The resolver always returns ``new - old``. Whether an increase is a source or
a use of cash is decided by the extractor, not here.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from .matching import select_matching_rows
from .models import PeriodTag, RawRow

_PERIOD_RANK: dict[PeriodTag, int] = {
    PeriodTag.PREVIOUS: 0,
    PeriodTag.UNLABELED: 1,
    PeriodTag.CURRENT: 2,
}

type PeriodKey = tuple[PeriodTag, date | None]


def _ordered_periods(keys: Iterable[PeriodKey]) -> list[PeriodKey]:
    """Order period keys oldest first.

    When every key carries an as-of date the dates decide; otherwise the
    period marker does (previous, unlabeled, current).
    """

    distinct = set(keys)
    if all(as_of is not None for _tag, as_of in distinct):
        return sorted(distinct, key=lambda k: (k[1], _PERIOD_RANK[k[0]]))
    return sorted(distinct, key=lambda k: (_PERIOD_RANK[k[0]], k[1] or date.min))


def period_totals(rows: Iterable[RawRow]) -> list[tuple[PeriodKey, Decimal]]:
    """Sum amounts per period, oldest period first."""

    totals: dict[PeriodKey, Decimal] = {}
    for row in rows:
        key = (row.period, row.as_of)
        totals[key] = totals.get(key, Decimal("0")) + row.amount
    return [(k, totals[k]) for k in _ordered_periods(totals)]


def balance_sheet_change(rows: Iterable[RawRow], keywords: Sequence[str]) -> Decimal:
    """Return ``latest - earliest`` for the account family named by ``keywords``.

    Fewer than two matching rows, or matching rows that all belong to one
    period, give ``0``: a single point has no delta. The result never depends
    on input row order.
    """

    matched = select_matching_rows(rows, keywords)
    if len(matched) < 2:
        return Decimal("0")
    totals = period_totals(matched)
    if len(totals) < 2:
        return Decimal("0")
    return totals[-1][1] - totals[0][1]


__all__ = ["balance_sheet_change", "period_totals"]
