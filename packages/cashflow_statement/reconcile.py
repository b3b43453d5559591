"""Cash reconciliation of an assembled statement against the entered ending cash."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .errors import SaveRejectedError
from .models import CashFlowStatement

# User-facing thresholds; listings and the save gate depend on these exact values.
SAVE_VARIANCE_LIMIT = Decimal("1000")
BALANCED_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class Reconciliation:
    calculated_ending_cash: Decimal
    entered_ending_cash: Decimal
    variance: Decimal

    @property
    def can_save(self) -> bool:
        return is_saveable(self.variance)

    @property
    def balanced(self) -> bool:
        return is_balanced(self.variance)

    @property
    def has_discrepancy(self) -> bool:
        return abs(self.variance) > BALANCED_TOLERANCE


def reconcile(statement: CashFlowStatement) -> Reconciliation:
    """Compare ``beginning_cash + net_increase`` with the entered ending cash.

    ``variance`` is ``entered - calculated``; a positive variance means the
    books hold more cash than the statement explains.
    """

    calculated = statement.beginning_cash + statement.net_increase
    return Reconciliation(
        calculated_ending_cash=calculated,
        entered_ending_cash=statement.ending_cash,
        variance=statement.ending_cash - calculated,
    )


def is_saveable(variance: Decimal) -> bool:
    return abs(variance) < SAVE_VARIANCE_LIMIT


def is_balanced(variance: Decimal) -> bool:
    return abs(variance) < BALANCED_TOLERANCE


def ensure_saveable(variance: Decimal) -> None:
    """Raise :class:`SaveRejectedError` when ``variance`` is at or over the limit."""

    if not is_saveable(variance):
        raise SaveRejectedError(variance, SAVE_VARIANCE_LIMIT)


__all__ = [
    "BALANCED_TOLERANCE",
    "SAVE_VARIANCE_LIMIT",
    "Reconciliation",
    "ensure_saveable",
    "is_balanced",
    "is_saveable",
    "reconcile",
]
