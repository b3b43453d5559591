"""Exception types raised by ``cashflow_statement``.

Parse-level absence (blank rows, unparseable amounts) and unmatched accounts
are not errors in this package; they resolve to dropped rows and zero values.
The types below cover the conditions a caller has to act on.
"""

from __future__ import annotations

from decimal import Decimal


class SaveRejectedError(ValueError):
    """A statement's reconciliation variance is too large to be saved."""

    def __init__(self, variance: Decimal, limit: Decimal) -> None:
        self.variance = variance
        self.limit = limit
        super().__init__(
            f"Statement variance (${abs(variance):,.2f}) exceeds the ${limit:,.2f} threshold. "
            "Only reconciled statements can be saved."
        )


class PersistenceError(RuntimeError):
    """The statement store could not complete a read or write."""


class ChartConfigError(ValueError):
    """A chart-of-accounts override file is missing or malformed."""


__all__ = ["ChartConfigError", "PersistenceError", "SaveRejectedError"]
