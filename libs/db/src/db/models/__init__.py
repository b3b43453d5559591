"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the saved-statement table used by ``cashflow_statement``.
"""

from .statements import Base, CfStatement

__all__ = [
    "Base",
    "CfStatement",
]
