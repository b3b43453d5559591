"""Pytest configuration for test isolation.

Statement storage resolves its database from ``DATABASE_URL`` and falls back
to a project-relative SQLite file (``./.cashflow/statements.db``). Tests must
never touch that file, and engines cached by ``db.client`` must not leak a
database from one test into the next.

Each test therefore gets its own SQLite file via an autouse fixture, and the
engine cache is disposed afterwards.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point ``DATABASE_URL`` at a per-test SQLite file and drop the settings
    that would otherwise leak from a developer's shell or ``.env``."""

    db_file = tmp_path / "db" / "statements.db"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{os.fspath(db_file)}")
    monkeypatch.delenv("CASHFLOW_PREAMBLE_LINES", raising=False)
    monkeypatch.delenv("CASHFLOW_CHART_PATH", raising=False)
    yield

    from db.client import dispose_engines

    dispose_engines()
