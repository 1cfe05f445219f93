"""Shared fixtures for ledger tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator

import pytest

from rate_ledger.db.sqlite_backend import SQLiteBackend
from rate_ledger.ledger.engine import RateLedgerEngine


class TickingClock:
    """Deterministic clock that advances one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 4, 1, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def sqlite_backend(tmp_path: Path) -> Iterator[SQLiteBackend]:
    backend = SQLiteBackend(tmp_path / "ledger.db")
    yield backend
    backend.close()


@pytest.fixture()
def engine(sqlite_backend: SQLiteBackend, clock: Callable[[], datetime]) -> RateLedgerEngine:
    return RateLedgerEngine(sqlite_backend, clock=clock)
