"""SQLite backend strategy implementation."""

from __future__ import annotations

from pathlib import Path

from rate_ledger.db import default_sqlite_path
from rate_ledger.db.relational_backend import RelationalBackend


class SQLiteBackend(RelationalBackend):
    """Relational backend bound to a local SQLite file.

    The schema is created eagerly so a fresh file is usable straight away.
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        self.db_path = Path(db_path or default_sqlite_path()).expanduser().resolve()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            f"sqlite:///{self.db_path}",
            engine_options={"connect_args": {"check_same_thread": False}},
        )
        self.ensure_schema()


__all__ = ["SQLiteBackend"]
