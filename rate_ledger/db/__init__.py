"""Storage strategies for the rate ledger."""

from __future__ import annotations

from pathlib import Path
from typing import Final

__all__ = ["DEFAULT_SQLITE_DB_NAME", "default_sqlite_path"]

# The ledger is mutable user data, so it lives beside the caller rather than
# inside the installed package.
DEFAULT_SQLITE_DB_NAME: Final[str] = "rate_ledger.db"


def default_sqlite_path() -> Path:
    """Return the absolute path of the local SQLite ledger file."""

    return (Path.cwd() / DEFAULT_SQLITE_DB_NAME).resolve()
