"""Typed failures raised by the rate ledger.

Every class carries a stable ``code`` so callers (the CLI, an HTTP layer) can
render a distinct outcome without matching on message text.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger failures."""

    code = "ledger_error"


class ValidationError(LedgerError, ValueError):
    """Malformed or missing input, rejected before storage is touched."""

    code = "validation"


class AmbiguousHistoryEntryError(ValidationError):
    """Several history entries share the timestamp used to address them."""

    code = "ambiguous_entry"


class NotFoundError(LedgerError, LookupError):
    """The requested product does not exist."""

    code = "not_found"


class EntryNotFoundError(NotFoundError):
    """No history entry matched the given identifier."""

    code = "entry_not_found"


class ConflictError(LedgerError):
    """Duplicate product name, or the record changed since it was loaded."""

    code = "conflict"


class InvalidStateError(LedgerError):
    """An existing product has no current rate."""

    code = "invalid_state"


class NoHistoryAvailableError(LedgerError):
    """Restore was requested but the product has no history."""

    code = "no_history"


__all__ = [
    "LedgerError",
    "ValidationError",
    "AmbiguousHistoryEntryError",
    "NotFoundError",
    "EntryNotFoundError",
    "ConflictError",
    "InvalidStateError",
    "NoHistoryAvailableError",
]
