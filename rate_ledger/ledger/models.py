"""Data model for products and their rate quotations."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, overload

from rate_ledger.ledger.errors import ValidationError
from rate_ledger.utils.numbers import calculate_final_rate, to_decimal
from rate_ledger.utils.timestamps import utcnow

METADATA_FIELDS: tuple[str, ...] = ("bill_date", "page_no", "category")


def new_identifier() -> str:
    return uuid.uuid4().hex


def require_text(value: object, field_name: str) -> str:
    """Return ``value`` stripped, rejecting non-strings and blanks."""

    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


@dataclass(frozen=True, slots=True)
class Rate:
    """A single price quotation from one supplier.

    ``final_rate`` is derived once in :meth:`quote` and stored; it is never
    recomputed from ``rate``/``gst`` on read.
    """

    rate: Decimal
    gst: Decimal
    final_rate: Decimal
    party_name: str
    updated_at: datetime
    entry_id: str = field(default_factory=new_identifier)
    bill_date: date | None = None
    page_no: str | None = None
    category: str | None = None

    @classmethod
    def quote(
        cls,
        rate: object,
        gst: object,
        party_name: object,
        *,
        bill_date: date | None = None,
        page_no: str | None = None,
        category: str | None = None,
        updated_at: datetime | None = None,
    ) -> "Rate":
        """Validate raw inputs and build a new quotation stamped ``now``."""

        try:
            rate_value = to_decimal(rate, field="rate")
            gst_value = to_decimal(gst, field="gst")
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if rate_value <= 0:
            raise ValidationError("rate must be greater than zero")
        if gst_value < 0:
            raise ValidationError("gst must be zero or more")
        try:
            final_rate = calculate_final_rate(rate_value, gst_value)
        except InvalidOperation as exc:
            # quantize cannot hold more digits than the decimal context precision
            raise ValidationError("rate is out of range") from exc
        return cls(
            rate=rate_value,
            gst=gst_value,
            final_rate=final_rate,
            party_name=require_text(party_name, "party_name"),
            updated_at=updated_at or utcnow(),
            bill_date=bill_date,
            page_no=page_no,
            category=category,
        )

    def with_metadata(self, **changes: Any) -> "Rate":
        """Return a copy with metadata fields replaced; price fields are fixed."""

        unknown = set(changes) - set(METADATA_FIELDS)
        if unknown:
            raise ValidationError(f"Not a metadata field: {', '.join(sorted(unknown))}")
        return replace(self, **changes)


class RateHistory(Sequence[Rate]):
    """Superseded quotations, most recent first.

    Entries enter only at the front (:meth:`push_front`) and leave either from
    the front (:meth:`pop_front`) or by predicate (:meth:`remove_where`), so the
    ordering cannot be broken by callers.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[Rate] = ()) -> None:
        self._entries: list[Rate] = []
        for entry in entries:
            self._ensure_unique(entry)
            self._entries.append(entry)

    @overload
    def __getitem__(self, index: int) -> Rate: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Rate, ...]: ...

    def __getitem__(self, index: int | slice) -> Rate | tuple[Rate, ...]:
        if isinstance(index, slice):
            return tuple(self._entries[index])
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Rate]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RateHistory):
            return self._entries == other._entries
        if isinstance(other, (list, tuple)):
            return self._entries == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"RateHistory({self._entries!r})"

    def _ensure_unique(self, entry: Rate) -> None:
        if any(existing.entry_id == entry.entry_id for existing in self._entries):
            raise ValidationError(f"History already contains entry {entry.entry_id}")

    def push_front(self, entry: Rate) -> None:
        self._ensure_unique(entry)
        self._entries.insert(0, entry)

    def pop_front(self) -> Rate:
        if not self._entries:
            raise IndexError("pop from empty rate history")
        return self._entries.pop(0)

    def matching(self, predicate: Callable[[Rate], bool]) -> list[Rate]:
        return [entry for entry in self._entries if predicate(entry)]

    def remove_where(self, predicate: Callable[[Rate], bool]) -> int:
        """Drop every entry matching ``predicate``; return how many went."""

        before = len(self._entries)
        self._entries = [entry for entry in self._entries if not predicate(entry)]
        return before - len(self._entries)

    def copy(self) -> "RateHistory":
        return RateHistory(self._entries)


@dataclass(slots=True)
class Product:
    """A tracked product with one current quotation and its history."""

    product_id: str
    product_name: str
    unit: str
    current_rate: Rate | None
    rate_history: RateHistory = field(default_factory=RateHistory)
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_persisted(self) -> bool:
        return self.version > 0


__all__ = [
    "METADATA_FIELDS",
    "Rate",
    "RateHistory",
    "Product",
    "new_identifier",
    "require_text",
]
