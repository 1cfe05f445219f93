"""Timestamp and date helpers shared by the ledger and its stores."""

from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time truncated to millisecond precision.

    BSON datetimes only carry milliseconds, so anything finer would not
    survive a round-trip through MongoDB and exact-match lookups on
    ``updated_at`` would silently miss.
    """

    return truncate_to_millis(datetime.now(timezone.utc))


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond digits from ``value``."""

    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 string or datetime into an aware UTC datetime.

    Naive values are assumed to already be UTC.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("timestamp must not be empty")
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_bill_date(value: str | date | None) -> date | None:
    """Normalise bill dates to :class:`date`; blank values become ``None``."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if "T" in text:
        return parse_timestamp(text).date()
    return date.fromisoformat(text)


__all__ = ["utcnow", "truncate_to_millis", "parse_timestamp", "parse_bill_date"]
