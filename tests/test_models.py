"""Tests for the rate/product value types."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from rate_ledger.ledger.errors import ValidationError
from rate_ledger.ledger.models import Product, Rate, RateHistory, require_text

STAMP = datetime(2024, 2, 1, 10, 0, tzinfo=timezone.utc)


def _rate(value: str, entry_id: str | None = None) -> Rate:
    rate = Rate.quote(value, "5", "Agarwal Oils", updated_at=STAMP)
    if entry_id is not None:
        rate = Rate(
            rate=rate.rate,
            gst=rate.gst,
            final_rate=rate.final_rate,
            party_name=rate.party_name,
            updated_at=rate.updated_at,
            entry_id=entry_id,
        )
    return rate


def test_rate_quote_derives_final_rate() -> None:
    rate = Rate.quote(50.5, 12, "Ram Stores", bill_date=date(2024, 1, 31), updated_at=STAMP)

    assert rate.rate == Decimal("50.5")
    assert rate.final_rate == Decimal("56.56")
    assert rate.bill_date == date(2024, 1, 31)
    assert rate.updated_at == STAMP
    assert len(rate.entry_id) == 32


def test_rate_quote_stamps_now_by_default() -> None:
    rate = Rate.quote("10", "0", "Ram Stores")

    assert rate.updated_at.tzinfo is not None
    assert rate.updated_at.microsecond % 1000 == 0


@pytest.mark.parametrize(
    "rate, gst, party",
    [
        ("0", "5", "Ram Stores"),
        ("-1", "5", "Ram Stores"),
        ("10", "-0.5", "Ram Stores"),
        ("abc", "5", "Ram Stores"),
        ("10", None, "Ram Stores"),
        (True, "5", "Ram Stores"),
        ("NaN", "5", "Ram Stores"),
        ("10", "5", "   "),
    ],
)
def test_rate_quote_rejects_invalid_input(rate, gst, party) -> None:
    with pytest.raises(ValidationError):
        Rate.quote(rate, gst, party)


def test_rate_is_immutable_and_metadata_only_changes_via_copy() -> None:
    rate = _rate("100")

    with pytest.raises(FrozenInstanceError):
        rate.rate = Decimal("1")  # type: ignore[misc]

    amended = rate.with_metadata(page_no="42", category="Oil")

    assert amended.page_no == "42"
    assert amended.category == "Oil"
    assert amended.entry_id == rate.entry_id
    assert amended.final_rate == rate.final_rate
    assert rate.page_no is None


def test_with_metadata_rejects_price_fields() -> None:
    with pytest.raises(ValidationError, match="final_rate"):
        _rate("100").with_metadata(final_rate=Decimal("1"))


def test_rate_history_is_front_loaded() -> None:
    first, second, third = _rate("1"), _rate("2"), _rate("3")
    history = RateHistory()

    history.push_front(first)
    history.push_front(second)
    history.push_front(third)

    assert list(history) == [third, second, first]
    assert history[0] is third
    assert history[1:] == (second, first)
    assert history == [third, second, first]
    assert history.pop_front() is third
    assert len(history) == 2


def test_rate_history_remove_where_and_copy() -> None:
    first, second = _rate("1"), _rate("2")
    history = RateHistory([second, first])
    snapshot = history.copy()

    removed = history.remove_where(lambda entry: entry.rate == Decimal("2"))

    assert removed == 1
    assert history == [first]
    assert snapshot == [second, first]
    assert history.remove_where(lambda entry: False) == 0


def test_rate_history_rejects_duplicate_entries() -> None:
    entry = _rate("1", entry_id="abc")

    with pytest.raises(ValidationError):
        RateHistory([entry, _rate("2", entry_id="abc")])

    history = RateHistory([entry])
    with pytest.raises(ValidationError):
        history.push_front(entry)


def test_rate_history_pop_from_empty() -> None:
    with pytest.raises(IndexError):
        RateHistory().pop_front()


def test_product_defaults() -> None:
    product = Product(product_id="p1", product_name="Tata Salt 1kg", unit="Pkt", current_rate=None)

    assert product.version == 0
    assert not product.is_persisted
    assert len(product.rate_history) == 0


@pytest.mark.parametrize("value", [None, "", "  ", 5])
def test_require_text_rejects_blanks(value) -> None:
    with pytest.raises(ValidationError, match="unit is required"):
        require_text(value, "unit")
