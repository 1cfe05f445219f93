"""The rate ledger engine: every state transition of a product's prices.

Each write operation is one read-modify-write against a single product:
inputs are validated (and any category suggestion fetched) first, then the
product is loaded, mutated in memory and handed to ``BackendStrategy.save``,
whose version check makes the whole step atomic per product. Nothing is
retried here; on ``ConflictError`` the caller reloads and decides.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from rate_ledger.db.base_backend import BackendStrategy
from rate_ledger.ledger.errors import (
    AmbiguousHistoryEntryError,
    ConflictError,
    EntryNotFoundError,
    InvalidStateError,
    NoHistoryAvailableError,
    ValidationError,
)
from rate_ledger.ledger.models import (
    METADATA_FIELDS,
    Product,
    Rate,
    RateHistory,
    new_identifier,
    require_text,
)
from rate_ledger.suggestion.category import CategorySuggester
from rate_ledger.utils.logger import get_logger
from rate_ledger.utils.numbers import to_decimal
from rate_ledger.utils.timestamps import (
    parse_bill_date,
    parse_timestamp,
    truncate_to_millis,
    utcnow,
)

LOGGER = get_logger(__name__)

_FIELD_ALIASES = {
    "bill_date": "bill_date",
    "billDate": "bill_date",
    "page_no": "page_no",
    "pageNo": "page_no",
    "category": "category",
}


def parse_metadata(fields: Mapping[str, Any] | None) -> dict[str, Any]:
    """Pick the recognised metadata keys out of ``fields``.

    Keys that are present but blank map to ``None`` so an amendment can clear
    a field. Unknown keys are ignored.
    """

    parsed: dict[str, Any] = {}
    if not fields:
        return parsed
    for key, value in fields.items():
        target = _FIELD_ALIASES.get(key)
        if target is None:
            continue
        if target == "bill_date":
            try:
                parsed[target] = parse_bill_date(value)
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"bill_date is not a valid date: {value!r}") from exc
            continue
        if value is None:
            parsed[target] = None
            continue
        text = str(value).strip()
        parsed[target] = text or None
    return parsed


class RateLedgerEngine:
    """Owns the product/rate model and its state transitions."""

    def __init__(
        self,
        backend: BackendStrategy,
        *,
        suggester: CategorySuggester | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.backend = backend
        self.suggester = suggester
        self._clock = clock

    # -- reads -----------------------------------------------------------

    def get_product(self, product_id: str) -> Product:
        return self.backend.load(require_text(product_id, "product_id"))

    def list_products(
        self,
        *,
        name_contains: str | None = None,
        party_name: str | None = None,
        gst: Decimal | float | str | None = None,
        unit: str | None = None,
    ) -> list[Product]:
        """Return products newest-priced first, optionally filtered."""

        products = self.backend.list_products()
        if name_contains:
            needle = name_contains.strip().lower()
            products = [p for p in products if needle in p.product_name.lower()]
        if party_name:
            products = [
                p
                for p in products
                if p.current_rate is not None and p.current_rate.party_name == party_name
            ]
        if gst is not None:
            try:
                wanted = to_decimal(gst, field="gst")
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
            products = [
                p for p in products if p.current_rate is not None and p.current_rate.gst == wanted
            ]
        if unit:
            products = [p for p in products if p.unit == unit]
        return products

    # -- suggestions -----------------------------------------------------

    def suggest_category(self, product_name: str) -> str | None:
        """Return a suggested category, or ``None`` if none is available.

        Suggestion failures are logged and swallowed: they must never block
        a ledger write.
        """

        if self.suggester is None:
            return None
        try:
            return self.suggester.suggest(product_name)
        except Exception as exc:  # noqa: BLE001 - suggestions are best effort
            LOGGER.warning("Category suggestion for %r failed: %s", product_name, exc)
            return None

    def _metadata_with_suggestion(
        self,
        metadata: Mapping[str, Any] | None,
        product_name: str,
        suggest: bool,
    ) -> dict[str, Any]:
        parsed = parse_metadata(metadata)
        if suggest and not parsed.get("category"):
            suggestion = self.suggest_category(product_name)
            if suggestion:
                parsed["category"] = suggestion
        return parsed

    # -- writes ----------------------------------------------------------

    def create_product(
        self,
        product_name: str,
        unit: str,
        rate: object,
        gst: object,
        party_name: str,
        metadata: Mapping[str, Any] | None = None,
        *,
        suggest_category: bool = False,
    ) -> Product:
        name = require_text(product_name, "product_name")
        unit_value = require_text(unit, "unit")
        now = self._clock()
        fields = self._metadata_with_suggestion(metadata, name, suggest_category)
        current = Rate.quote(rate, gst, party_name, updated_at=now, **fields)

        if self.backend.find_by_name(name) is not None:
            raise ConflictError(f"A product named {name!r} already exists")
        product = Product(
            product_id=new_identifier(),
            product_name=name,
            unit=unit_value,
            current_rate=current,
            rate_history=RateHistory(),
            created_at=now,
            updated_at=now,
        )
        saved = self.backend.save(product)
        LOGGER.info(
            "Created product %s (%s) at final rate %s", saved.product_id, name, current.final_rate
        )
        return saved

    def supersede_rate(
        self,
        product_id: str,
        new_rate: object,
        new_gst: object,
        new_party_name: str,
        metadata: Mapping[str, Any] | None = None,
        *,
        suggest_category: bool = False,
    ) -> Product:
        """Retire the current rate into history and install a new one."""

        product_id = require_text(product_id, "product_id")
        now = self._clock()
        parsed = parse_metadata(metadata)
        if suggest_category and not parsed.get("category"):
            # Fail fast on bad input before the suggestion round-trip.
            Rate.quote(new_rate, new_gst, new_party_name, updated_at=now)
            name = self.backend.load(product_id).product_name
            suggestion = self.suggest_category(name)
            if suggestion:
                parsed["category"] = suggestion
        replacement = Rate.quote(new_rate, new_gst, new_party_name, updated_at=now, **parsed)

        product = self.backend.load(product_id)
        if product.current_rate is None:
            raise InvalidStateError(f"Product {product_id} has no current rate to supersede")
        product.rate_history.push_front(product.current_rate)
        product.current_rate = replacement
        product.updated_at = now
        saved = self.backend.save(product)
        LOGGER.info(
            "Superseded rate of %s; history now holds %s entries",
            product_id,
            len(saved.rate_history),
        )
        return saved

    def amend_current_metadata(self, product_id: str, fields: Mapping[str, Any]) -> Product:
        """Change bill date/page/category on the current rate only."""

        product_id = require_text(product_id, "product_id")
        changes = parse_metadata(fields)
        product = self.backend.load(product_id)
        if product.current_rate is None:
            raise InvalidStateError(f"Product {product_id} has no current rate to update")
        if not changes:
            return product
        product.current_rate = product.current_rate.with_metadata(**changes)
        product.updated_at = self._clock()
        return self.backend.save(product)

    def delete_history_entry(self, product_id: str, updated_at: str | datetime) -> Product:
        """Remove the single history entry stamped exactly ``updated_at``."""

        product_id = require_text(product_id, "product_id")
        if updated_at is None or (isinstance(updated_at, str) and not updated_at.strip()):
            raise ValidationError("Missing history entry identifier")
        try:
            target = truncate_to_millis(parse_timestamp(updated_at))
        except ValueError as exc:
            raise ValidationError(f"Invalid history entry timestamp: {updated_at!r}") from exc
        return self._delete_history_where(
            product_id,
            lambda entry: truncate_to_millis(entry.updated_at) == target,
            label=f"timestamp {target.isoformat()}",
        )

    def delete_history_entry_by_id(self, product_id: str, entry_id: str) -> Product:
        product_id = require_text(product_id, "product_id")
        entry_id = require_text(entry_id, "entry_id")
        return self._delete_history_where(
            product_id,
            lambda entry: entry.entry_id == entry_id,
            label=f"id {entry_id}",
        )

    def _delete_history_where(
        self,
        product_id: str,
        predicate: Callable[[Rate], bool],
        *,
        label: str,
    ) -> Product:
        product = self.backend.load(product_id)
        matches = product.rate_history.matching(predicate)
        if len(matches) > 1:
            raise AmbiguousHistoryEntryError(
                f"{len(matches)} history entries match {label}; delete by entry id instead"
            )
        removed = product.rate_history.remove_where(predicate)
        if removed == 0:
            raise EntryNotFoundError(f"History entry with {label} not found")
        product.updated_at = self._clock()
        saved = self.backend.save(product)
        LOGGER.info("Deleted history entry with %s from %s", label, product_id)
        return saved

    def restore_from_history(self, product_id: str) -> Product:
        """Drop the current rate and promote the most recent history entry."""

        product_id = require_text(product_id, "product_id")
        product = self.backend.load(product_id)
        if not product.rate_history:
            raise NoHistoryAvailableError(
                "No history available to restore. Cannot delete the only rate."
            )
        product.current_rate = product.rate_history.pop_front()
        product.updated_at = self._clock()
        saved = self.backend.save(product)
        LOGGER.info("Restored previous rate of %s", product_id)
        return saved

    def delete_product(self, product_id: str) -> None:
        product_id = require_text(product_id, "product_id")
        self.backend.delete(product_id)
        LOGGER.info("Deleted product %s", product_id)


__all__ = ["RateLedgerEngine", "parse_metadata", "METADATA_FIELDS"]
