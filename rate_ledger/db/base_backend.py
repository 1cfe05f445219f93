"""Backend strategy interface for the rate ledger."""

from __future__ import annotations

from abc import ABC, abstractmethod

from rate_ledger.ledger.models import Product


class BackendStrategy(ABC):
    """Common interface implemented by every storage backend.

    ``save`` is the only write path for ledger state. It inserts when the
    product has never been stored (``version == 0``) and otherwise replaces
    the record only if the stored version still equals ``product.version``.
    Either way the returned product carries the new version.
    """

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create required tables/collections and the unique name index."""

    @abstractmethod
    def load(self, product_id: str) -> Product:
        """Return the stored product or raise ``NotFoundError``."""

    @abstractmethod
    def find_by_name(self, product_name: str) -> Product | None:
        """Return the product with exactly this name, if any."""

    @abstractmethod
    def save(self, product: Product) -> Product:
        """Persist ``product``; raise ``ConflictError`` on duplicates or lost races."""

    @abstractmethod
    def delete(self, product_id: str) -> None:
        """Remove a product and its history or raise ``NotFoundError``."""

    @abstractmethod
    def list_products(self) -> list[Product]:
        """Return every product, most recently re-priced first."""

    def close(self) -> None:  # pragma: no cover - optional cleanup hook
        """Backends may override to release connections/resources."""


__all__ = ["BackendStrategy"]
