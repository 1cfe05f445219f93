from __future__ import annotations

import pytest

from rate_ledger.db.base_backend import BackendStrategy
from rate_ledger.ledger.models import Product


class _DummyBackend(BackendStrategy):
    def __init__(self) -> None:
        self.products: dict[str, Product] = {}

    def ensure_schema(self) -> None:
        return None

    def load(self, product_id: str) -> Product:
        return self.products[product_id]

    def find_by_name(self, product_name: str) -> Product | None:
        return next((p for p in self.products.values() if p.product_name == product_name), None)

    def save(self, product: Product) -> Product:
        product.version += 1
        self.products[product.product_id] = product
        return product

    def delete(self, product_id: str) -> None:
        self.products.pop(product_id)

    def list_products(self) -> list[Product]:
        return list(self.products.values())


class _PartialBackend(BackendStrategy):
    def ensure_schema(self) -> None:
        return None


def test_base_backend_requires_every_storage_method() -> None:
    with pytest.raises(TypeError):
        _PartialBackend()  # type: ignore[abstract]


def test_base_backend_close_is_optional() -> None:
    backend = _DummyBackend()

    assert backend.close() is None


def test_dummy_backend_satisfies_the_strategy() -> None:
    backend = _DummyBackend()
    product = Product(product_id="p1", product_name="Tata Salt 1kg", unit="Pkt", current_rate=None)

    saved = backend.save(product)

    assert saved.is_persisted
    assert backend.find_by_name("Tata Salt 1kg") is saved
    assert backend.list_products() == [saved]
