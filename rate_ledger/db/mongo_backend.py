"""MongoDB backend strategy."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any

from bson.decimal128 import Decimal128
from pymongo import DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from rate_ledger.db.base_backend import BackendStrategy
from rate_ledger.ledger.errors import ConflictError, NotFoundError
from rate_ledger.ledger.models import Product
from rate_ledger.ledger.serialization import product_from_document, product_to_document
from rate_ledger.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_COLLECTION = "products"


def _encode(value: Any) -> Any:
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_encode(item) for item in value]
    return value


class MongoBackend(BackendStrategy):
    """Backend strategy that keeps each product as one MongoDB document."""

    def __init__(
        self,
        url: str,
        *,
        database: str | None = None,
        collection: str = DEFAULT_COLLECTION,
    ) -> None:
        self.url = url
        self._client = MongoClient(url, tz_aware=True)
        db = self._client.get_default_database() if database is None else self._client[database]
        if db is None:
            raise ValueError("MongoDB connection URI must include a database name")
        self._collection: Collection = db[collection]

    def ensure_schema(self) -> None:
        try:
            LOGGER.info("Ensuring MongoDB products collection exists")
            self._client.admin.command("ping")
            self._collection.create_index([("productName", 1)], unique=True)
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to ensure MongoDB schema: {exc}") from exc

    def load(self, product_id: str) -> Product:
        try:
            doc = self._collection.find_one({"_id": product_id})
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to load product {product_id}: {exc}") from exc
        if doc is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product_from_document(doc)

    def find_by_name(self, product_name: str) -> Product | None:
        try:
            doc = self._collection.find_one({"productName": product_name})
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to look up product {product_name!r}: {exc}") from exc
        return product_from_document(doc) if doc is not None else None

    def save(self, product: Product) -> Product:
        stored = replace(product, version=product.version + 1)
        doc = _encode(product_to_document(stored))
        try:
            if not product.is_persisted:
                self._collection.insert_one(doc)
                return stored
            result = self._collection.replace_one(
                {"_id": product.product_id, "version": product.version},
                doc,
            )
            if result.matched_count == 0:
                if self._collection.count_documents({"_id": product.product_id}, limit=1) == 0:
                    raise NotFoundError(f"Product {product.product_id} not found")
                raise ConflictError(
                    f"Product {product.product_id} was modified concurrently; reload and retry"
                )
        except DuplicateKeyError as exc:
            raise ConflictError(
                f"A product named {product.product_name!r} already exists"
            ) from exc
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to save product {product.product_id}: {exc}") from exc
        return stored

    def delete(self, product_id: str) -> None:
        try:
            result = self._collection.delete_one({"_id": product_id})
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to delete product {product_id}: {exc}") from exc
        if result.deleted_count == 0:
            raise NotFoundError(f"Product {product_id} not found")

    def list_products(self) -> list[Product]:
        try:
            docs = self._collection.find({}).sort("currentRate.updatedAt", DESCENDING)
            return [product_from_document(doc) for doc in docs]
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to list products: {exc}") from exc

    def close(self) -> None:  # pragma: no cover - trivial cleanup
        self._client.close()


__all__ = ["MongoBackend", "DEFAULT_COLLECTION"]
