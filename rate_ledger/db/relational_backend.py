"""Shared logic for SQL (SQLite/Postgres/MySQL) backends."""

from __future__ import annotations

import json
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Mapping

from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from rate_ledger.db.base_backend import BackendStrategy
from rate_ledger.ledger.errors import ConflictError, NotFoundError
from rate_ledger.ledger.models import Product
from rate_ledger.ledger.serialization import (
    json_default,
    product_from_document,
    product_to_document,
)
from rate_ledger.utils.logger import get_logger

if TYPE_CHECKING:  # pragma: no cover - type checker helper
    from sqlalchemy.engine import Engine

LOGGER = get_logger(__name__)

# Embedded rates are kept as JSON text so the row mirrors the document layout
# used by the MongoDB backend. Timestamps are ISO-8601 strings for the same
# reason: ``text()`` queries bypass SQLAlchemy type processing.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS products (
    id VARCHAR(32) NOT NULL PRIMARY KEY,
    product_name VARCHAR(255) NOT NULL UNIQUE,
    unit VARCHAR(64) NOT NULL,
    current_rate TEXT NOT NULL,
    rate_history TEXT NOT NULL,
    version INTEGER NOT NULL,
    created_at VARCHAR(40) NOT NULL,
    updated_at VARCHAR(40) NOT NULL
);
"""

SELECT_COLUMNS = (
    "id, product_name, unit, current_rate, rate_history, version, created_at, updated_at"
)
SELECT_BY_ID_SQL = f"SELECT {SELECT_COLUMNS} FROM products WHERE id = :id"
SELECT_BY_NAME_SQL = f"SELECT {SELECT_COLUMNS} FROM products WHERE product_name = :product_name"
SELECT_ALL_SQL = f"SELECT {SELECT_COLUMNS} FROM products"
EXISTS_SQL = "SELECT 1 FROM products WHERE id = :id"
DELETE_SQL = "DELETE FROM products WHERE id = :id"
INSERT_SQL = """
INSERT INTO products(
    id, product_name, unit, current_rate, rate_history, version, created_at, updated_at
)
VALUES(
    :id, :product_name, :unit, :current_rate, :rate_history, :version, :created_at, :updated_at
)
"""
UPDATE_SQL = """
UPDATE products
SET product_name = :product_name,
    unit = :unit,
    current_rate = :current_rate,
    rate_history = :rate_history,
    version = :version,
    updated_at = :updated_at
WHERE id = :id AND version = :expected_version
"""


class RelationalBackend(BackendStrategy):
    """Base class that encapsulates SQLAlchemy powered interactions."""

    def __init__(self, url: str, *, engine_options: Mapping[str, Any] | None = None) -> None:
        self.url = url
        self._engine_options = dict(engine_options or {})
        self._engine_instance: Engine | None = None

    def _get_engine(self) -> Engine:
        if self._engine_instance is None:
            self._engine_instance = create_engine(self.url, future=True, **self._engine_options)
        return self._engine_instance

    def ensure_schema(self) -> None:
        engine = self._get_engine()
        try:
            with engine.begin() as connection:
                LOGGER.info("Ensuring products schema exists")
                connection.execute(text("SELECT 1"))
                connection.execute(text(SCHEMA_SQL))
        except SQLAlchemyError as exc:
            raise RuntimeError(f"Failed to ensure products schema: {exc}") from exc

    def load(self, product_id: str) -> Product:
        try:
            with self._get_engine().connect() as connection:
                row = connection.execute(text(SELECT_BY_ID_SQL), {"id": product_id}).first()
        except SQLAlchemyError as exc:
            raise RuntimeError(f"Failed to load product {product_id}: {exc}") from exc
        if row is None:
            raise NotFoundError(f"Product {product_id} not found")
        return _row_to_product(row._mapping)

    def find_by_name(self, product_name: str) -> Product | None:
        try:
            with self._get_engine().connect() as connection:
                row = connection.execute(
                    text(SELECT_BY_NAME_SQL), {"product_name": product_name}
                ).first()
        except SQLAlchemyError as exc:
            raise RuntimeError(f"Failed to look up product {product_name!r}: {exc}") from exc
        return _row_to_product(row._mapping) if row is not None else None

    def save(self, product: Product) -> Product:
        stored = replace(product, version=product.version + 1)
        params = _product_to_params(stored)
        engine = self._get_engine()
        try:
            with engine.begin() as connection:
                if not product.is_persisted:
                    connection.execute(text(INSERT_SQL), params)
                    return stored
                result = connection.execute(
                    text(UPDATE_SQL), {**params, "expected_version": product.version}
                )
                if result.rowcount == 0:
                    exists = connection.execute(
                        text(EXISTS_SQL), {"id": product.product_id}
                    ).first()
                    if exists is None:
                        raise NotFoundError(f"Product {product.product_id} not found")
                    raise ConflictError(
                        f"Product {product.product_id} was modified concurrently; reload and retry"
                    )
        except IntegrityError as exc:
            raise ConflictError(
                f"A product named {product.product_name!r} already exists"
            ) from exc
        except SQLAlchemyError as exc:
            raise RuntimeError(f"Failed to save product {product.product_id}: {exc}") from exc
        return stored

    def delete(self, product_id: str) -> None:
        try:
            with self._get_engine().begin() as connection:
                deleted = connection.execute(text(DELETE_SQL), {"id": product_id}).rowcount
        except SQLAlchemyError as exc:
            raise RuntimeError(f"Failed to delete product {product_id}: {exc}") from exc
        if deleted == 0:
            raise NotFoundError(f"Product {product_id} not found")

    def list_products(self) -> list[Product]:
        try:
            with self._get_engine().connect() as connection:
                rows = connection.execute(text(SELECT_ALL_SQL)).all()
        except SQLAlchemyError as exc:
            raise RuntimeError(f"Failed to list products: {exc}") from exc
        products = [_row_to_product(row._mapping) for row in rows]
        products.sort(
            key=lambda item: item.current_rate.updated_at if item.current_rate else item.created_at,
            reverse=True,
        )
        return products

    def close(self) -> None:  # pragma: no cover - trivial resource cleanup
        if self._engine_instance is not None:
            self._engine_instance.dispose()


def _product_to_params(product: Product) -> dict[str, Any]:
    doc = product_to_document(product)
    return {
        "id": doc["_id"],
        "product_name": doc["productName"],
        "unit": doc["unit"],
        "current_rate": json.dumps(doc["currentRate"], default=json_default),
        "rate_history": json.dumps(doc["rateHistory"], default=json_default),
        "version": doc["version"],
        "created_at": json_default(doc["createdAt"]),
        "updated_at": json_default(doc["updatedAt"]),
    }


def _row_to_product(mapping: Mapping[str, Any]) -> Product:
    return product_from_document(
        {
            "_id": mapping["id"],
            "productName": mapping["product_name"],
            "unit": mapping["unit"],
            "currentRate": json.loads(mapping["current_rate"]),
            "rateHistory": json.loads(mapping["rate_history"]),
            "version": mapping["version"],
            "createdAt": mapping["created_at"],
            "updatedAt": mapping["updated_at"],
        }
    )


__all__ = ["RelationalBackend", "SCHEMA_SQL"]
