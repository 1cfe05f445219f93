"""Mapping between :class:`Product` objects and storage documents.

The document layout is the one every backend persists::

    {
        "_id": "...",
        "productName": "Basmati Rice 5kg",
        "unit": "Pkt",
        "currentRate": {"rate": Decimal, "gst": Decimal, "finalRate": Decimal,
                        "partyName": str, "updatedAt": datetime,
                        "entryId": str, "billDate": "YYYY-MM-DD" | None,
                        "pageNo": str | None, "category": str | None},
        "rateHistory": [<rate>, ...],   # most recent first
        "version": int,
        "createdAt": datetime,
        "updatedAt": datetime,
    }

Decimals and datetimes are left native; each backend encodes them for its
own wire format (``Decimal128`` for MongoDB, JSON strings for SQL).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping

from rate_ledger.ledger.models import Product, Rate, RateHistory
from rate_ledger.utils.numbers import to_decimal
from rate_ledger.utils.timestamps import parse_bill_date, parse_timestamp


def rate_to_document(rate: Rate) -> dict[str, Any]:
    return {
        "rate": rate.rate,
        "gst": rate.gst,
        "finalRate": rate.final_rate,
        "partyName": rate.party_name,
        "updatedAt": rate.updated_at,
        "entryId": rate.entry_id,
        "billDate": rate.bill_date.isoformat() if rate.bill_date else None,
        "pageNo": rate.page_no,
        "category": rate.category,
    }


def rate_from_document(doc: Mapping[str, Any]) -> Rate:
    return Rate(
        rate=to_decimal(doc["rate"], field="rate"),
        gst=to_decimal(doc["gst"], field="gst"),
        final_rate=to_decimal(doc["finalRate"], field="finalRate"),
        party_name=doc["partyName"],
        updated_at=parse_timestamp(doc["updatedAt"]),
        entry_id=doc["entryId"],
        bill_date=parse_bill_date(doc.get("billDate")),
        page_no=doc.get("pageNo"),
        category=doc.get("category"),
    )


def product_to_document(product: Product) -> dict[str, Any]:
    return {
        "_id": product.product_id,
        "productName": product.product_name,
        "unit": product.unit,
        "currentRate": (
            rate_to_document(product.current_rate) if product.current_rate is not None else None
        ),
        "rateHistory": [rate_to_document(entry) for entry in product.rate_history],
        "version": product.version,
        "createdAt": product.created_at,
        "updatedAt": product.updated_at,
    }


def product_from_document(doc: Mapping[str, Any]) -> Product:
    current = doc.get("currentRate")
    created_at = doc.get("createdAt")
    updated_at = doc.get("updatedAt")
    return Product(
        product_id=str(doc["_id"]),
        product_name=doc["productName"],
        unit=doc["unit"],
        current_rate=rate_from_document(current) if current else None,
        rate_history=RateHistory(rate_from_document(entry) for entry in doc.get("rateHistory") or []),
        version=int(doc.get("version", 0)),
        created_at=parse_timestamp(created_at) if created_at else None,
        updated_at=parse_timestamp(updated_at) if updated_at else None,
    )


def json_default(value: object) -> object:
    """``json.dumps`` hook for the native values found in documents."""

    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


__all__ = [
    "rate_to_document",
    "rate_from_document",
    "product_to_document",
    "product_from_document",
    "json_default",
]
