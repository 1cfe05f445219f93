"""Command line access to the rate ledger."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Sequence

from rate_ledger import RateLedger
from rate_ledger.ledger.errors import LedgerError, ValidationError
from rate_ledger.ledger.models import Product
from rate_ledger.ledger.serialization import json_default, product_to_document
from rate_ledger.suggestion.category import HTTPCategorySuggester
from rate_ledger.utils.logger import get_logger, set_log_level

LOGGER = get_logger(__name__)

DB_URL_ENV = "RATE_LEDGER_DB_URL"
SUGGEST_URL_ENV = "RATE_LEDGER_SUGGEST_URL"

__all__ = ["build_parser", "parse_args", "main"]


def _add_metadata_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--bill-date", dest="bill_date", help="Bill date (YYYY-MM-DD)")
    parser.add_argument("--page-no", dest="page_no", help="Ledger page number")
    parser.add_argument("--category", help="Product category")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rate-ledger", description=__doc__)
    parser.add_argument(
        "--db-url",
        dest="db_url",
        default=os.environ.get(DB_URL_ENV),
        help=f"Database DSN (default: ${DB_URL_ENV} or a local SQLite file)",
    )
    parser.add_argument(
        "--suggest-url",
        dest="suggest_url",
        default=os.environ.get(SUGGEST_URL_ENV),
        help=f"Category suggestion endpoint (default: ${SUGGEST_URL_ENV})",
    )
    parser.add_argument("--log-level", dest="log_level", default="WARNING")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create a product with its first rate")
    create.add_argument("product_name")
    create.add_argument("unit")
    create.add_argument("rate")
    create.add_argument("gst")
    create.add_argument("party_name")
    _add_metadata_arguments(create)
    create.add_argument("--suggest-category", action="store_true")

    supersede = commands.add_parser("supersede", help="Record a new current rate")
    supersede.add_argument("product_id")
    supersede.add_argument("rate")
    supersede.add_argument("gst")
    supersede.add_argument("party_name")
    _add_metadata_arguments(supersede)
    supersede.add_argument("--suggest-category", action="store_true")

    amend = commands.add_parser("amend", help="Edit metadata of the current rate")
    amend.add_argument("product_id")
    _add_metadata_arguments(amend)

    delete_entry = commands.add_parser("delete-entry", help="Delete one history entry")
    delete_entry.add_argument("product_id")
    target = delete_entry.add_mutually_exclusive_group(required=True)
    target.add_argument("--updated-at", dest="updated_at", help="ISO-8601 timestamp of the entry")
    target.add_argument("--entry-id", dest="entry_id", help="Synthetic id of the entry")

    restore = commands.add_parser("restore", help="Promote the latest history entry to current")
    restore.add_argument("product_id")

    delete = commands.add_parser("delete", help="Delete a product and its history")
    delete.add_argument("product_id")

    show = commands.add_parser("show", help="Show one product")
    show.add_argument("product_id")

    listing = commands.add_parser("list", help="List products, newest price first")
    listing.add_argument("--name", dest="name_contains")
    listing.add_argument("--party", dest="party_name")
    listing.add_argument("--gst")
    listing.add_argument("--unit")

    suggest = commands.add_parser("suggest", help="Suggest a category for a product name")
    suggest.add_argument("product_name")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _metadata(args: argparse.Namespace) -> dict[str, Any]:
    """Only forward the metadata flags that were actually given."""

    return {
        key: getattr(args, key)
        for key in ("bill_date", "page_no", "category")
        if getattr(args, key) is not None
    }


def _product_payload(product: Product) -> dict[str, Any]:
    return product_to_document(product)


def _dispatch(ledger: RateLedger, args: argparse.Namespace) -> Any:
    command = args.command
    if command == "create":
        return _product_payload(
            ledger.create_product(
                args.product_name,
                args.unit,
                args.rate,
                args.gst,
                args.party_name,
                _metadata(args),
                suggest_category=args.suggest_category,
            )
        )
    if command == "supersede":
        return _product_payload(
            ledger.supersede_rate(
                args.product_id,
                args.rate,
                args.gst,
                args.party_name,
                _metadata(args),
                suggest_category=args.suggest_category,
            )
        )
    if command == "amend":
        return _product_payload(ledger.amend_current_metadata(args.product_id, _metadata(args)))
    if command == "delete-entry":
        if args.entry_id:
            product = ledger.delete_history_entry_by_id(args.product_id, args.entry_id)
        else:
            product = ledger.delete_history_entry(args.product_id, args.updated_at)
        return _product_payload(product)
    if command == "restore":
        return _product_payload(ledger.restore_from_history(args.product_id))
    if command == "delete":
        ledger.delete_product(args.product_id)
        return {}
    if command == "show":
        return _product_payload(ledger.get_product(args.product_id))
    if command == "list":
        products = ledger.list_products(
            name_contains=args.name_contains,
            party_name=args.party_name,
            gst=args.gst,
            unit=args.unit,
        )
        return [_product_payload(product) for product in products]
    if command == "suggest":
        return {"category": ledger.suggest_category(args.product_name)}
    raise ValueError(f"Unknown command: {command}")  # pragma: no cover - argparse guards this


def _fail(command: str, code: str, message: str) -> int:
    LOGGER.info("%s failed: %s", command, message)
    json.dump({"success": False, "error": code, "message": message}, sys.stdout)
    sys.stdout.write("\n")
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    set_log_level(args.log_level)
    try:
        suggester = HTTPCategorySuggester(args.suggest_url) if args.suggest_url else None
        ledger = RateLedger(args.db_url, suggester=suggester)
    except ValueError as exc:
        return _fail(args.command, ValidationError.code, str(exc))
    with ledger:
        try:
            data = _dispatch(ledger, args)
        except LedgerError as exc:
            return _fail(args.command, exc.code, str(exc))
    json.dump({"success": True, "data": data}, sys.stdout, default=json_default, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
