"""
Command-line entry point for quoting and slot lookups.

Usage:
    Quote a cart:        python main.py quote selection.json
    Open slots for date: python main.py slots 2025-06-14
    Next open dates:     python main.py dates --limit 5
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from mountquote.config import settings
from mountquote.pricing import PriceTableError, compute_quote, load_price_table, strategies_for_travel_mode
from mountquote.schemas.quote_schema import PriceQuote
from mountquote.schemas.selection_schema import ServiceSelection
from mountquote.tools.availability import build_context, get_available_dates, get_available_slots
from mountquote.tools.calendar_store import CalendarStore
from mountquote.utils import format_price, parse_iso_date

logger = logging.getLogger(__name__)


def format_quote(quote: PriceQuote) -> str:
    """Plain-text rendering of a quote breakdown."""
    symbol = settings.business.currency_symbol
    lines = []
    for category in quote.breakdown:
        lines.append(category.name)
        for item in category.items:
            qty = f" x{item.quantity}" if item.quantity > 1 else ""
            lines.append(f"  {item.name}{qty}: {format_price(item.line_total, symbol)}")
    for manual in quote.manual_quote_items:
        lines.append(f"Needs assessment: {manual.name} - {manual.description}")
    lines.append(f"Subtotal: {format_price(quote.subtotal, symbol)}")
    for discount in quote.applied_discounts:
        lines.append(f"{discount.name}: -{format_price(discount.amount, symbol)}")
    lines.append(f"Total: {format_price(quote.total, symbol)}")
    return "\n".join(lines)


def _run_quote(args: argparse.Namespace) -> int:
    selection_path = Path(args.selection)
    if not selection_path.exists():
        logger.error("Selection file not found: %s", selection_path)
        return 1
    try:
        table = load_price_table(args.price_table or settings.pricing.price_table_path)
        selection = ServiceSelection.model_validate(
            json.loads(selection_path.read_text(encoding="utf-8"))
        )
    except PriceTableError as exc:
        logger.error("%s", exc)
        return 1
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.error("Invalid selection in %s: %s", selection_path, exc)
        return 1

    strategies = strategies_for_travel_mode(
        settings.pricing.travel_fee_mode,
        settings.pricing.travel_free_minutes,
        settings.pricing.travel_per_minute,
    )
    quote = compute_quote(selection, table, strategies)
    if args.json:
        sys.stdout.write(quote.model_dump_json(indent=2) + "\n")
    else:
        sys.stdout.write(format_quote(quote) + "\n")
    return 0


def _run_slots(args: argparse.Namespace) -> int:
    if parse_iso_date(args.date) is None:
        logger.error("Not a valid YYYY-MM-DD date: %s", args.date)
        return 1
    context = build_context(CalendarStore())
    slots = get_available_slots(args.date, context)
    if not slots:
        sys.stdout.write(f"No open slots on {args.date}\n")
        return 0
    sys.stdout.write("\n".join(slots) + "\n")
    return 0


def _run_dates(args: argparse.Namespace) -> int:
    context = build_context(CalendarStore())
    for entry in get_available_dates(context, limit=args.limit):
        sys.stdout.write(f"{entry['date']} ({entry['day_name']}): {entry['slot_count']} slot(s)\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"{settings.business.name} quotes and availability."
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging output.")
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Price a service selection JSON file.")
    quote.add_argument("selection", help="Path to a ServiceSelection JSON file.")
    quote.add_argument(
        "--price-table", default=None,
        help="Price table JSON (default: PRICE_TABLE_PATH or built-in prices).",
    )
    quote.add_argument("--json", action="store_true", help="Print the quote as JSON.")
    quote.set_defaults(handler=_run_quote)

    slots = sub.add_parser("slots", help="List open appointment times for a date.")
    slots.add_argument("date", help="Date as YYYY-MM-DD.")
    slots.set_defaults(handler=_run_slots)

    dates = sub.add_parser("dates", help="List the next dates with open slots.")
    dates.add_argument("--limit", type=int, default=None, help="Maximum dates to show.")
    dates.set_defaults(handler=_run_dates)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
