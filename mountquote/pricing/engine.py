"""
Quote aggregator.

``compute_quote`` runs every pricing strategy over the selection, keeps
the non-empty categories in order, sums the subtotal, applies at most one
discount and clamps the total at zero. It has no side effects and reads
nothing but its arguments, so the same inputs always give the same quote.

Usage:
    table = default_price_table()
    quote = compute_quote(selection, table)
    print(quote.total)
"""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from mountquote.pricing.discounts import select_discount
from mountquote.pricing.price_table import PriceTable
from mountquote.pricing.strategies import (
    DistanceTravelStrategy,
    FlatTravelStrategy,
    PricingStrategy,
    default_strategies,
)
from mountquote.schemas.quote_schema import PriceQuote
from mountquote.schemas.selection_schema import ServiceSelection

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def compute_quote(
    selection: ServiceSelection,
    price_table: PriceTable,
    strategies: Optional[Sequence[PricingStrategy]] = None,
) -> PriceQuote:
    """Turn a ServiceSelection into an itemized PriceQuote."""
    if strategies is None:
        strategies = default_strategies()

    breakdown = []
    manual_items = []
    subtotal = ZERO
    for strategy in strategies:
        result = strategy.price(selection, price_table)
        manual_items.extend(result.manual_items)
        if not result.items:
            continue
        breakdown.append(result.to_category())
        subtotal += result.total

    discount = select_discount(selection, subtotal, price_table)
    discounts = (discount,) if discount is not None else ()
    total = max(ZERO, subtotal - sum((d.amount for d in discounts), ZERO))

    return PriceQuote(
        breakdown=tuple(breakdown),
        subtotal=subtotal,
        applied_discounts=discounts,
        total=total,
        manual_quote_items=tuple(manual_items),
    )


def strategies_for_travel_mode(
    mode: str, free_minutes: float = 30, per_minute: float = 2
) -> list[PricingStrategy]:
    """Strategy set for a configured travel fee mode ("flat" or "distance")."""
    if mode == "distance":
        return default_strategies(DistanceTravelStrategy(free_minutes, per_minute))
    if mode != "flat":
        logger.warning("Unknown travel fee mode '%s', using flat fee", mode)
    return default_strategies(FlatTravelStrategy())
