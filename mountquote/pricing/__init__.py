from mountquote.pricing.discounts import count_services, select_discount
from mountquote.pricing.engine import compute_quote, strategies_for_travel_mode
from mountquote.pricing.price_table import (
    PriceTable,
    PriceTableError,
    default_price_table,
    load_price_table,
    save_price_table,
)

__all__ = [
    "compute_quote",
    "strategies_for_travel_mode",
    "count_services",
    "select_discount",
    "PriceTable",
    "PriceTableError",
    "default_price_table",
    "load_price_table",
    "save_price_table",
]
