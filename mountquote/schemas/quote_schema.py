"""Computed price quote returned by the pricing engine."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    unit_price: Decimal
    quantity: int = 1
    line_total: Decimal


class QuoteCategory(BaseModel):
    """One breakdown section, e.g. "TV Mounting" or "Smart Home Installation"."""

    model_config = ConfigDict(frozen=True)

    name: str
    items: tuple[LineItem, ...]

    @property
    def total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))


class AppliedDiscount(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    amount: Decimal
    description: str = ""


class ManualQuoteItem(BaseModel):
    """A requested service that cannot be priced without an assessment."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""


class PriceQuote(BaseModel):
    """
    Itemized quote for a ServiceSelection.

    Built fresh on every call to ``compute_quote`` and never mutated;
    ``total`` is never below zero.
    """

    model_config = ConfigDict(frozen=True)

    breakdown: tuple[QuoteCategory, ...] = ()
    subtotal: Decimal = Decimal("0")
    applied_discounts: tuple[AppliedDiscount, ...] = ()
    total: Decimal = Decimal("0")
    manual_quote_items: tuple[ManualQuoteItem, ...] = ()

    @property
    def discount_total(self) -> Decimal:
        return sum((d.amount for d in self.applied_discounts), Decimal("0"))

    @property
    def requires_manual_quote(self) -> bool:
        return bool(self.manual_quote_items)

    def category(self, name: str) -> Optional[QuoteCategory]:
        for cat in self.breakdown:
            if cat.name == name:
                return cat
        return None
