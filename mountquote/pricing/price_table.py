"""
Price table: the configuration data the pricing engine is parameterised by.

The table is a nested mapping ``category -> item -> PriceItem`` plus a
``discounts`` mapping. It is passed explicitly into ``compute_quote``;
nothing in the engine reads a module-level table. Loading and saving a
table from JSON is provided for the admin price editor, which owns
persistence and versioning.
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)


class PriceTableError(ValueError):
    """Raised when a price table is missing entries or cannot be loaded."""


class PriceItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal = Field(default=Decimal("0"), ge=0)
    description: str = ""
    # Restricted items are never auto-priced; they need an on-site assessment.
    restriction: bool = False
    minimum: Optional[Decimal] = Field(default=None, ge=0)
    half_hour_rate: Optional[Decimal] = Field(default=None, ge=0)


class DiscountItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    min_services: Optional[int] = Field(default=None, ge=1)
    description: str = ""


REQUIRED_ITEMS: dict[str, tuple[str, ...]] = {
    "tv_mounting": (
        "standard", "fireplace", "ceiling", "non_drywall", "high_rise",
        "unmount", "remount", "deinstallation",
    ),
    "tv_mounts": (
        "fixed_small", "fixed_large", "tilting_small",
        "tilting_large", "full_motion_small", "full_motion_large",
    ),
    "wire_concealment": ("standard", "fireplace_warning"),
    "smart_home": (
        "camera", "doorbell", "doorbell_brick", "floodlight", "floodlight_no_wiring",
    ),
    "custom_services": ("handyman",),
    "travel": ("fee",),
}

REQUIRED_DISCOUNTS: tuple[str, ...] = ("combo", "bulk")


class PriceTable(BaseModel):
    """Validated price configuration. Every lookup the strategies make is guaranteed to exist."""

    model_config = ConfigDict(frozen=True)

    categories: dict[str, dict[str, PriceItem]]
    discounts: dict[str, DiscountItem]

    @model_validator(mode="after")
    def _check_required(self) -> "PriceTable":
        missing = [
            f"{category}.{key}"
            for category, keys in REQUIRED_ITEMS.items()
            for key in keys
            if key not in self.categories.get(category, {})
        ]
        missing += [
            f"discounts.{key}" for key in REQUIRED_DISCOUNTS if key not in self.discounts
        ]
        if missing:
            raise ValueError(f"price table is missing: {', '.join(missing)}")

        handyman = self.categories["custom_services"]["handyman"]
        if handyman.minimum is None or handyman.half_hour_rate is None:
            raise ValueError("custom_services.handyman needs minimum and half_hour_rate")
        bulk = self.discounts["bulk"]
        if bulk.percent is None or bulk.min_services is None:
            raise ValueError("discounts.bulk needs percent and min_services")
        return self

    def item(self, category: str, key: str) -> PriceItem:
        return self.categories[category][key]

    def price(self, category: str, key: str) -> Decimal:
        return self.categories[category][key].price

    def discount(self, key: str) -> DiscountItem:
        return self.discounts[key]


DEFAULT_PRICE_DATA: dict[str, Any] = {
    "categories": {
        "tv_mounting": {
            "standard": {
                "name": "Standard TV Mounting (Customer's Mount)",
                "price": 100,
                "description": "Mounting a TV on drywall with a customer-provided mount, any size.",
            },
            "fireplace": {
                "name": "Over Fireplace TV Mounting",
                "price": 200,
                "description": "Mounting a TV above a fireplace.",
            },
            "ceiling": {
                "name": "Ceiling TV Mounting",
                "price": 175,
                "description": "Mounting a TV from a ceiling bracket.",
            },
            "non_drywall": {
                "name": "Non-Drywall (Brick, Masonry, etc.)",
                "price": 50,
                "description": "Additional fee for mounting on brick, stone, or other non-drywall surfaces.",
            },
            "high_rise": {
                "name": "High-Rise/Steel Stud Mounting",
                "price": 25,
                "description": "Additional fee for mounting in high-rise buildings or on steel studs.",
            },
            "remount": {
                "name": "Remount on Existing Mount (Customer Provides Matching Arms)",
                "price": 50,
                "description": "Reattaching a TV to an existing mount with matching arms.",
            },
            "unmount": {
                "name": "TV Unmounting",
                "price": 50,
                "description": "Removing a mounted TV from the wall.",
            },
            "deinstallation": {
                "name": "TV De-Installation (Removal Only)",
                "price": 50,
                "description": "Taking down a TV and its mount, any size or wall type.",
            },
        },
        "tv_mounts": {
            "fixed_small": {"name": "Fixed Mount (32\"-55\")", "price": 50},
            "fixed_large": {"name": "Fixed Mount (56\"+)", "price": 65},
            "tilting_small": {"name": "Tilting Mount (32\"-55\")", "price": 65},
            "tilting_large": {"name": "Tilting Mount (56\"+)", "price": 80},
            "full_motion_small": {"name": "Full Motion Mount (32\"-55\")", "price": 90},
            "full_motion_large": {"name": "Full Motion Mount (56\"+)", "price": 120},
        },
        "wire_concealment": {
            "standard": {
                "name": "Standard Wire Concealment (New Outlet Behind TV)",
                "price": 100,
                "description": "Installing a new outlet behind the TV with concealed wires.",
            },
            "fireplace_warning": {
                "name": "Wire Concealment Above Fireplace",
                "restriction": True,
                "description": "Requires pictures of the nearest outlet for pricing.",
            },
        },
        "smart_home": {
            "camera": {
                "name": "Smart Security Camera Installation",
                "price": 75,
                "description": "Installing a smart security camera.",
            },
            "doorbell": {
                "name": "Smart Doorbell Installation",
                "price": 85,
                "description": "Installing a smart video doorbell.",
            },
            "doorbell_brick": {
                "name": "Doorbell Brick Installation",
                "price": 10,
                "description": "Drilling into brick or masonry for a doorbell.",
            },
            "floodlight": {
                "name": "Smart Floodlight Installation (Existing Wiring)",
                "price": 125,
                "description": "Installing a smart floodlight with existing wiring.",
            },
            "floodlight_no_wiring": {
                "name": "Smart Floodlight Installation (No Wiring)",
                "restriction": True,
                "description": "Requires assessment for proper pricing.",
            },
        },
        "custom_services": {
            "handyman": {
                "name": "General Handyman Work",
                "price": 100,
                "minimum": 100,
                "half_hour_rate": 50,
                "description": "Shelves, Mirrors, Furniture Assembly. $50 for every additional 30 minutes.",
            },
        },
        "travel": {
            "fee": {"name": "Travel Fee", "price": 0},
        },
    },
    "discounts": {
        "combo": {
            "name": "Mount + Removal Combo",
            "amount": 25,
            "description": "Mounting and TV removal booked in the same visit.",
        },
        "bulk": {
            "name": "Multi-Service Discount",
            "percent": 10,
            "min_services": 3,
            "description": "10% off when booking three or more services.",
        },
    },
}


def build_price_table(data: dict[str, Any]) -> PriceTable:
    """Validate raw price data, raising PriceTableError with the pydantic details."""
    try:
        return PriceTable.model_validate(data)
    except ValidationError as exc:
        raise PriceTableError(f"Invalid price table: {exc}") from exc


def default_price_table() -> PriceTable:
    return build_price_table(DEFAULT_PRICE_DATA)


def load_price_table(path: Optional[Union[str, Path]] = None) -> PriceTable:
    """Load a price table from JSON, or the built-in defaults when no path is given."""
    if not path:
        return default_price_table()
    table_path = Path(path)
    try:
        raw = table_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PriceTableError(f"Cannot read price table {table_path}: {exc}") from exc
    try:
        table = PriceTable.model_validate_json(raw)
    except ValidationError as exc:
        raise PriceTableError(f"Invalid price table in {table_path}: {exc}") from exc
    logger.info("Price table loaded from %s", table_path)
    return table


def save_price_table(table: PriceTable, path: Union[str, Path]) -> None:
    """Write a price table as JSON for the admin price editor."""
    table_path = Path(path)
    table_path.write_text(table.model_dump_json(indent=2), encoding="utf-8")
    logger.info("Price table saved to %s", table_path)
