"""
Per-category pricing strategies.

Each strategy prices one slice of a ServiceSelection against a PriceTable
and returns a CategoryResult. Strategies are independent of each other;
the engine runs them in order and sums their line totals into the
subtotal before any discount is considered.

Usage:
    result = SmartHomeStrategy().price(selection, table)
    assert result.total == Decimal("225")
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_CEILING, Decimal
from typing import Optional, Protocol

from mountquote.pricing.price_table import PriceItem, PriceTable
from mountquote.schemas.quote_schema import LineItem, ManualQuoteItem, QuoteCategory
from mountquote.schemas.selection_schema import (
    MountHardware,
    MountLocation,
    ServiceSelection,
    SmartDeviceType,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE_HOUR = Decimal("1")


@dataclass
class CategoryResult:
    """Line items and manual-quote flags produced by one strategy."""

    category: str
    items: list[LineItem] = field(default_factory=list)
    manual_items: list[ManualQuoteItem] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((item.line_total for item in self.items), ZERO)

    def add(self, name: str, unit_price: Decimal, quantity: int = 1) -> None:
        if quantity <= 0:
            return
        self.items.append(
            LineItem(
                name=name,
                unit_price=unit_price,
                quantity=quantity,
                line_total=unit_price * quantity,
            )
        )

    def flag(self, item: PriceItem) -> None:
        self.manual_items.append(
            ManualQuoteItem(name=item.name, description=item.description)
        )

    def to_category(self) -> QuoteCategory:
        return QuoteCategory(name=self.category, items=tuple(self.items))


class PricingStrategy(Protocol):
    category: str

    def price(self, selection: ServiceSelection, table: PriceTable) -> CategoryResult:
        ...


def _tv_label(index: int, name: str) -> str:
    return f"TV {index + 1}: {name}"


class TVMountingStrategy:
    """Labor for each TV: location base price plus surface surcharges.

    Unmount-only and remount-only items are flat services and skip
    everything else on the item.
    """

    category = "TV Mounting"

    _BASE_KEYS = {
        MountLocation.STANDARD: "standard",
        MountLocation.FIREPLACE: "fireplace",
        MountLocation.CEILING: "ceiling",
    }

    def price(self, selection: ServiceSelection, table: PriceTable) -> CategoryResult:
        result = CategoryResult(self.category)
        for index, tv in enumerate(selection.tv_mounts):
            if tv.is_flat_service:
                if tv.unmount_only:
                    unmount = table.item("tv_mounting", "unmount")
                    result.add(_tv_label(index, unmount.name), unmount.price)
                if tv.remount_only:
                    remount = table.item("tv_mounting", "remount")
                    result.add(_tv_label(index, remount.name), remount.price)
                continue

            base = table.item("tv_mounting", self._BASE_KEYS[tv.location])
            result.add(_tv_label(index, base.name), base.price)
            if tv.non_drywall_surface:
                surcharge = table.item("tv_mounting", "non_drywall")
                result.add(_tv_label(index, surcharge.name), surcharge.price)
            if tv.high_rise:
                surcharge = table.item("tv_mounting", "high_rise")
                result.add(_tv_label(index, surcharge.name), surcharge.price)
        return result


class MountHardwareStrategy:
    """Mounts sold to the customer, priced by TV size x mount type."""

    category = "TV Mounts"

    def price(self, selection: ServiceSelection, table: PriceTable) -> CategoryResult:
        result = CategoryResult(self.category)
        for index, tv in enumerate(selection.tv_mounts):
            if tv.is_flat_service or tv.mount_hardware == MountHardware.NONE:
                continue
            key = f"{tv.mount_hardware.value}_{tv.size.value}"
            mount = table.item("tv_mounts", key)
            result.add(_tv_label(index, mount.name), mount.price)
        return result


class WireConcealmentStrategy:
    """Flat outlet fee per TV; fireplace outlets go to manual quoting."""

    category = "Wire Concealment & Outlet Installation"

    def price(self, selection: ServiceSelection, table: PriceTable) -> CategoryResult:
        result = CategoryResult(self.category)
        for index, tv in enumerate(selection.tv_mounts):
            if tv.is_flat_service or not tv.outlet_install:
                continue
            if tv.location == MountLocation.FIREPLACE:
                result.flag(table.item("wire_concealment", "fireplace_warning"))
                logger.debug("TV %d outlet above fireplace flagged for manual quote", index + 1)
                continue
            outlet = table.item("wire_concealment", "standard")
            result.add(_tv_label(index, outlet.name), outlet.price)
        return result


class SmartHomeStrategy:
    """Per-unit device installs, with the doorbell brick surcharge per unit."""

    category = "Smart Home Installation"

    _KEYS = {
        SmartDeviceType.CAMERA: "camera",
        SmartDeviceType.DOORBELL: "doorbell",
        SmartDeviceType.FLOODLIGHT: "floodlight",
    }

    def price(self, selection: ServiceSelection, table: PriceTable) -> CategoryResult:
        result = CategoryResult(self.category)
        for device in selection.smart_home_devices:
            if device.quantity <= 0:
                continue
            if device.type == SmartDeviceType.FLOODLIGHT and not device.existing_wiring:
                result.flag(table.item("smart_home", "floodlight_no_wiring"))
                continue
            unit = table.item("smart_home", self._KEYS[device.type])
            result.add(unit.name, unit.price, device.quantity)
            if device.type == SmartDeviceType.DOORBELL and device.brick_installation:
                brick = table.item("smart_home", "doorbell_brick")
                result.add(brick.name, brick.price, device.quantity)
        return result


class DeinstallationStrategy:
    """TV removal at one flat rate, whatever else is in the cart."""

    category = "TV Removal"

    def price(self, selection: ServiceSelection, table: PriceTable) -> CategoryResult:
        result = CategoryResult(self.category)
        removal = table.item("tv_mounting", "deinstallation")
        result.add(removal.name, removal.price, selection.deinstallations)
        return result


def billable_half_hours(hours: float) -> int:
    """Half-hour increments beyond the first hour, rounded up."""
    exact = Decimal(str(hours))
    if exact <= ONE_HOUR:
        return 0
    return int(((exact - ONE_HOUR) * 2).to_integral_value(rounding=ROUND_CEILING))


def handyman_price(hours: float, item: PriceItem) -> Decimal:
    if hours <= 0:
        return ZERO
    minimum = item.minimum if item.minimum is not None else item.price
    rate = item.half_hour_rate if item.half_hour_rate is not None else ZERO
    return minimum + rate * billable_half_hours(hours)


class HandymanStrategy:
    """First hour at the minimum, then half-hour increments rounded up."""

    category = "Handyman Services"

    def price(self, selection: ServiceSelection, table: PriceTable) -> CategoryResult:
        result = CategoryResult(self.category)
        hours = selection.handyman_hours
        if hours <= 0:
            return result
        item = table.item("custom_services", "handyman")
        fee = handyman_price(hours, item)
        plural = "" if hours == 1 else "s"
        result.add(f"{item.name} ({hours:g} hour{plural})", fee)
        return result


class FlatTravelStrategy:
    """The table's flat travel fee, charged only when it is non-zero."""

    category = "Travel"

    def price(self, selection: ServiceSelection, table: PriceTable) -> CategoryResult:
        result = CategoryResult(self.category)
        fee = table.item("travel", "fee")
        if selection.travel_distance_minutes > 0 and fee.price > 0:
            result.add(fee.name, fee.price)
        return result


class DistanceTravelStrategy:
    """Per-minute surcharge for travel beyond a free radius."""

    category = "Travel"

    def __init__(self, free_minutes: float = 30, per_minute: float = 2) -> None:
        self.free_minutes = Decimal(str(free_minutes))
        self.per_minute = Decimal(str(per_minute))

    def price(self, selection: ServiceSelection, table: PriceTable) -> CategoryResult:
        result = CategoryResult(self.category)
        distance = Decimal(str(selection.travel_distance_minutes))
        extra = distance - self.free_minutes
        if extra <= 0 or self.per_minute <= 0:
            return result
        name = table.item("travel", "fee").name
        fee = (extra * self.per_minute).quantize(Decimal("1"), rounding=ROUND_CEILING)
        result.add(f"{name} ({distance:g} min)", fee)
        return result


def default_strategies(travel: Optional[PricingStrategy] = None) -> list[PricingStrategy]:
    """The standard strategy set, in breakdown order."""
    return [
        TVMountingStrategy(),
        MountHardwareStrategy(),
        WireConcealmentStrategy(),
        SmartHomeStrategy(),
        DeinstallationStrategy(),
        HandymanStrategy(),
        travel if travel is not None else FlatTravelStrategy(),
    ]
