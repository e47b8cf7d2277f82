"""
Discount rules.

At most one discount applies to a quote. The mount + removal combo wins
over the multi-service (bulk) discount whenever both qualify.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from mountquote.pricing.price_table import PriceTable
from mountquote.schemas.quote_schema import AppliedDiscount
from mountquote.schemas.selection_schema import ServiceSelection

logger = logging.getLogger(__name__)

WHOLE_UNIT = Decimal("1")


def count_services(selection: ServiceSelection) -> int:
    """Mount items + removals + every smart-home unit + one for handyman time."""
    count = len(selection.tv_mounts) + selection.deinstallations
    count += sum(device.quantity for device in selection.smart_home_devices)
    if selection.handyman_hours > 0:
        count += 1
    return count


def has_mount_service(selection: ServiceSelection) -> bool:
    """True when at least one TV is being put on a wall or mount."""
    return any(not tv.unmount_only for tv in selection.tv_mounts)


def combo_discount(selection: ServiceSelection, table: PriceTable) -> Optional[AppliedDiscount]:
    if not (has_mount_service(selection) and selection.deinstallations > 0):
        return None
    rule = table.discount("combo")
    if rule.amount <= 0:
        return None
    return AppliedDiscount(name=rule.name, amount=rule.amount, description=rule.description)


def bulk_discount(
    selection: ServiceSelection, subtotal: Decimal, table: PriceTable
) -> Optional[AppliedDiscount]:
    rule = table.discount("bulk")
    if count_services(selection) < rule.min_services:
        return None
    amount = (subtotal * rule.percent / Decimal("100")).quantize(
        WHOLE_UNIT, rounding=ROUND_HALF_UP
    )
    if amount <= 0:
        return None
    return AppliedDiscount(name=rule.name, amount=amount, description=rule.description)


def select_discount(
    selection: ServiceSelection, subtotal: Decimal, table: PriceTable
) -> Optional[AppliedDiscount]:
    """Pick the single discount for this cart, if any."""
    discount = combo_discount(selection, table)
    if discount is None:
        discount = bulk_discount(selection, subtotal, table)
    if discount is not None:
        logger.debug("Discount applied: %s (-%s)", discount.name, discount.amount)
    return discount
