"""
Booking wizard: the flow from cart to confirmed booking.

Ties the pricing engine, the availability evaluator and the booking
repository together behind the four customer-facing steps:
Services -> Date & time -> Contact details -> Review. A fresh quote is
computed after every cart change; the availability check on the chosen
slot is advisory and the repository has the final say on submission.
"""

from __future__ import annotations

import uuid
from datetime import date as date_type
from datetime import datetime
from typing import Any, Optional, Sequence

from mountquote.config import settings
from mountquote.logging_context import get_session_logger, set_session_id
from mountquote.pricing.engine import compute_quote, strategies_for_travel_mode
from mountquote.pricing.price_table import PriceTable, load_price_table
from mountquote.pricing.strategies import PricingStrategy
from mountquote.schemas.booking_schema import BookingRequest, BookingResponse
from mountquote.schemas.quote_schema import PriceQuote
from mountquote.schemas.selection_schema import ServiceSelection, SmartHomeItem, TVMountItem
from mountquote.tools.availability import (
    AvailabilityContext,
    SlotReason,
    build_context,
    evaluate_slot,
    get_available_dates,
    get_available_slots,
)
from mountquote.tools.booking import BookingRepository
from mountquote.tools.calendar_store import CalendarStore
from mountquote.utils import format_price, parse_iso_date
from mountquote.wizard.details_manager import DetailsManager
from mountquote.wizard.state_machine import (
    InvalidTransitionError,
    WizardStateMachine,
    WizardStep,
    WizardTrigger,
)

logger = get_session_logger(__name__)

_SLOT_MESSAGES = {
    SlotReason.INVALID_DATE: "That date doesn't look right.",
    SlotReason.INVALID_TIME: "That time doesn't look right.",
    SlotReason.BLOCKED_DAY: "We're not taking bookings that day.",
    SlotReason.BLOCKED_SLOT: "That time isn't available.",
    SlotReason.CLOSED: "We're closed that day.",
    SlotReason.OUTSIDE_HOURS: "That time is outside our business hours.",
    SlotReason.TOO_SOON: "That time is too soon to schedule. Please pick a later slot.",
    SlotReason.BOOKED: "That time is already booked.",
    SlotReason.ERROR: "We couldn't check that time just now. Please try again or call us.",
}


class BookingWizard:
    """One customer's booking session, from service selection to confirmation."""

    def __init__(
        self,
        price_table: Optional[PriceTable] = None,
        calendar: Optional[CalendarStore] = None,
        repository: Optional[BookingRepository] = None,
        strategies: Optional[Sequence[PricingStrategy]] = None,
        now: Optional[datetime] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or f"WZ-{uuid.uuid4().hex[:8].upper()}"
        set_session_id(self.session_id)

        self._price_table = price_table or load_price_table(settings.pricing.price_table_path)
        self._strategies = strategies or strategies_for_travel_mode(
            settings.pricing.travel_fee_mode,
            settings.pricing.travel_free_minutes,
            settings.pricing.travel_per_minute,
        )
        self._calendar = calendar or CalendarStore()
        self._repository = repository or BookingRepository()
        self._now = now

        self._steps = WizardStateMachine()
        self._details = DetailsManager()
        self._selection = ServiceSelection()
        self.chosen_date: Optional[str] = None
        self.chosen_time: Optional[str] = None
        self.booking_ref: Optional[str] = None
        logger.info("Booking wizard started")

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #

    @property
    def step(self) -> WizardStep:
        return self._steps.current_step

    @property
    def selection(self) -> ServiceSelection:
        return self._selection

    @property
    def details(self) -> DetailsManager:
        return self._details

    def quote(self) -> PriceQuote:
        """Price the current cart. Always computed fresh."""
        return compute_quote(self._selection, self._price_table, self._strategies)

    # ------------------------------------------------------------------ #
    # Step 1: services
    # ------------------------------------------------------------------ #

    def _update_selection(self, selection: ServiceSelection) -> PriceQuote:
        if self.step != WizardStep.SERVICE_SELECTION:
            raise InvalidTransitionError(
                f"Services can only be changed on the service selection step, not '{self.step.value}'"
            )
        self._selection = selection
        quote = self.quote()
        logger.debug("Cart updated, live total %s", quote.total)
        return quote

    def add_tv_mount(self, item: Optional[TVMountItem] = None, **options: Any) -> PriceQuote:
        tv = item if item is not None else TVMountItem(**options)
        return self._update_selection(self._selection.with_tv_mount(tv))

    def remove_tv_mount(self, index: int) -> PriceQuote:
        return self._update_selection(self._selection.without_tv_mount(index))

    def add_smart_device(self, item: Optional[SmartHomeItem] = None, **options: Any) -> PriceQuote:
        device = item if item is not None else SmartHomeItem(**options)
        return self._update_selection(self._selection.with_smart_device(device))

    def remove_smart_device(self, index: int) -> PriceQuote:
        return self._update_selection(self._selection.without_smart_device(index))

    def set_deinstallations(self, count: Any) -> PriceQuote:
        return self._update_selection(self._selection.with_deinstallations(count))

    def set_handyman_hours(self, hours: Any) -> PriceQuote:
        return self._update_selection(self._selection.with_handyman_hours(hours))

    def set_travel_distance(self, minutes: Any) -> PriceQuote:
        return self._update_selection(self._selection.with_travel_distance(minutes))

    def continue_to_scheduling(self) -> tuple[bool, str]:
        if self._selection.is_empty():
            return False, "Please add at least one service before choosing a time."
        self._steps.transition(WizardTrigger.SERVICES_SELECTED)
        return True, f"Estimated total {format_price(self.quote().total)}. Now pick a date and time."

    # ------------------------------------------------------------------ #
    # Step 2: scheduling
    # ------------------------------------------------------------------ #

    def _availability(self) -> AvailabilityContext:
        return build_context(self._calendar, self._repository, now=self._now)

    def available_times(self, date: str) -> list[str]:
        """Times to display for a date; each one passes the availability check."""
        return get_available_slots(date, self._availability())

    def available_dates(self, limit: Optional[int] = None, start: Optional[date_type] = None) -> list[dict]:
        return get_available_dates(self._availability(), start=start, limit=limit)

    def select_slot(self, date: str, time: str) -> tuple[bool, str]:
        """Pick the appointment slot. The check is advisory only."""
        if self.step != WizardStep.SCHEDULING:
            raise InvalidTransitionError(
                f"A slot can only be chosen on the scheduling step, not '{self.step.value}'"
            )
        result = evaluate_slot(date, time, self._availability())
        if not result.available:
            if result.reason in (SlotReason.INVALID_DATE, SlotReason.INVALID_TIME):
                logger.warning("Malformed slot rejected: date=%r time=%r", date, time)
            elif result.reason != SlotReason.ERROR:
                logger.info("Slot %s %s unavailable: %s", date, time, result.reason.value)
            return False, _SLOT_MESSAGES[result.reason]

        self.chosen_date, self.chosen_time = parse_iso_date(date).isoformat(), time
        self._steps.transition(WizardTrigger.SLOT_SELECTED)
        return True, f"Reserved {self.chosen_date} at {time} pending confirmation."

    # ------------------------------------------------------------------ #
    # Step 3: contact details
    # ------------------------------------------------------------------ #

    def record_detail(self, field_name: str, value: str) -> tuple[bool, str]:
        ok, msg = self._details.set_field(field_name, value)
        if not ok and self._details.has_exceeded_retries(field_name):
            return ok, msg + " Please double-check it or call us to finish your booking."
        return ok, msg + self._next_field_hint()

    def correct_detail(self, field_name: str, value: str) -> tuple[bool, str]:
        return self._details.correct_field(field_name, value)

    def continue_to_review(self) -> tuple[bool, str]:
        if not self._details.all_required_filled():
            names = [f.display_name for f in self._details.get_missing_fields()]
            return False, f"Still need: {', '.join(names)}."
        self._steps.transition(WizardTrigger.DETAILS_COMPLETED)
        return True, self.review_summary()

    # ------------------------------------------------------------------ #
    # Step 4: review + submit
    # ------------------------------------------------------------------ #

    def review_summary(self) -> str:
        """Read-back of services, price, slot and contact details."""
        quote = self.quote()
        lines = ["Services:"]
        for category in quote.breakdown:
            lines.append(f"  {category.name}")
            for item in category.items:
                qty = f" x{item.quantity}" if item.quantity > 1 else ""
                lines.append(f"    {item.name}{qty}: {format_price(item.line_total)}")
        for manual in quote.manual_quote_items:
            lines.append(f"  {manual.name}: priced after assessment")
        lines.append(f"Subtotal: {format_price(quote.subtotal)}")
        for discount in quote.applied_discounts:
            lines.append(f"{discount.name}: -{format_price(discount.amount)}")
        lines.append(f"Total: {format_price(quote.total)}")
        if self.chosen_date and self.chosen_time:
            lines.append(f"Appointment: {self.chosen_date} at {self.chosen_time}")
        lines.append(self._details.get_confirmation_summary())
        return "\n".join(lines)

    def go_back(self) -> WizardStep:
        return self._steps.transition(WizardTrigger.GO_BACK)

    def edit_services(self) -> WizardStep:
        return self._steps.transition(WizardTrigger.EDIT_SERVICES)

    async def submit(self) -> BookingResponse:
        """Send the booking to the repository, which re-checks the slot."""
        if self.step != WizardStep.REVIEW:
            return BookingResponse(
                success=False, message="Please review your booking before submitting."
            )
        if not self._details.all_required_filled() or not (self.chosen_date and self.chosen_time):
            return BookingResponse(
                success=False, message="Cannot book - required information is still missing."
            )

        self._details.confirm_all()
        quote = self.quote()
        values = self._details.to_dict()
        request = BookingRequest(
            customer_name=values.get("customer_name", ""),
            customer_email=values.get("customer_email", ""),
            customer_phone=values.get("customer_phone", ""),
            street_address=values.get("street_address", ""),
            address_line2=values.get("address_line2"),
            city=values.get("city", ""),
            state=values.get("state", ""),
            zip_code=values.get("zip_code", ""),
            notes=values.get("notes"),
            selection=self._selection,
            preferred_date=self.chosen_date,
            preferred_time=self.chosen_time,
            quoted_total=quote.total,
        )
        result = self._repository.create_booking(request)

        if result["success"]:
            self.booking_ref = result["booking_ref"]
            self._steps.transition(WizardTrigger.BOOKING_SUCCESS)
            details = result["details"]
            return BookingResponse(
                success=True,
                booking_ref=self.booking_ref,
                message=result["message"],
                date=details.date,
                time=details.time,
                total=quote.total,
                created_at=details.created_at,
            )

        if result.get("conflict"):
            self._steps.transition(WizardTrigger.SLOT_TAKEN)
            self.chosen_date = self.chosen_time = None
            message = result["message"]
            if self._steps.conflict_count >= settings.wizard.max_slot_conflicts:
                message += " If you keep running into this, please call us and we'll find a time."
            return BookingResponse(success=False, message=message)

        logger.error("Booking submission failed: %s", result["message"])
        return BookingResponse(success=False, message=result["message"])

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _next_field_hint(self) -> str:
        next_field = self._details.get_next_empty_field()
        if next_field:
            return f" Next, your {next_field.display_name}."
        return " All details collected - continue to review."
