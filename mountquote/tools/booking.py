"""
In-memory booking repository.

This is the system of record for slot conflicts: the wizard's availability
check is advisory, and ``create_booking`` re-checks under a lock before
inserting. In production this would be a database table with a uniqueness
constraint on (date, time) for active bookings.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Optional, TypedDict

from mountquote.logging_context import get_session_logger
from mountquote.schemas.booking_schema import BookingRequest
from mountquote.schemas.calendar_schema import Booking, BookingStatus
from mountquote.utils import normalize_phone, parse_iso_date, parse_time_to_minutes

logger = get_session_logger(__name__)

SLOT_TAKEN_MESSAGE = "This time slot was just booked. Please choose another time."


class BookingResult(TypedDict, total=False):
    """Result from create_booking, cancel_booking, or reschedule_booking."""

    success: bool
    message: str
    booking_ref: str
    conflict: bool
    details: Booking


def _slot_key(time: str) -> str:
    minutes = parse_time_to_minutes(time)
    return str(minutes) if minutes is not None else time.strip()


def _slot_date(date: str) -> Optional[str]:
    """Canonical YYYY-MM-DD form of a date, or None when it is not a real date."""
    day = parse_iso_date(date)
    return day.isoformat() if day is not None else None


def _invalid_slot(date: str, time: str) -> BookingResult:
    return {
        "success": False,
        "message": f"Cannot book {date} at {time} - that is not a valid date and time.",
    }


def summarize_selection(request: BookingRequest) -> str:
    """Short human-readable summary of what was booked."""
    selection = request.selection
    parts = []
    if selection.tv_mounts:
        parts.append(f"{len(selection.tv_mounts)} TV service(s)")
    units = sum(d.quantity for d in selection.smart_home_devices)
    if units:
        parts.append(f"{units} smart home device(s)")
    if selection.deinstallations:
        parts.append(f"{selection.deinstallations} TV removal(s)")
    if selection.handyman_hours:
        parts.append(f"{selection.handyman_hours:g}h handyman")
    return ", ".join(parts) or "No services"


class BookingRepository:
    """Stores bookings and serializes check-then-insert for a slot."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bookings: dict[str, Booking] = {}

    def _has_conflict(self, date: str, time: str, exclude_ref: Optional[str] = None) -> bool:
        # date is already canonical; stored bookings are written that way
        key = _slot_key(time)
        return any(
            b.is_active and b.date == date and _slot_key(b.time) == key
            for ref, b in self._bookings.items()
            if ref != exclude_ref
        )

    def create_booking(self, request: BookingRequest) -> BookingResult:
        """Persist a booking unless an active booking already holds the slot."""
        missing = [
            field_name
            for field_name, value in [
                ("name", request.customer_name),
                ("email", request.customer_email),
                ("phone", request.customer_phone),
                ("street address", request.street_address),
                ("city", request.city),
                ("state", request.state),
                ("zip code", request.zip_code),
                ("date", request.preferred_date),
                ("time", request.preferred_time),
            ]
            if not value or not value.strip()
        ]
        if missing:
            return {
                "success": False,
                "message": f"Cannot create booking - missing required fields: {', '.join(missing)}.",
            }

        slot_date = _slot_date(request.preferred_date)
        if slot_date is None or parse_time_to_minutes(request.preferred_time) is None:
            logger.warning(
                "Rejected booking for invalid slot %r %r",
                request.preferred_date, request.preferred_time,
            )
            return _invalid_slot(request.preferred_date, request.preferred_time)

        with self._lock:
            if self._has_conflict(slot_date, request.preferred_time):
                logger.warning("Booking conflict on %s at %s", slot_date, request.preferred_time)
                return {"success": False, "conflict": True, "message": SLOT_TAKEN_MESSAGE}

            ref = f"BK-{uuid.uuid4().hex[:6].upper()}"
            booking = Booking(
                booking_ref=ref,
                date=slot_date,
                time=request.preferred_time,
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                customer_phone=normalize_phone(request.customer_phone),
                address=request.full_address,
                service_summary=summarize_selection(request),
                quoted_total=request.quoted_total,
                notes=request.notes or "",
                created_at=datetime.now(timezone.utc),
            )
            self._bookings[ref] = booking

        logger.info(
            "Booking created: %s for %s on %s at %s",
            ref, request.customer_name, slot_date, request.preferred_time,
        )
        return {
            "success": True,
            "booking_ref": ref,
            "message": (
                f"Booking confirmed. Reference number: {ref}. "
                f"{slot_date} at {request.preferred_time}."
            ),
            "details": booking,
        }

    def cancel_booking(self, booking_ref: str) -> BookingResult:
        """Cancel an existing booking by reference number."""
        with self._lock:
            booking = self._bookings.get(booking_ref)
            if booking is None:
                return {"success": False, "message": f"Booking {booking_ref} not found."}
            self._bookings[booking_ref] = booking.model_copy(
                update={"status": BookingStatus.CANCELLED}
            )
        logger.info("Booking cancelled: %s", booking_ref)
        return {"success": True, "message": f"Booking {booking_ref} has been cancelled."}

    def reschedule_booking(self, booking_ref: str, new_date: str, new_time: str) -> BookingResult:
        """Move a booking to a new slot if nothing else holds it."""
        slot_date = _slot_date(new_date)
        if slot_date is None or parse_time_to_minutes(new_time) is None:
            return _invalid_slot(new_date, new_time)
        new_date = slot_date
        with self._lock:
            booking = self._bookings.get(booking_ref)
            if booking is None:
                return {"success": False, "message": f"Booking {booking_ref} not found."}
            if self._has_conflict(new_date, new_time, exclude_ref=booking_ref):
                return {"success": False, "conflict": True, "message": SLOT_TAKEN_MESSAGE}
            booking = booking.model_copy(
                update={"date": new_date, "time": new_time, "status": BookingStatus.ACTIVE}
            )
            self._bookings[booking_ref] = booking
        logger.info("Booking rescheduled: %s to %s %s", booking_ref, new_date, new_time)
        return {
            "success": True,
            "message": f"Booking {booking_ref} rescheduled to {new_date} at {new_time}.",
            "details": booking,
        }

    def get_booking(self, booking_ref: str) -> Optional[Booking]:
        """Retrieve a booking by reference number."""
        return self._bookings.get(booking_ref)

    def get_bookings_by_date(self, date: str) -> list[Booking]:
        day = _slot_date(date)
        if day is None:
            return []
        return [b for b in self._bookings.values() if b.date == day]

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        with self._lock:
            self._bookings.clear()
