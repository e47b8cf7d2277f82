"""
Customer details manager with three-phase pattern: Collect -> Validate -> Confirm.

Implements the confirmation gate in front of booking submission and
tracks correction history and retry counts per field.

Usage:
    manager = DetailsManager()
    success, msg = manager.set_field("customer_name", "Jane Doe")
    if manager.all_required_filled():
        summary = manager.get_confirmation_summary()
        # ... customer reviews ...
        manager.confirm_all()
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from mountquote.config import settings
from mountquote.utils import normalize_phone

logger = logging.getLogger(__name__)

# Validation thresholds
MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15
MIN_STREET_LENGTH = 2
MIN_CITY_LENGTH = 2
MIN_STATE_LENGTH = 2
MIN_ZIP_LENGTH = 5

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class FieldStatus(str, Enum):
    """Lifecycle status of a detail value."""

    EMPTY = "empty"
    COLLECTED = "collected"
    VALIDATED = "validated"
    CONFIRMED = "confirmed"
    CORRECTED = "corrected"


def _validate_name(value: str) -> bool:
    return len(value.strip()) >= MIN_NAME_LENGTH


def _validate_email(value: str) -> bool:
    return bool(_EMAIL.match(value.strip()))


def _validate_phone(value: str) -> bool:
    digits = re.sub(r"[^\d]", "", value)
    return MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS


def _min_length(length: int) -> Callable[[str], bool]:
    def check(value: str) -> bool:
        return len(value.strip()) >= length
    return check


@dataclass(frozen=True)
class FieldDefinition:
    """Schema for a single customer detail."""

    name: str
    display_name: str
    required: bool = True
    validator: Optional[Callable[[str], bool]] = None
    max_retries: int = settings.wizard.max_detail_retries
    confirmation_required: bool = True


@dataclass
class FieldValue:
    """Current state and history of a collected detail."""

    raw_value: Optional[str] = None
    normalized_value: Optional[str] = None
    status: FieldStatus = FieldStatus.EMPTY
    attempts: int = 0
    correction_history: list[str] = field(default_factory=list)


class DetailsManager:
    """
    Manages contact and address collection with validation and a confirmation gate.

    Submission is refused until every required field has been validated
    and the customer has approved the read-back.
    """

    FIELD_DEFINITIONS: list[FieldDefinition] = [
        FieldDefinition(name="customer_name", display_name="name", validator=_validate_name),
        FieldDefinition(name="customer_email", display_name="email", validator=_validate_email),
        FieldDefinition(name="customer_phone", display_name="phone number", validator=_validate_phone),
        FieldDefinition(
            name="street_address", display_name="street address",
            validator=_min_length(MIN_STREET_LENGTH),
        ),
        FieldDefinition(
            name="address_line2", display_name="apartment or unit", required=False,
        ),
        FieldDefinition(name="city", display_name="city", validator=_min_length(MIN_CITY_LENGTH)),
        FieldDefinition(name="state", display_name="state", validator=_min_length(MIN_STATE_LENGTH)),
        FieldDefinition(name="zip_code", display_name="zip code", validator=_min_length(MIN_ZIP_LENGTH)),
        FieldDefinition(
            name="notes", display_name="notes", required=False, confirmation_required=False,
        ),
    ]

    def __init__(self) -> None:
        self.fields: dict[str, FieldValue] = {
            defn.name: FieldValue() for defn in self.FIELD_DEFINITIONS
        }

    def _get_definition(self, name: str) -> FieldDefinition:
        for defn in self.FIELD_DEFINITIONS:
            if defn.name == name:
                return defn
        raise ValueError(f"Unknown field: {name}")

    def _normalize(self, name: str, value: str) -> str:
        """Apply field-specific normalization rules."""
        value = value.strip()
        if name == "customer_phone":
            return normalize_phone(value)
        if name == "customer_email":
            return value.lower()
        if name == "customer_name":
            return value.title()
        if name == "state":
            return value.upper() if len(value) == 2 else value.title()
        return value

    def set_field(self, name: str, raw_value: str) -> tuple[bool, str]:
        """
        Set a field value with validation.

        Returns:
            (success, message) - success=True if validation passed.
        """
        defn = self._get_definition(name)
        entry = self.fields[name]
        entry.raw_value = raw_value
        entry.attempts += 1

        if defn.validator and not defn.validator(raw_value):
            entry.status = FieldStatus.COLLECTED
            logger.debug("Field '%s' validation failed: '%s'", name, raw_value)
            return False, f"The {defn.display_name} '{raw_value}' doesn't look right."

        entry.normalized_value = self._normalize(name, raw_value)
        entry.status = FieldStatus.VALIDATED
        logger.debug("Field '%s' set to '%s'", name, entry.normalized_value)
        return True, f"Got {defn.display_name}: {entry.normalized_value}"

    def correct_field(self, name: str, new_value: str) -> tuple[bool, str]:
        """Handle a correction, preserving the previous value in history."""
        entry = self.fields[name]
        if entry.raw_value is not None:
            entry.correction_history.append(entry.raw_value)
        ok, msg = self.set_field(name, new_value)
        if ok:
            entry.status = FieldStatus.CORRECTED
        return ok, msg

    def confirm_all(self) -> None:
        """Mark all validated/corrected fields as confirmed after the customer approves."""
        for entry in self.fields.values():
            if entry.status in (FieldStatus.VALIDATED, FieldStatus.CORRECTED):
                entry.status = FieldStatus.CONFIRMED
        logger.info("All customer details confirmed")

    def get_confirmation_summary(self) -> str:
        """Generate read-back text for the review step."""
        lines = []
        for defn in self.FIELD_DEFINITIONS:
            if not defn.confirmation_required:
                continue
            entry = self.fields[defn.name]
            if entry.normalized_value:
                lines.append(f"  {defn.display_name}: {entry.normalized_value}")
        return "Contact details:\n" + "\n".join(lines)

    def get_next_empty_field(self) -> Optional[FieldDefinition]:
        """Get the next required field that hasn't been filled."""
        for defn in self.FIELD_DEFINITIONS:
            if defn.required and self.fields[defn.name].status == FieldStatus.EMPTY:
                return defn
        return None

    def get_missing_fields(self) -> list[FieldDefinition]:
        """Get all required fields not yet validated."""
        filled = {FieldStatus.VALIDATED, FieldStatus.CONFIRMED, FieldStatus.CORRECTED}
        return [
            defn
            for defn in self.FIELD_DEFINITIONS
            if defn.required and self.fields[defn.name].status not in filled
        ]

    def all_required_filled(self) -> bool:
        """Check if all required fields have at least been validated."""
        return not self.get_missing_fields()

    def all_confirmed(self) -> bool:
        """Check if all required fields passed the confirmation gate."""
        return all(
            self.fields[d.name].status == FieldStatus.CONFIRMED
            for d in self.FIELD_DEFINITIONS
            if d.required
        )

    def has_exceeded_retries(self, name: str) -> bool:
        """Check if a field has exceeded its retry limit."""
        defn = self._get_definition(name)
        return self.fields[name].attempts >= defn.max_retries

    def get_value(self, name: str) -> Optional[str]:
        """Get the normalized value of a field."""
        return self.fields[name].normalized_value

    def to_dict(self) -> dict[str, Any]:
        """Export collected values as a flat dict."""
        return {
            d.name: self.fields[d.name].normalized_value
            for d in self.FIELD_DEFINITIONS
            if self.fields[d.name].normalized_value is not None
        }

    def get_stats(self) -> dict[str, Any]:
        """Collection statistics for the session log."""
        total_attempts = sum(f.attempts for f in self.fields.values())
        corrections = sum(len(f.correction_history) for f in self.fields.values())
        required = sum(1 for d in self.FIELD_DEFINITIONS if d.required)
        filled = required - len(self.get_missing_fields())
        return {
            "total_attempts": total_attempts,
            "total_corrections": corrections,
            "fields_filled": filled,
            "fields_required": required,
            "fill_rate": filled / required if required else 0,
        }
