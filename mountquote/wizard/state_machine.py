"""
Finite state machine for the booking wizard steps.

Defines the wizard steps and the explicit transitions between them.
Every booking follows a deterministic path through the step graph:
services -> scheduling -> customer details -> review -> confirmed, with
go-back edges and a conflict edge that sends the customer back to pick
another slot when the authoritative booking check rejects theirs.

Usage:
    sm = WizardStateMachine()
    sm.transition(WizardTrigger.SERVICES_SELECTED)
    assert sm.current_step == WizardStep.SCHEDULING
"""

import logging
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Callable

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    """All steps in a booking wizard session."""
    SERVICE_SELECTION = "service_selection"
    SCHEDULING = "scheduling"
    CUSTOMER_DETAILS = "customer_details"
    REVIEW = "review"
    CONFIRMED = "confirmed"


class WizardTrigger(str, Enum):
    """Events that move the wizard between steps."""
    SERVICES_SELECTED = "services_selected"
    SLOT_SELECTED = "slot_selected"
    DETAILS_COMPLETED = "details_completed"
    GO_BACK = "go_back"
    EDIT_SERVICES = "edit_services"
    BOOKING_SUCCESS = "booking_success"
    SLOT_TAKEN = "slot_taken"


@dataclass
class Transition:
    """A single valid step transition."""
    from_step: WizardStep
    to_step: WizardStep
    trigger: WizardTrigger
    guard: Optional[Callable[[], bool]] = None


@dataclass
class StepEntry:
    """Recorded history entry for a step visit."""
    step: WizardStep
    entered_at: datetime
    trigger: Optional[WizardTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current step."""


class WizardStateMachine:
    """
    Deterministic step controller for one booking session.

    Every transition must be explicitly defined. Anything else is
    rejected with an error listing the triggers allowed from the
    current step.
    """

    TRANSITIONS: list[Transition] = [
        # --- Forward path ---
        Transition(WizardStep.SERVICE_SELECTION, WizardStep.SCHEDULING,
                   WizardTrigger.SERVICES_SELECTED),
        Transition(WizardStep.SCHEDULING, WizardStep.CUSTOMER_DETAILS,
                   WizardTrigger.SLOT_SELECTED),
        Transition(WizardStep.CUSTOMER_DETAILS, WizardStep.REVIEW,
                   WizardTrigger.DETAILS_COMPLETED),
        Transition(WizardStep.REVIEW, WizardStep.CONFIRMED,
                   WizardTrigger.BOOKING_SUCCESS),

        # --- Going back ---
        Transition(WizardStep.SCHEDULING, WizardStep.SERVICE_SELECTION,
                   WizardTrigger.GO_BACK),
        Transition(WizardStep.CUSTOMER_DETAILS, WizardStep.SCHEDULING,
                   WizardTrigger.GO_BACK),
        Transition(WizardStep.REVIEW, WizardStep.CUSTOMER_DETAILS,
                   WizardTrigger.GO_BACK),
        Transition(WizardStep.REVIEW, WizardStep.SERVICE_SELECTION,
                   WizardTrigger.EDIT_SERVICES),

        # --- Authoritative check disagreed with the advisory one ---
        Transition(WizardStep.REVIEW, WizardStep.SCHEDULING,
                   WizardTrigger.SLOT_TAKEN),
    ]

    def __init__(self) -> None:
        self._current_step = WizardStep.SERVICE_SELECTION
        self._history: list[StepEntry] = [
            StepEntry(step=WizardStep.SERVICE_SELECTION, entered_at=datetime.now(timezone.utc))
        ]
        self._conflict_count: int = 0

    @property
    def current_step(self) -> WizardStep:
        return self._current_step

    @property
    def conflict_count(self) -> int:
        return self._conflict_count

    def transition(self, trigger: WizardTrigger) -> WizardStep:
        """
        Execute a step transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new wizard step.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_step == self._current_step and t.trigger == trigger:
                if t.guard is not None and not t.guard():
                    continue

                old_step = self._current_step
                self._current_step = t.to_step

                self._history.append(StepEntry(
                    step=self._current_step,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                if trigger == WizardTrigger.SLOT_TAKEN:
                    self._conflict_count += 1

                logger.debug(
                    "Wizard step: %s -> %s (trigger: %s)",
                    old_step.value, self._current_step.value, trigger.value,
                )
                return self._current_step

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_step.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def can_transition(self, trigger: WizardTrigger) -> bool:
        return trigger in self.get_valid_triggers()

    def get_valid_triggers(self) -> list[WizardTrigger]:
        """Return all triggers valid from the current step."""
        return [t.trigger for t in self.TRANSITIONS if t.from_step == self._current_step]

    def get_history(self) -> list[StepEntry]:
        """Return the full step transition history."""
        return list(self._history)

    def get_step_trace(self) -> list[str]:
        """Return ordered list of step names visited."""
        return [entry.step.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the booking has been confirmed."""
        return self._current_step == WizardStep.CONFIRMED
