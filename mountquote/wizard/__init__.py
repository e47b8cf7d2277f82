from mountquote.wizard.booking_wizard import BookingWizard
from mountquote.wizard.details_manager import DetailsManager, FieldStatus
from mountquote.wizard.state_machine import (
    InvalidTransitionError,
    WizardStateMachine,
    WizardStep,
    WizardTrigger,
)

__all__ = [
    "BookingWizard",
    "WizardStateMachine",
    "WizardStep",
    "WizardTrigger",
    "InvalidTransitionError",
    "DetailsManager",
    "FieldStatus",
]
