"""
Step navigation for the listing wizard.

The wizard is strictly linear: continue and back move one step at a time.
The only other move is payment -> preview, and entry to payment is gated by
the contact fields plus the explicit approval checkbox.
"""

import logging
from enum import Enum
from typing import Any

from ...shared.validators import is_valid_email, is_valid_us_phone

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    LOCATION = "location"
    DETAILS = "details"
    CONDITION = "condition"
    INVESTMENT = "investment"
    IMAGES = "images"
    PREVIEW = "preview"
    PAYMENT = "payment"
    SEND = "send"


STEP_ORDER: list[WizardStep] = list(WizardStep)


class StepValidationError(Exception):
    """Raised when the current step blocks advancement"""

    def __init__(self, step: WizardStep, fields: list[str], message: str = ""):
        self.step = step
        self.fields = fields
        self.message = message or f"Complete the required fields before leaving '{step.value}'"
        super().__init__(self.message)


class InvalidTransitionError(Exception):
    """Raised for moves the wizard does not allow from the current step"""


def _missing(values: dict[str, str]) -> list[str]:
    return [name for name, value in values.items() if not (value or "").strip()]


def validate_step(step: WizardStep, draft: Any) -> list[str]:
    """Return the names of fields that block leaving `step`"""
    state = draft.state
    if step == WizardStep.LOCATION:
        return _missing({"listing.address": state.listing.address})

    if step == WizardStep.DETAILS:
        return _missing(
            {
                "listing.squareFootage": state.listing.square_footage,
                "listing.bedrooms": state.listing.bedrooms,
                "listing.baths": state.listing.baths,
            }
        )

    if step == WizardStep.PREVIEW:
        contact = state.contact
        fields = _missing({"contact.name": contact.name})
        if not is_valid_email(contact.email):
            fields.append("contact.email")
        if not is_valid_us_phone(contact.phone):
            fields.append("contact.phone")
        if not contact.approved:
            fields.append("contact.approved")
        return fields

    if step == WizardStep.PAYMENT:
        return [] if draft.payment.is_settled else ["payment"]

    return []


class StepNavigator:
    """Moves a draft through STEP_ORDER"""

    def __init__(self, steps: list[WizardStep] = STEP_ORDER):
        self.steps = steps

    def index(self, step: WizardStep) -> int:
        return self.steps.index(step)

    def advance(self, draft: Any) -> WizardStep:
        current = draft.step
        position = self.index(current)
        if position == len(self.steps) - 1:
            raise InvalidTransitionError(f"'{current.value}' is the last step")

        fields = validate_step(current, draft)
        if fields:
            logger.info(f"Draft {draft.id} blocked at {current.value}: {fields}")
            raise StepValidationError(current, fields)

        draft.step = self.steps[position + 1]
        return draft.step

    def back(self, draft: Any) -> WizardStep:
        position = self.index(draft.step)
        if position == 0:
            raise InvalidTransitionError(f"'{draft.step.value}' is the first step")
        draft.step = self.steps[position - 1]
        return draft.step

    def return_to_preview(self, draft: Any) -> WizardStep:
        if draft.step != WizardStep.PAYMENT:
            raise InvalidTransitionError("Only the payment step can return to preview")
        draft.step = WizardStep.PREVIEW
        return draft.step
