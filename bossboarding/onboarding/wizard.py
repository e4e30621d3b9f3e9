"""
Onboarding wizard state machine.

Steps are named states with an explicit transition table. A ``WizardSession``
tracks the current step, the highest step reached and the in-progress form
data; it never validates form content and never performs I/O itself.
Listeners registered with ``on_step_change`` run after every change of the
current step (not after form data changes), which is how autosave hooks in.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from bossboarding.exceptions import InvalidStepError, OnboardingCompletedError, StepNotReachedError

logger = logging.getLogger(__name__)


class OnboardingStep(str, Enum):
    GENERAL = "general"
    LOCATION = "location"
    PHOTOS = "photos"
    MACHINES = "machines"
    EMPLOYEES = "employees"
    SHIPPING = "shipping"
    KIOSK = "kiosk"
    MERCHANT = "merchant"
    PCI = "pci"
    PAYMENT = "payment"
    REVIEW = "review"


class Transition(str, Enum):
    NEXT = "next"
    BACK = "back"


STEP_ORDER: List[OnboardingStep] = list(OnboardingStep)
STEP_INDEX: Dict[OnboardingStep, int] = {step: i for i, step in enumerate(STEP_ORDER)}
TOTAL_STEPS = len(STEP_ORDER)
FIRST_STEP = STEP_ORDER[0]
LAST_STEP = STEP_ORDER[-1]

STEP_DETAILS: Dict[OnboardingStep, tuple] = {
    OnboardingStep.GENERAL: ("General Info", "Owner and business details"),
    OnboardingStep.LOCATION: ("Location", "Store details and contacts"),
    OnboardingStep.PHOTOS: ("Store Photos", "Upload photos of your laundromat"),
    OnboardingStep.MACHINES: ("Machines", "Washer and dryer information"),
    OnboardingStep.EMPLOYEES: ("Employees", "Staff and privilege levels"),
    OnboardingStep.SHIPPING: ("Shipping", "Delivery address and preferences"),
    OnboardingStep.KIOSK: ("Kiosk", "Kiosk types and dimensions"),
    OnboardingStep.MERCHANT: ("Merchant", "Payment processing setup"),
    OnboardingStep.PCI: ("PCI", "Compliance consent and verification"),
    OnboardingStep.PAYMENT: ("Payment", "Complete your payment"),
    OnboardingStep.REVIEW: ("Review", "Final review before submission"),
}

# NEXT on the last step and BACK on the first step are self-transitions
TRANSITIONS: Dict[tuple, OnboardingStep] = {}
for _i, _step in enumerate(STEP_ORDER):
    TRANSITIONS[(_step, Transition.NEXT)] = STEP_ORDER[min(_i + 1, TOTAL_STEPS - 1)]
    TRANSITIONS[(_step, Transition.BACK)] = STEP_ORDER[max(_i - 1, 0)]


def resolve_step(step: Union[int, str, OnboardingStep]) -> OnboardingStep:
    """Accept a step index, step id or OnboardingStep."""
    if isinstance(step, OnboardingStep):
        return step
    if isinstance(step, bool):
        raise InvalidStepError(f"Invalid step: {step!r}")
    if isinstance(step, int):
        if 0 <= step < TOTAL_STEPS:
            return STEP_ORDER[step]
        raise InvalidStepError(f"Step index {step} is outside 0..{TOTAL_STEPS - 1}")
    if isinstance(step, str):
        if step.isdigit():
            return resolve_step(int(step))
        try:
            return OnboardingStep(step)
        except ValueError:
            raise InvalidStepError(f"Unknown step: {step!r}")
    raise InvalidStepError(f"Invalid step: {step!r}")


def clamp_step_index(value: Optional[int]) -> int:
    if value is None:
        return 0
    return max(0, min(int(value), TOTAL_STEPS - 1))


StepListener = Callable[["WizardSession", OnboardingStep, OnboardingStep], None]


class WizardSession:
    def __init__(self, customer_id: Optional[str] = None, onboarding_token: Optional[str] = None):
        self.customer_id = customer_id
        self.onboarding_token = onboarding_token
        self.step = FIRST_STEP
        self.highest_step_reached = 0
        self.form_data: Dict[str, Any] = {}
        self.completed = False
        self._listeners: List[StepListener] = []

    @property
    def current_step(self) -> int:
        return STEP_INDEX[self.step]

    @property
    def is_last_step(self) -> bool:
        return self.step == LAST_STEP

    def on_step_change(self, listener: StepListener) -> None:
        self._listeners.append(listener)

    def _ensure_open(self) -> None:
        if self.completed:
            raise OnboardingCompletedError("This onboarding has already been completed.")

    def _move_to(self, target: OnboardingStep) -> None:
        previous = self.step
        self.step = target
        if target != previous:
            for listener in self._listeners:
                listener(self, previous, target)

    def apply(self, transition: Transition) -> OnboardingStep:
        self._ensure_open()
        target = TRANSITIONS[(self.step, transition)]
        if transition == Transition.NEXT:
            self.highest_step_reached = max(self.highest_step_reached, STEP_INDEX[target])
        self._move_to(target)
        return target

    def next_step(self) -> OnboardingStep:
        """Advance one step, clamped to the last step; raises the high-water mark."""
        return self.apply(Transition.NEXT)

    def prev_step(self) -> OnboardingStep:
        """Go back one step, never below the first; the high-water mark is kept."""
        return self.apply(Transition.BACK)

    def set_step(self, step: Union[int, str, OnboardingStep]) -> OnboardingStep:
        """
        Jump directly to a step that has already been reached.

        Raises StepNotReachedError for a step beyond ``highest_step_reached``;
        the high-water mark is never changed by a jump.
        """
        self._ensure_open()
        target = resolve_step(step)
        index = STEP_INDEX[target]
        if index > self.highest_step_reached:
            raise StepNotReachedError(index, self.highest_step_reached)
        self._move_to(target)
        return target

    def update_form_data(self, partial: Optional[Mapping[str, Any]]) -> None:
        """Shallow-merge field updates into the form. Nothing is persisted."""
        self._ensure_open()
        if partial:
            self.form_data.update(partial)

    def initialize_from_customer(
        self,
        customer_id: str,
        token: str,
        initial_data: Mapping[str, Any],
        saved_step: Optional[int] = None,
        saved_highest_step: Optional[int] = None,
    ) -> None:
        """
        Rehydrate the session.

        Without a saved step the session starts fresh at the first step with
        nothing reached, whatever high-water mark was passed; otherwise the saved position and high-water mark are restored.
        Listeners are not notified.
        """
        self.customer_id = customer_id
        self.onboarding_token = token
        self.form_data = dict(initial_data)
        self.completed = False

        if saved_step is None:
            self.step = FIRST_STEP
            self.highest_step_reached = 0
        else:
            self.step = STEP_ORDER[clamp_step_index(saved_step)]
            highest = saved_highest_step if saved_highest_step is not None else saved_step
            self.highest_step_reached = clamp_step_index(highest)

        self.highest_step_reached = max(self.highest_step_reached, self.current_step)

    def submit(self) -> None:
        """One-way transition out of the review step."""
        self._ensure_open()
        if self.step != LAST_STEP:
            raise InvalidStepError(f"Onboarding can only be submitted from the '{LAST_STEP.value}' step")
        self.completed = True

    def snapshot(self, now: Optional[datetime] = None) -> dict:
        """Resumable state as stored in ``savedOnboardingData``."""
        moment = now or datetime.now(timezone.utc)
        form_data = dict(self.form_data)
        form_data["highestStepReached"] = self.highest_step_reached
        return {
            "currentStep": self.current_step,
            "formData": form_data,
            "savedAt": moment.isoformat(),
        }

    def describe_steps(self) -> List[dict]:
        steps = []
        for step in STEP_ORDER:
            name, description = STEP_DETAILS[step]
            index = STEP_INDEX[step]
            steps.append({
                "index": index,
                "id": step.value,
                "name": name,
                "description": description,
                "reachable": index <= self.highest_step_reached,
                "isCurrent": step == self.step,
            })
        return steps
