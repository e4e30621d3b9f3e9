"""Per-step validity predicates for the onboarding form."""

import re
from typing import Any, Callable, Dict, List, Mapping

from bossboarding.onboarding.wizard import OnboardingStep

PASSWORD_MIN_LENGTH = 8
PIN_PATTERN = re.compile(r"^\d{4}$")

LOCATION_ADDRESS_FIELDS = ("locationAddress", "locationCity", "locationState", "locationZip")
SHIPPING_ADDRESS_FIELDS = ("shippingAddress", "shippingCity", "shippingState", "shippingZip")


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _missing(form: Mapping[str, Any], fields) -> List[str]:
    return [field for field in fields if _blank(form.get(field))]


def validate_general(form: Mapping[str, Any]) -> List[str]:
    missing = _missing(form, ("businessName", "ownerName", "email", "phone"))

    password = form.get("password") or ""
    confirm = form.get("confirmPassword") or ""
    if password and len(password) < PASSWORD_MIN_LENGTH:
        missing.append("password")
    if confirm and password != confirm:
        missing.append("confirmPassword")
    return missing


def validate_location(form: Mapping[str, Any]) -> List[str]:
    return _missing(form, ("locationName", "locationPhone") + LOCATION_ADDRESS_FIELDS)


def validate_machines(form: Mapping[str, Any]) -> List[str]:
    machines = form.get("machines") or []
    if not machines:
        return ["machines"]

    missing = []
    for i, machine in enumerate(machines):
        if _blank(machine.get("make")) or _blank(machine.get("model")):
            missing.append(f"machines[{i}]")
    return missing


def validate_employees(form: Mapping[str, Any]) -> List[str]:
    missing = []
    for i, employee in enumerate(form.get("employees") or []):
        pin = str(employee.get("pin") or "")
        if _blank(employee.get("name")) or _blank(employee.get("phone")) or not PIN_PATTERN.match(pin):
            missing.append(f"employees[{i}]")
    return missing


def validate_shipping(form: Mapping[str, Any]) -> List[str]:
    if form.get("shippingSameAsLocation", True):
        return _missing(form, LOCATION_ADDRESS_FIELDS)
    return _missing(form, SHIPPING_ADDRESS_FIELDS)


def validate_kiosk(form: Mapping[str, Any]) -> List[str]:
    if form.get("hasKiosk") and not form.get("kiosks"):
        return ["kiosks"]
    return []


def validate_pci(form: Mapping[str, Any]) -> List[str]:
    missing = _missing(form, ("pciRepresentativeName", "pciCompanyName", "pciTitle"))
    if not form.get("pciConsent"):
        missing.append("pciConsent")
    return missing


def _always_valid(form: Mapping[str, Any]) -> List[str]:
    return []


STEP_VALIDATORS: Dict[OnboardingStep, Callable[[Mapping[str, Any]], List[str]]] = {
    OnboardingStep.GENERAL: validate_general,
    OnboardingStep.LOCATION: validate_location,
    OnboardingStep.PHOTOS: _always_valid,
    OnboardingStep.MACHINES: validate_machines,
    OnboardingStep.EMPLOYEES: validate_employees,
    OnboardingStep.SHIPPING: validate_shipping,
    OnboardingStep.KIOSK: validate_kiosk,
    OnboardingStep.MERCHANT: _always_valid,
    OnboardingStep.PCI: validate_pci,
    OnboardingStep.PAYMENT: _always_valid,
    OnboardingStep.REVIEW: _always_valid,
}


def missing_fields(step: OnboardingStep, form: Mapping[str, Any]) -> List[str]:
    """Fields that block continuing from ``step``; empty when the step is valid."""
    return STEP_VALIDATORS[step](form)


def is_step_valid(step: OnboardingStep, form: Mapping[str, Any]) -> bool:
    return not missing_fields(step, form)
