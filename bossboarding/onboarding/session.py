"""
Wizard sessions bound to persisted customers.

A session is rehydrated from the customer record on every request, mutated by
one navigation or save, and written back. Machines and employees always come
from the customer's stored collections; the saved form blob never supplies
them.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from bossboarding.config import settings
from bossboarding.exceptions import InvalidStepError, NotFoundError, OnboardingCompletedError
from bossboarding.onboarding.machines import assign_machine_numbers
from bossboarding.onboarding.wizard import (
    LAST_STEP,
    STEP_DETAILS,
    STEP_ORDER,
    TOTAL_STEPS,
    OnboardingStep,
    WizardSession,
)
from bossboarding.repositories.customer_store import CustomerStore
from bossboarding.schemas.customer import Customer, Employee, Machine

logger = logging.getLogger(__name__)

INVALID_LINK_MESSAGE = "Invalid or expired onboarding link. Please contact your administrator."
COMPLETED_MESSAGE = (
    "This onboarding has already been completed. "
    "Please contact your administrator if you need to make changes."
)

# Kept out of the saved form blob: collections live in their own tables,
# passwords are never persisted in clear text.
UNSAVED_FORM_FIELDS = ("machines", "employees", "password", "confirmPassword", "highestStepReached")


def resolve_customer(store: CustomerStore, token: str) -> Customer:
    """Customer for an onboarding link; completed wizards are refused."""
    customer = store.get_by_token(token) if token else None
    if customer is None:
        raise NotFoundError(INVALID_LINK_MESSAGE)
    if customer.onboarding_completed:
        raise OnboardingCompletedError(COMPLETED_MESSAGE)
    return customer


def form_data_from_customer(customer: Customer) -> Dict[str, Any]:
    """Flat wizard fields derived from the stored customer record."""
    form: Dict[str, Any] = {
        "businessName": customer.business_name,
        "ownerName": customer.owner_name,
        "email": customer.email,
        "phone": customer.phone,
        "storeMedia": list(customer.store_media),
    }
    if customer.store_logo:
        form["storeLogo"] = customer.store_logo

    location = customer.location_info
    if location:
        form.update({
            "locationName": location.common_name,
            "locationPhone": location.phone_number,
            "locationAddress": location.address,
            "locationCity": location.city,
            "locationState": location.state,
            "locationZip": location.zip_code,
            "isStaffed": location.is_staffed,
            "hoursOfOperation": dict(location.hours_of_operation),
            "holidaysClosed": ", ".join(location.holidays_closed),
        })
        if location.customer_service_contact:
            form["customerServiceContact"] = location.customer_service_contact.model_dump()
        if location.alerts_contact:
            form["alertsContact"] = location.alerts_contact.model_dump()

    shipping = customer.shipping_info
    if shipping:
        form.update({
            "shippingSameAsLocation": shipping.same_as_location,
            "shippingAddress": shipping.address,
            "shippingCity": shipping.city,
            "shippingState": shipping.state,
            "shippingZip": shipping.zip_code,
            "shippingNotes": shipping.notes,
            "shipmentMethod": shipping.shipment_method,
        })

    pci = customer.pci_compliance
    if pci:
        form.update({
            "pciRepresentativeName": pci.representative_name,
            "pciCompanyName": pci.company_name,
            "pciTitle": pci.title,
            "pciConsent": pci.has_consented,
        })

    if customer.kiosk_info:
        form["hasKiosk"] = customer.kiosk_info.has_kiosk
        form["kiosks"] = list(customer.kiosk_info.kiosks)

    return form


def build_initial_form_data(customer: Customer) -> Dict[str, Any]:
    """
    Form data to rehydrate a wizard with.

    Record-derived fields, overlaid with the saved form blob, then machines
    and employees replaced by the stored collections.
    """
    form = form_data_from_customer(customer)
    saved = customer.saved_onboarding_data
    if saved:
        form.update({k: v for k, v in saved.form_data.items() if k not in UNSAVED_FORM_FIELDS})

    form["machines"] = [m.model_dump(by_alias=True, mode="json") for m in customer.machines]
    form["employees"] = [e.model_dump(by_alias=True, mode="json") for e in customer.employees]
    return form


def open_session(store: CustomerStore, token: str) -> Tuple[Customer, WizardSession]:
    """Resolve the link, record the first visit and rehydrate the wizard."""
    customer = resolve_customer(store, token)

    if not customer.onboarding_started:
        customer = store.update(customer.id, {"onboarding_started": True, "status": "in_progress"})
        logger.info(f"Onboarding started for customer {customer.id}")

    saved = customer.saved_onboarding_data
    saved_step = saved.current_step if saved else None
    saved_highest = saved.form_data.get("highestStepReached") if saved else None

    session = WizardSession()
    session.initialize_from_customer(
        customer.id,
        customer.onboarding_token,
        build_initial_form_data(customer),
        saved_step=saved_step,
        saved_highest_step=saved_highest,
    )
    return customer, session


def _collections_from_form(form: Dict[str, Any]) -> Tuple[Optional[List[Machine]], Optional[List[Employee]]]:
    machines = None
    employees = None
    if "machines" in form:
        machines = assign_machine_numbers(Machine.model_validate(m) for m in form.get("machines") or [])
    if "employees" in form:
        employees = [Employee.model_validate(e) for e in form.get("employees") or []]
    return machines, employees


def progress_updates(session: WizardSession, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Customer field updates that make the session resumable.

    Along with the snapshot, the info blocks are written on every save so
    staff see location, shipping and media details before submission.
    """
    snapshot = session.snapshot(now)
    snapshot["formData"] = {
        k: v for k, v in snapshot["formData"].items()
        if k not in UNSAVED_FORM_FIELDS or k == "highestStepReached"
    }
    updates: Dict[str, Any] = {
        "saved_onboarding_data": snapshot,
        "current_step": session.current_step,
    }
    form = session.form_data
    for form_key, field in (("businessName", "business_name"), ("ownerName", "owner_name"),
                            ("email", "email"), ("phone", "phone")):
        if form.get(form_key):
            updates[field] = form[form_key]
    updates.update(info_block_updates(form, now))
    return updates


def save_progress(store: CustomerStore, session: WizardSession, now: Optional[datetime] = None) -> Customer:
    """Persist the session snapshot. Errors propagate to the caller."""
    machines, employees = _collections_from_form(session.form_data)
    return store.update(session.customer_id, progress_updates(session, now), machines=machines, employees=employees)


class Autosaver:
    """Step-change listener that persists the session, best effort."""

    def __init__(self, store: CustomerStore):
        self.store = store

    def __call__(self, session: WizardSession, previous: OnboardingStep, current: OnboardingStep) -> None:
        try:
            save_progress(self.store, session)
        except Exception as e:
            # Autosave never interrupts navigation; the explicit save reports errors
            logger.error(f"Autosave failed for customer {session.customer_id} "
                         f"({previous.value} -> {current.value}): {e}")


def _split_holidays(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value or "").split(",") if part.strip()]


def info_block_updates(form: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Customer info blocks mapped from the flat wizard fields."""
    now = now or datetime.now(timezone.utc)

    same_as_location = form.get("shippingSameAsLocation", True)
    address_prefix = "location" if same_as_location else "shipping"
    consented = bool(form.get("pciConsent"))

    return {
        "location_info": {
            "commonName": form.get("locationName") or "",
            "phoneNumber": form.get("locationPhone") or "",
            "address": form.get("locationAddress") or "",
            "city": form.get("locationCity") or "",
            "state": form.get("locationState") or "",
            "zipCode": form.get("locationZip") or "",
            "isStaffed": bool(form.get("isStaffed")),
            "hoursOfOperation": form.get("hoursOfOperation") or {},
            "holidaysClosed": _split_holidays(form.get("holidaysClosed")),
            "customerServiceContact": form.get("customerServiceContact"),
            "alertsContact": form.get("alertsContact"),
        },
        "shipping_info": {
            "sameAsLocation": bool(same_as_location),
            "address": form.get(f"{address_prefix}Address") or "",
            "city": form.get(f"{address_prefix}City") or "",
            "state": form.get(f"{address_prefix}State") or "",
            "zipCode": form.get(f"{address_prefix}Zip") or "",
            "notes": form.get("shippingNotes") or "",
            "shipmentMethod": form.get("shipmentMethod") or "ltl_freight",
        },
        "pci_compliance": {
            "representativeName": form.get("pciRepresentativeName") or "",
            "companyName": form.get("pciCompanyName") or "",
            "title": form.get("pciTitle") or "",
            "consentDate": now.isoformat() if consented else None,
            "hasConsented": consented,
        },
        "kiosk_info": {
            "hasKiosk": bool(form.get("hasKiosk")),
            "kiosks": form.get("kiosks") or [],
        },
        "store_media": form.get("storeMedia") or [],
        "store_logo": form.get("storeLogo"),
    }


def build_submission_updates(form: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Customer field updates for a submitted wizard."""
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat()

    sections = []
    for step in STEP_ORDER:
        section = {"id": step.value, "name": STEP_DETAILS[step][0]}
        if step == LAST_STEP:
            section["status"] = "needs_review"
        else:
            section["status"] = "complete"
            section["completedAt"] = stamp
        sections.append(section)

    updates = {
        "business_name": form.get("businessName"),
        "owner_name": form.get("ownerName") or "",
        "email": form.get("email") or "",
        "phone": form.get("phone") or "",
        "status": "needs_review",
        "onboarding_completed": True,
        "onboarding_started": True,
        "current_step": TOTAL_STEPS,
        "total_steps": TOTAL_STEPS,
        "sections": sections,
        "contract_signed": True,
        "contract_signed_date": stamp,
        "installation_date": (now + timedelta(days=settings.INSTALLATION_LEAD_DAYS)).isoformat(),
    }
    updates.update(info_block_updates(form, now))
    return updates


def submit_onboarding(store: CustomerStore, session: WizardSession, now: Optional[datetime] = None) -> Customer:
    """
    Persist the submitted wizard and close the session.

    If the write fails the customer is left untouched and the session stays
    open on the review step.
    """
    if session.step != LAST_STEP:
        raise InvalidStepError(f"Onboarding can only be submitted from the '{LAST_STEP.value}' step")

    updates = build_submission_updates(session.form_data, now)
    updates["saved_onboarding_data"] = progress_updates(session, now)["saved_onboarding_data"]
    machines, employees = _collections_from_form(session.form_data)

    customer = store.update(session.customer_id, updates, machines=machines, employees=employees)
    session.submit()
    logger.info(f"Onboarding submitted for customer {customer.id}")
    return customer
