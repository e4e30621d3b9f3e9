import logging
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from bossboarding.database import get_db
from bossboarding.exceptions import NotFoundError, OnboardingCompletedError, StepIncompleteError
from bossboarding.schemas.customer import Customer, CustomerUpdate
from bossboarding.schemas.onboarding import (
    TokenRequest, OnboardingSaveRequest, StepRequest, GotoRequest, SubmitRequest,
    WizardSessionResponse, SaveProgressResponse, SubmitResponse,
)
from bossboarding.repositories.auth_repo import CustomerUserRepository
from bossboarding.repositories.customer_store import CustomerStore
from bossboarding.services import customer_service
from bossboarding.services.email_service import email_service
from bossboarding.onboarding.session import (
    COMPLETED_MESSAGE, INVALID_LINK_MESSAGE, Autosaver, open_session,
    save_progress, submit_onboarding,
)
from bossboarding.onboarding.validation import missing_fields
from bossboarding.onboarding.wizard import STEP_DETAILS, TOTAL_STEPS, WizardSession
from bossboarding.middleware.auth import get_customer_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/onboarding", tags=["Onboarding"])


def session_response(session: WizardSession) -> WizardSessionResponse:
    return WizardSessionResponse(
        customer_id=session.customer_id,
        onboarding_token=session.onboarding_token,
        current_step=session.current_step,
        step_id=session.step.value,
        step_name=STEP_DETAILS[session.step][0],
        highest_step_reached=session.highest_step_reached,
        total_steps=TOTAL_STEPS,
        completed=session.completed,
        missing_fields=missing_fields(session.step, session.form_data),
        form_data=session.form_data,
        steps=session.describe_steps(),
    )


def _open_with_autosave(store: CustomerStore, token: str, form_data: dict) -> WizardSession:
    _, session = open_session(store, token)
    session.update_form_data(form_data)
    session.on_step_change(Autosaver(store))
    return session


def register_portal_owner(db: Session, customer: Customer, password: str) -> bool:
    """
    Create the owner's portal login, or reset its password if it exists.

    Best effort: failures are logged and never block the submission.
    """
    if not password or not customer.email:
        return False

    repo = CustomerUserRepository(db)
    try:
        user = repo.get_by_email(customer.email)
        if user and user.customer_id != customer.id:
            logger.warning(f"Portal email {customer.email} already belongs to customer {user.customer_id}")
            return False

        if user:
            repo.set_password(user, password)
        else:
            repo.create(customer.id, customer.email, password, name=customer.owner_name or None, role="owner")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create portal user for {customer.id}: {e}")
        return False


@router.post("/load", response_model=Customer)
def load_onboarding(
    request: TokenRequest,
    store: CustomerStore = Depends(get_customer_store)
):
    """Resolve an onboarding link; the first visit marks the onboarding as started"""
    customer, _ = open_session(store, request.token)
    return customer


@router.post("/save", response_model=Customer)
def save_onboarding(
    request: OnboardingSaveRequest,
    store: CustomerStore = Depends(get_customer_store)
):
    """Apply camelCase field updates from the wizard to an open onboarding"""
    customer = store.find(request.customer_id)
    if customer is None:
        raise NotFoundError(INVALID_LINK_MESSAGE)
    if customer.onboarding_completed:
        raise OnboardingCompletedError(COMPLETED_MESSAGE)

    updates = dict(request.updates)
    if "kioskConfiguration" in updates:
        updates["kioskInfo"] = updates.pop("kioskConfiguration")

    return customer_service.update_customer(store, customer.id, CustomerUpdate.model_validate(updates))


@router.get("/{token}/session", response_model=WizardSessionResponse)
def get_session(
    token: str,
    store: CustomerStore = Depends(get_customer_store)
):
    """Rehydrated wizard state for a link"""
    _, session = open_session(store, token)
    return session_response(session)


@router.post("/{token}/next", response_model=WizardSessionResponse)
def next_step(
    token: str,
    request: Optional[StepRequest] = None,
    store: CustomerStore = Depends(get_customer_store)
):
    """Continue to the next step once the current one is complete"""
    session = _open_with_autosave(store, token, request.form_data if request else {})

    missing = missing_fields(session.step, session.form_data)
    if missing:
        raise StepIncompleteError(session.step.value, missing)

    session.next_step()
    return session_response(session)


@router.post("/{token}/back", response_model=WizardSessionResponse)
def previous_step(
    token: str,
    request: Optional[StepRequest] = None,
    store: CustomerStore = Depends(get_customer_store)
):
    session = _open_with_autosave(store, token, request.form_data if request else {})
    session.prev_step()
    return session_response(session)


@router.post("/{token}/goto", response_model=WizardSessionResponse)
def goto_step(
    token: str,
    request: GotoRequest,
    store: CustomerStore = Depends(get_customer_store)
):
    """Jump to a step that has already been reached"""
    session = _open_with_autosave(store, token, request.form_data)
    session.set_step(request.step)
    return session_response(session)


@router.post("/{token}/progress", response_model=SaveProgressResponse)
def save_wizard_progress(
    token: str,
    request: Optional[StepRequest] = None,
    store: CustomerStore = Depends(get_customer_store)
):
    """Explicit save; unlike autosave, failures are reported"""
    _, session = open_session(store, token)
    session.update_form_data(request.form_data if request else {})
    customer = save_progress(store, session)
    return SaveProgressResponse(
        success=True,
        saved_at=customer.saved_onboarding_data.saved_at if customer.saved_onboarding_data else None,
        session=session_response(session),
    )


@router.post("/{token}/submit", response_model=SubmitResponse)
async def submit(
    token: str,
    request: Optional[SubmitRequest] = None,
    store: CustomerStore = Depends(get_customer_store),
    db: Session = Depends(get_db)
):
    """Submit the wizard from the review step"""
    _, session = open_session(store, token)
    session.update_form_data(request.form_data if request else {})

    customer = submit_onboarding(store, session)
    portal_user_created = register_portal_owner(db, customer, session.form_data.get("password"))
    emails = await email_service.send_onboarding_submitted(customer)

    return SubmitResponse(
        success=True,
        customer=customer,
        portal_user_created=portal_user_created,
        emails=emails,
    )
