"""Customer lifecycle operations shared by the admin and onboarding routes."""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from bossboarding.config import settings
from bossboarding.exceptions import InvalidRequestError, NotFoundError
from bossboarding.onboarding import progress
from bossboarding.onboarding.catalog import FIRST_STAGE_ID, default_task_statuses, get_stage, validate_task_statuses
from bossboarding.onboarding.machines import assign_machine_numbers, clone_machine
from bossboarding.onboarding.wizard import STEP_DETAILS, STEP_ORDER, TOTAL_STEPS
from bossboarding.repositories.customer_store import CustomerStore
from bossboarding.schemas.customer import Customer, CustomerCreate, CustomerUpdate, Machine
from bossboarding.services.estimate_service import default_onboarding_dates
from bossboarding.utils.security import generate_id, generate_onboarding_token

logger = logging.getLogger(__name__)


def default_sections() -> List[dict]:
    return [
        {"id": step.value, "name": STEP_DETAILS[step][0], "status": "not_started"}
        for step in STEP_ORDER
    ]


def default_payment_processors(now: datetime, added_by: str = "System") -> List[dict]:
    return [{
        "id": "paystri-default",
        "type": "paystri",
        "name": "Paystri",
        "link": settings.DEFAULT_PAYSTRI_LINK,
        "isDefault": True,
        "addedAt": now.isoformat(),
        "addedBy": added_by,
    }]


def unique_onboarding_token(store: CustomerStore, attempts: int = 10) -> str:
    for _ in range(attempts):
        token = generate_onboarding_token()
        if not store.token_exists(token):
            return token
    raise RuntimeError("Could not generate a unique onboarding token")


def create_customer(store: CustomerStore, data: CustomerCreate, created_by: Optional[str] = None) -> Customer:
    """Create a customer with a fresh onboarding link and default tracking state"""
    now = datetime.now(timezone.utc)
    customer = Customer(
        id=generate_id("cust"),
        business_name=data.business_name,
        owner_name=data.owner_name,
        email=data.email,
        phone=data.phone,
        status="not_started",
        onboarding_token=unique_onboarding_token(store),
        total_steps=TOTAL_STEPS,
        sections=default_sections(),
        current_stage_id=FIRST_STAGE_ID,
        task_statuses=default_task_statuses(),
        assigned_to=data.assigned_to,
        onboarding_dates=default_onboarding_dates(now),
        payment_processors=default_payment_processors(now, created_by or "System"),
        non_recurring_revenue=data.non_recurring_revenue,
        monthly_recurring_fee=data.monthly_recurring_fee,
        other_fees=data.other_fees,
        deal_amount=data.deal_amount,
        cogs=data.cogs,
        commission_rate=data.commission_rate if data.commission_rate is not None else settings.DEFAULT_COMMISSION_RATE,
        payment_term_months=data.payment_term_months or settings.DEFAULT_PAYMENT_TERM_MONTHS,
        sales_rep_assignments=data.sales_rep_assignments,
        created_at=now,
    )
    created = store.create(customer)
    logger.info(f"Created customer {created.id} ({created.business_name})")
    return created


def update_customer(store: CustomerStore, customer_id: str, data: CustomerUpdate) -> Customer:
    """
    Apply a partial admin update.

    Task status maps are checked against the catalog; machines are renumbered
    by type before the machine and employee sets are replaced.
    """
    current = store.get(customer_id)
    updates = {field: getattr(data, field) for field in data.model_fields_set}
    machines = updates.pop("machines", None)
    employees = updates.pop("employees", None)

    if updates.get("task_statuses") is not None:
        validate_task_statuses(updates["task_statuses"])
    if updates.get("current_stage_id") is not None and not get_stage(updates["current_stage_id"]):
        raise NotFoundError(f"Stage '{updates['current_stage_id']}' not found")

    total_steps = current.total_steps or TOTAL_STEPS
    if updates.get("current_step") is not None and updates["current_step"] > total_steps:
        raise InvalidRequestError(f"currentStep cannot exceed totalSteps ({total_steps})")

    if machines is not None:
        machines = assign_machine_numbers(machines)

    return store.update(customer_id, updates, machines=machines, employees=employees)


def regenerate_token(store: CustomerStore, customer_id: str) -> Customer:
    store.get(customer_id)
    return store.update(customer_id, {"onboarding_token": unique_onboarding_token(store)})


def update_task_status(
    store: CustomerStore, customer_id: str, task_id: str, status: str, updated_by: Optional[str] = None
) -> Customer:
    customer = store.get(customer_id)
    statuses, metadata = progress.set_task_status(
        customer.task_statuses,
        {k: v.model_dump(by_alias=True) for k, v in customer.task_metadata.items()},
        task_id, status, updated_by,
    )
    return store.update(customer_id, {"task_statuses": statuses, "task_metadata": metadata})


def update_stage_status(
    store: CustomerStore, customer_id: str, stage_id: str, status: str, updated_by: Optional[str] = None
) -> Customer:
    customer = store.get(customer_id)
    statuses, metadata = progress.set_stage_status(
        customer.task_statuses,
        {k: v.model_dump(by_alias=True) for k, v in customer.task_metadata.items()},
        stage_id, status, updated_by,
    )
    return store.update(customer_id, {"task_statuses": statuses, "task_metadata": metadata})


def set_current_stage(store: CustomerStore, customer_id: str, stage_id: str) -> Customer:
    if not get_stage(stage_id):
        raise NotFoundError(f"Stage '{stage_id}' not found")
    store.get(customer_id)
    return store.update(customer_id, {"current_stage_id": stage_id})


def clone_customer_machine(store: CustomerStore, customer_id: str, machine_number: int, count: int = 1) -> List[Machine]:
    """Clone one machine ``count`` times; returns the new machines"""
    customer = store.get(customer_id)
    source = next((m for m in customer.machines if m.machine_number == machine_number), None)
    if source is None:
        raise NotFoundError(f"Machine {machine_number} not found")

    clones = clone_machine(source, customer.machines, count)
    if not clones:
        raise InvalidRequestError(f"No free {source.type} numbers left")

    updated = store.update(customer_id, {}, machines=customer.machines + clones)
    new_numbers = {c.machine_number for c in clones}
    return [m for m in updated.machines if m.machine_number in new_numbers]
