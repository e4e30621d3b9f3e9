import asyncio
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import List, Optional
from bossboarding.schemas.customer import (
    Customer, CustomerCreate, CustomerUpdate, CustomerNote, Machine,
    NoteCreate, NoteUpdate, TaskStatusUpdate, CurrentStageUpdate, MachineCloneRequest,
    OnboardingStatus,
)
from bossboarding.repositories.customer_store import CustomerStore
from bossboarding.services import customer_service
from bossboarding.services.estimate_service import estimate_service, default_onboarding_dates
from bossboarding.onboarding.progress import progress_summary, customer_visible_progress
from bossboarding.middleware.auth import get_current_admin, get_customer_store
from bossboarding.models.auth import AdminUser

router = APIRouter(prefix="/api/customers", tags=["Customers"])


def _actor(user: AdminUser, given: Optional[str] = None) -> str:
    return given or user.name or user.email


@router.get("", response_model=List[Customer])
def list_customers(
    status_filter: Optional[OnboardingStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """List customers, newest first, with optional status filter and search"""
    return store.list_customers(status=status_filter, search=search)


@router.post("", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer_data: CustomerCreate,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Create a new customer with an onboarding link"""
    return customer_service.create_customer(store, customer_data, created_by=_actor(current_user))


@router.get("/{customer_id}", response_model=Customer)
def get_customer(
    customer_id: str,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Get customer by ID, including machines, employees and notes"""
    customer = store.find(customer_id)

    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    return customer


@router.patch("/{customer_id}", response_model=Customer)
def update_customer(
    customer_id: str,
    customer_data: CustomerUpdate,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Partial update; machines and employees are replaced when present"""
    return customer_service.update_customer(store, customer_id, customer_data)


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: str,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Delete customer"""
    success = store.delete(customer_id)

    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    return {"success": True, "message": "Customer deleted successfully"}


# Notes

@router.post("/{customer_id}/notes", response_model=CustomerNote, status_code=status.HTTP_201_CREATED)
def add_note(
    customer_id: str,
    note_data: NoteCreate,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    return store.add_note(customer_id, note_data.content, _actor(current_user, note_data.created_by))


@router.put("/{customer_id}/notes/{note_id}", response_model=CustomerNote)
def update_note(
    customer_id: str,
    note_id: str,
    note_data: NoteUpdate,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    return store.update_note(customer_id, note_id, note_data.content, _actor(current_user, note_data.updated_by))


@router.delete("/{customer_id}/notes/{note_id}")
def delete_note(
    customer_id: str,
    note_id: str,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    if not store.delete_note(customer_id, note_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Note not found"
        )

    return {"success": True}


# Stage / task tracking

@router.put("/{customer_id}/tasks/{task_id}", response_model=Customer)
def update_task_status(
    customer_id: str,
    task_id: str,
    update: TaskStatusUpdate,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Set one task's status, stamping who changed it"""
    return customer_service.update_task_status(
        store, customer_id, task_id, update.status, _actor(current_user, update.updated_by)
    )


@router.put("/{customer_id}/stages/{stage_id}", response_model=Customer)
def update_stage_status(
    customer_id: str,
    stage_id: str,
    update: TaskStatusUpdate,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Set every task in a stage to the same status"""
    return customer_service.update_stage_status(
        store, customer_id, stage_id, update.status, _actor(current_user, update.updated_by)
    )


@router.put("/{customer_id}/current-stage", response_model=Customer)
def set_current_stage(
    customer_id: str,
    update: CurrentStageUpdate,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    return customer_service.set_current_stage(store, customer_id, update.stage_id)


@router.get("/{customer_id}/progress", response_model=dict)
def get_progress(
    customer_id: str,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Overall progress, suggested stage and per-stage timeline"""
    customer = store.get(customer_id)
    summary = progress_summary(customer.task_statuses, customer.current_stage_id)
    summary["customerVisibleTasks"] = customer_visible_progress(customer.task_statuses)
    return summary


# Machines

@router.post(
    "/{customer_id}/machines/{machine_number}/clone",
    response_model=List[Machine],
    status_code=status.HTTP_201_CREATED,
)
def clone_machine(
    customer_id: str,
    machine_number: int,
    clone_request: Optional[MachineCloneRequest] = None,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Duplicate a machine into the next free numbers of its type"""
    count = clone_request.count if clone_request else 1
    return customer_service.clone_customer_machine(store, customer_id, machine_number, count)


# Onboarding link / dates

@router.post("/{customer_id}/regenerate-token", response_model=Customer)
def regenerate_token(
    customer_id: str,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Issue a new onboarding link; the old one stops working"""
    return customer_service.regenerate_token(store, customer_id)


@router.post("/{customer_id}/estimate", response_model=dict)
async def estimate_completion(
    customer_id: str,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Ask the AI provider for a completion estimate and store it on success"""
    customer = store.get(customer_id)
    result = await asyncio.to_thread(estimate_service.estimate, customer)

    if result.get("success"):
        dates = customer.onboarding_dates.model_dump(by_alias=True) if customer.onboarding_dates else {}
        if not dates:
            dates = default_onboarding_dates()
        dates["aiEstimatedDate"] = result["estimatedDate"]
        store.update(customer_id, {"onboarding_dates": dates})

    return result
