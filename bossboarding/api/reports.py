from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import Response
from typing import Literal, Optional
from bossboarding.schemas.customer import OnboardingStatus, TaskStatus
from bossboarding.schemas.report import CommissionReport, TaskReport, OnboardingOverview
from bossboarding.repositories.customer_store import CustomerStore
from bossboarding.reports.commissions import (
    COMMISSION_STATUS_FILTERS, commission_report, commissions_to_csv, csv_filename,
)
from bossboarding.reports.tasks import task_report, onboarding_overview
from bossboarding.onboarding.catalog import STAGES_BY_ID, TEAMS
from bossboarding.middleware.auth import get_current_admin, get_customer_store
from bossboarding.models.auth import AdminUser

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/commissions", response_model=CommissionReport)
def get_commissions(
    rep: Optional[str] = Query(None, description="Sales rep id, or 'all'"),
    status_filter: Optional[str] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    format: Literal["json", "csv"] = Query("json"),
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Commission entries per customer and rep, recomputed on every request"""
    if status_filter and status_filter != "all" and status_filter not in COMMISSION_STATUS_FILTERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status filter '{status_filter}'"
        )

    report = commission_report(store.list_customers(), rep, status_filter, date_from, date_to)

    if format == "csv":
        return Response(
            content=commissions_to_csv(report.entries),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{csv_filename()}"'},
        )

    return report


@router.get("/tasks", response_model=TaskReport)
def get_task_report(
    stage_id: Optional[str] = Query(None, alias="stageId"),
    team: Optional[str] = None,
    task_status: Optional[TaskStatus] = Query(None, alias="taskStatus"),
    customer_status: Optional[OnboardingStatus] = Query(None, alias="customerStatus"),
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Task status across customers, filterable by stage, team and status"""
    if stage_id and stage_id not in STAGES_BY_ID:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Stage '{stage_id}' not found"
        )
    if team and team not in TEAMS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown team '{team}'"
        )

    return task_report(store.list_customers(), stage_id, team, task_status, customer_status)


@router.get("/overview", response_model=OnboardingOverview)
def get_overview(
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    return onboarding_overview(store.list_customers())
