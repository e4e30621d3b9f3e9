from collections import Counter
from typing import Iterable, List, Optional

from bossboarding.onboarding.catalog import ONBOARDING_STAGES, STAGES_BY_ID
from bossboarding.onboarding.progress import calculate_progress
from bossboarding.schemas.customer import Customer
from bossboarding.schemas.report import OnboardingOverview, TaskReport, TaskReportRow


def task_report(
    customers: Iterable[Customer],
    stage_id: Optional[str] = None,
    team: Optional[str] = None,
    task_status: Optional[str] = None,
    customer_status: Optional[str] = None,
) -> TaskReport:
    """One row per (customer, catalog task), narrowed by the given filters."""
    stages = [STAGES_BY_ID[stage_id]] if stage_id else list(ONBOARDING_STAGES)
    rows: List[TaskReportRow] = []

    for customer in customers:
        if customer_status and customer.status != customer_status:
            continue

        for stage in stages:
            for task in stage.tasks:
                if team and team not in task.team:
                    continue

                status = customer.task_statuses.get(task.id, "not_started")
                if task_status and status != task_status:
                    continue

                metadata = customer.task_metadata.get(task.id)
                rows.append(TaskReportRow(
                    customer_id=customer.id,
                    customer_name=customer.business_name,
                    customer_status=customer.status,
                    stage_id=stage.id,
                    stage_name=stage.name,
                    task_id=task.id,
                    task_name=task.name,
                    team=list(task.team),
                    priority=task.priority,
                    status=status,
                    updated_by=metadata.updated_by if metadata else None,
                    updated_at=metadata.updated_at if metadata else None,
                ))

    counts = Counter(row.status for row in rows)
    return TaskReport(
        rows=rows,
        counts={status: counts.get(status, 0) for status in ("not_started", "in_progress", "complete")},
    )


def onboarding_overview(customers: Iterable[Customer]) -> OnboardingOverview:
    customers = list(customers)
    by_status = Counter(c.status for c in customers)
    by_stage = Counter(c.current_stage_id for c in customers)

    progress = [calculate_progress(c.task_statuses) for c in customers]
    average = int(round(sum(progress) / len(progress))) if progress else 0

    return OnboardingOverview(
        total_customers=len(customers),
        by_status={status: by_status.get(status, 0)
                   for status in ("not_started", "in_progress", "needs_review", "complete")},
        by_current_stage={stage.id: by_stage.get(stage.id, 0) for stage in ONBOARDING_STAGES},
        average_progress=average,
        wizards_completed=sum(1 for c in customers if c.onboarding_completed),
    )
