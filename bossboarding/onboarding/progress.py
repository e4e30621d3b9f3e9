"""
Stage/task progress derivations over a customer's task status map.

Everything here is pure: inputs are plain dicts, results are new dicts or
lists. Ids that are not in the catalog are ignored, and tasks missing from the
map count as ``not_started``.
"""

from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Tuple

from bossboarding.exceptions import InvalidRequestError, NotFoundError
from bossboarding.onboarding.catalog import (
    ONBOARDING_STAGES,
    OnboardingStage,
    TASK_STATUSES,
    TASKS_BY_ID,
    get_stage,
    known_task_statuses,
    total_task_count,
)


def completed_task_ids(task_statuses: Optional[Mapping[str, str]]) -> List[str]:
    statuses = known_task_statuses(task_statuses)
    return [task_id for task_id, status in statuses.items() if status == "complete"]


def calculate_progress(task_statuses: Optional[Mapping[str, str]]) -> int:
    """Overall completion percentage, rounded to the nearest integer."""
    total = total_task_count()
    if total == 0:
        return 0
    return int(round(len(completed_task_ids(task_statuses)) * 100 / total))


def _stage_counts(stage: OnboardingStage, task_statuses: Mapping[str, str]) -> Tuple[int, int]:
    completed = sum(1 for task_id in stage.task_ids if task_statuses.get(task_id) == "complete")
    return completed, len(stage.tasks)


def stage_status(stage: OnboardingStage, task_statuses: Optional[Mapping[str, str]]) -> str:
    """
    Classify a stage by its own tasks only.

    complete when every task is complete, in_progress when some are,
    not_started otherwise. The previous stage's state is not considered.
    """
    completed, total = _stage_counts(stage, task_statuses or {})
    if total and completed == total:
        return "complete"
    if completed > 0:
        return "in_progress"
    return "not_started"


def calculate_stage_progress(stage_id: str, task_statuses: Optional[Mapping[str, str]]) -> int:
    stage = get_stage(stage_id)
    if not stage or not stage.tasks:
        return 0
    completed, total = _stage_counts(stage, task_statuses or {})
    return int(round(completed * 100 / total))


def suggested_stage_index(task_statuses: Optional[Mapping[str, str]]) -> int:
    """
    Stage the team is most likely working on, from completed tasks.

    Scans from the last stage backwards; the first stage with any completed
    task is returned, or the following one when it is fully complete.
    Only a hint: the stored current stage pointer is authoritative.
    """
    completed = set(completed_task_ids(task_statuses))
    last = len(ONBOARDING_STAGES) - 1
    for i in range(last, -1, -1):
        stage_ids = ONBOARDING_STAGES[i].task_ids
        if any(task_id in completed for task_id in stage_ids):
            if all(task_id in completed for task_id in stage_ids):
                return min(i + 1, last)
            return i
    return 0


def build_timeline(task_statuses: Optional[Mapping[str, str]], current_stage_id: Optional[str]) -> List[dict]:
    """Ordered per-stage view for the admin and portal progress bars."""
    statuses = known_task_statuses(task_statuses)
    timeline = []
    for index, stage in enumerate(ONBOARDING_STAGES):
        completed, total = _stage_counts(stage, statuses)
        timeline.append({
            "index": index,
            "stageId": stage.id,
            "name": stage.name,
            "shortName": stage.short_name,
            "status": stage_status(stage, statuses),
            "completedTasks": completed,
            "totalTasks": total,
            "progress": int(round(completed * 100 / total)) if total else 0,
            "isCurrent": stage.id == current_stage_id,
        })
    return timeline


def customer_visible_progress(task_statuses: Optional[Mapping[str, str]]) -> List[dict]:
    """Tasks the customer may see in the portal, with their status."""
    statuses = known_task_statuses(task_statuses)
    visible = []
    for stage in ONBOARDING_STAGES:
        for task in stage.tasks:
            if task.customer_visible:
                visible.append({
                    "stageId": stage.id,
                    "taskId": task.id,
                    "name": task.name,
                    "status": statuses.get(task.id, "not_started"),
                })
    return visible


def _stamp(updated_by: Optional[str], now: Optional[datetime]) -> dict:
    moment = now or datetime.now(timezone.utc)
    return {"updatedBy": updated_by or "Unknown", "updatedAt": moment.isoformat()}


def _check_status(status: str) -> None:
    if status not in TASK_STATUSES:
        raise InvalidRequestError(f"Invalid task status '{status}'")


def set_task_status(
    task_statuses: Optional[Mapping[str, str]],
    task_metadata: Optional[Mapping[str, dict]],
    task_id: str,
    status: str,
    updated_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[Dict[str, str], Dict[str, dict]]:
    """Set one task's status and stamp who changed it and when."""
    if task_id not in TASKS_BY_ID:
        raise NotFoundError(f"Task '{task_id}' not found")
    _check_status(status)

    statuses = dict(task_statuses or {})
    metadata = dict(task_metadata or {})
    statuses[task_id] = status
    metadata[task_id] = _stamp(updated_by, now)
    return statuses, metadata


def set_stage_status(
    task_statuses: Optional[Mapping[str, str]],
    task_metadata: Optional[Mapping[str, dict]],
    stage_id: str,
    status: str,
    updated_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[Dict[str, str], Dict[str, dict]]:
    """Overwrite every task in a stage with the same status."""
    stage = get_stage(stage_id)
    if not stage:
        raise NotFoundError(f"Stage '{stage_id}' not found")
    _check_status(status)

    statuses = dict(task_statuses or {})
    metadata = dict(task_metadata or {})
    stamp = _stamp(updated_by, now)
    for task_id in stage.task_ids:
        statuses[task_id] = status
        metadata[task_id] = dict(stamp)
    return statuses, metadata


def progress_summary(task_statuses: Optional[Mapping[str, str]], current_stage_id: Optional[str]) -> dict:
    suggested = ONBOARDING_STAGES[suggested_stage_index(task_statuses)]
    return {
        "progress": calculate_progress(task_statuses),
        "completedTasks": len(completed_task_ids(task_statuses)),
        "totalTasks": total_task_count(),
        "currentStageId": current_stage_id,
        "suggestedStageId": suggested.id,
        "stages": build_timeline(task_statuses, current_stage_id),
    }
