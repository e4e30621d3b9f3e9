"""Tests for stage and task progress derivations."""

from datetime import datetime, timezone

import pytest

from bossboarding.exceptions import InvalidRequestError, NotFoundError, UnknownTaskError
from bossboarding.onboarding.catalog import (
    ONBOARDING_STAGES,
    STAGES_BY_ID,
    default_task_statuses,
    total_task_count,
    validate_task_statuses,
)
from bossboarding.onboarding.progress import (
    build_timeline,
    calculate_progress,
    calculate_stage_progress,
    customer_visible_progress,
    set_stage_status,
    set_task_status,
    stage_status,
    suggested_stage_index,
)


def _complete(*stage_ids):
    return {task_id: "complete" for sid in stage_ids for task_id in STAGES_BY_ID[sid].task_ids}


class TestCatalog:
    def test_task_ids_are_unique(self) -> None:
        ids = [task.id for stage in ONBOARDING_STAGES for task in stage.tasks]
        assert len(ids) == len(set(ids)) == total_task_count()

    def test_default_statuses_cover_catalog(self) -> None:
        statuses = default_task_statuses()
        assert len(statuses) == total_task_count()
        assert set(statuses.values()) == {"not_started"}

    def test_unknown_task_id_rejected(self) -> None:
        with pytest.raises(UnknownTaskError) as exc:
            validate_task_statuses({"confirm_data": "complete", "bogus_task": "complete"})
        assert exc.value.task_ids == ["bogus_task"]

    def test_invalid_status_rejected(self) -> None:
        with pytest.raises(InvalidRequestError):
            validate_task_statuses({"confirm_data": "done"})


class TestProgress:
    def test_empty_map_is_zero(self) -> None:
        assert calculate_progress({}) == 0
        assert calculate_progress(None) == 0

    def test_all_complete_is_hundred(self) -> None:
        assert calculate_progress({tid: "complete" for tid in default_task_statuses()}) == 100

    def test_unknown_ids_are_ignored(self) -> None:
        assert calculate_progress({"bogus": "complete"}) == 0

    def test_progress_is_monotonic(self) -> None:
        statuses = default_task_statuses()
        last = 0
        for task_id in list(statuses):
            statuses[task_id] = "in_progress"
            assert calculate_progress(statuses) >= last
            statuses[task_id] = "complete"
            value = calculate_progress(statuses)
            assert last <= value <= 100
            last = value
        assert last == 100


class TestStageStatus:
    def test_stage_complete_when_every_task_complete(self) -> None:
        stage = STAGES_BY_ID["shipment"]
        assert stage_status(stage, _complete("shipment")) == "complete"

    def test_stage_in_progress_with_partial_completion(self) -> None:
        stage = STAGES_BY_ID["shipment"]
        assert stage_status(stage, {"shipment_review_checklist": "complete"}) == "in_progress"

    def test_stage_not_started(self) -> None:
        assert stage_status(STAGES_BY_ID["shipment"], {}) == "not_started"

    def test_stage_progress_percentage(self) -> None:
        assert calculate_stage_progress("shipment", {"shipment_review_checklist": "complete"}) == 33
        assert calculate_stage_progress("missing_stage", {}) == 0

    def test_timeline_marks_current_stage(self) -> None:
        timeline = build_timeline(_complete("contract_setup"), "internal_kickoff")
        assert len(timeline) == len(ONBOARDING_STAGES)
        assert timeline[0]["status"] == "complete"
        assert timeline[1]["isCurrent"]
        assert not timeline[0]["isCurrent"]


class TestSuggestedStage:
    def test_no_progress_suggests_first_stage(self) -> None:
        assert suggested_stage_index({}) == 0

    def test_fully_complete_stage_suggests_next(self) -> None:
        assert suggested_stage_index(_complete("contract_setup")) == 1

    def test_partial_stage_is_suggested(self) -> None:
        statuses = _complete("contract_setup")
        statuses["mibs"] = "complete"
        assert suggested_stage_index(statuses) == 3

    def test_last_stage_complete_stays_last(self) -> None:
        assert suggested_stage_index(_complete("post_go_live")) == len(ONBOARDING_STAGES) - 1


class TestMutations:
    def test_set_task_status_stamps_metadata(self) -> None:
        now = datetime(2025, 3, 1, tzinfo=timezone.utc)
        statuses, metadata = set_task_status({}, {}, "confirm_data", "complete", "Ops Admin", now)
        assert statuses == {"confirm_data": "complete"}
        assert metadata["confirm_data"] == {"updatedBy": "Ops Admin", "updatedAt": now.isoformat()}

    def test_set_task_status_does_not_mutate_input(self) -> None:
        original = {"confirm_data": "not_started"}
        set_task_status(original, {}, "confirm_data", "complete")
        assert original == {"confirm_data": "not_started"}

    def test_unknown_task_not_found(self) -> None:
        with pytest.raises(NotFoundError):
            set_task_status({}, {}, "bogus", "complete")

    def test_set_stage_status_covers_every_task(self) -> None:
        statuses, metadata = set_stage_status({}, {}, "shipment", "in_progress", "Ops Admin")
        assert set(statuses) == set(STAGES_BY_ID["shipment"].task_ids)
        assert set(statuses.values()) == {"in_progress"}
        assert set(metadata) == set(statuses)

    def test_customer_visible_tasks_only(self) -> None:
        visible = customer_visible_progress({"confirm_data": "complete"})
        ids = {row["taskId"] for row in visible}
        assert "confirm_data" in ids
        assert "inventory_check" not in ids
        assert next(r for r in visible if r["taskId"] == "confirm_data")["status"] == "complete"
