"""Tests for the onboarding wizard state machine."""

import pytest

from bossboarding.exceptions import InvalidStepError, OnboardingCompletedError, StepNotReachedError
from bossboarding.onboarding.wizard import (
    FIRST_STEP,
    LAST_STEP,
    TOTAL_STEPS,
    OnboardingStep,
    WizardSession,
    resolve_step,
)


@pytest.fixture
def session() -> WizardSession:
    wizard = WizardSession()
    wizard.initialize_from_customer("cust_1", "AbC23xYz", {"businessName": "Suds City"})
    return wizard


class TestNavigation:
    def test_fresh_session_starts_at_first_step(self, session: WizardSession) -> None:
        assert session.step == FIRST_STEP
        assert session.current_step == 0
        assert session.highest_step_reached == 0

    def test_next_raises_high_water_mark(self, session: WizardSession) -> None:
        session.next_step()
        session.next_step()
        assert session.current_step == 2
        assert session.highest_step_reached == 2

    @pytest.mark.parametrize("count", range(TOTAL_STEPS + 2))
    def test_next_n_times_is_clamped(self, session: WizardSession, count: int) -> None:
        for taken in range(1, count + 1):
            session.next_step()
            assert session.current_step == min(taken, TOTAL_STEPS - 1)
            assert session.highest_step_reached >= session.current_step
        assert session.current_step == min(count, TOTAL_STEPS - 1)
        assert session.highest_step_reached == session.current_step

    def test_back_keeps_high_water_mark(self, session: WizardSession) -> None:
        session.next_step()
        session.next_step()
        session.prev_step()
        assert session.current_step == 1
        assert session.highest_step_reached == 2

    def test_back_on_first_step_is_noop(self, session: WizardSession) -> None:
        session.prev_step()
        assert session.step == FIRST_STEP

    def test_next_on_last_step_is_noop(self, session: WizardSession) -> None:
        for _ in range(TOTAL_STEPS + 3):
            session.next_step()
        assert session.step == LAST_STEP
        assert session.highest_step_reached == TOTAL_STEPS - 1

    def test_goto_reached_step(self, session: WizardSession) -> None:
        for _ in range(4):
            session.next_step()
        session.set_step("location")
        assert session.step == OnboardingStep.LOCATION
        assert session.highest_step_reached == 4

    def test_goto_unreached_step_raises(self, session: WizardSession) -> None:
        with pytest.raises(StepNotReachedError) as exc:
            session.set_step(5)
        assert exc.value.highest_step_reached == 0
        assert session.step == FIRST_STEP


class TestListeners:
    def test_listener_runs_on_step_change_only(self, session: WizardSession) -> None:
        calls = []
        session.on_step_change(lambda s, prev, cur: calls.append((prev, cur)))

        session.update_form_data({"ownerName": "Dana"})
        session.prev_step()
        session.next_step()

        assert calls == [(OnboardingStep.GENERAL, OnboardingStep.LOCATION)]


class TestRehydration:
    def test_restores_saved_position(self) -> None:
        wizard = WizardSession()
        wizard.initialize_from_customer("cust_1", "tok", {}, saved_step=3, saved_highest_step=6)
        assert wizard.current_step == 3
        assert wizard.highest_step_reached == 6

    def test_highest_never_below_current(self) -> None:
        wizard = WizardSession()
        wizard.initialize_from_customer("cust_1", "tok", {}, saved_step=5, saved_highest_step=2)
        assert wizard.highest_step_reached == 5

    def test_out_of_range_step_is_clamped(self) -> None:
        wizard = WizardSession()
        wizard.initialize_from_customer("cust_1", "tok", {}, saved_step=40)
        assert wizard.step == LAST_STEP

    def test_fresh_start_ignores_high_water_mark(self) -> None:
        wizard = WizardSession()
        wizard.initialize_from_customer("cust_1", "tok", {}, saved_step=None, saved_highest_step=7)
        assert wizard.step == FIRST_STEP
        assert wizard.highest_step_reached == 0


class TestSubmit:
    def test_submit_only_from_review(self, session: WizardSession) -> None:
        with pytest.raises(InvalidStepError):
            session.submit()

    def test_submitted_session_is_closed(self, session: WizardSession) -> None:
        for _ in range(TOTAL_STEPS):
            session.next_step()
        session.submit()

        assert session.completed
        with pytest.raises(OnboardingCompletedError):
            session.next_step()
        with pytest.raises(OnboardingCompletedError):
            session.update_form_data({"email": "x@y.com"})


class TestResolveStep:
    def test_accepts_index_name_and_digits(self) -> None:
        assert resolve_step(0) == OnboardingStep.GENERAL
        assert resolve_step("review") == OnboardingStep.REVIEW
        assert resolve_step("3") == OnboardingStep.MACHINES

    @pytest.mark.parametrize("value", [-1, TOTAL_STEPS, "checkout", True])
    def test_rejects_unknown_steps(self, value) -> None:
        with pytest.raises(InvalidStepError):
            resolve_step(value)
