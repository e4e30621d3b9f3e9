"""Custom exception hierarchy for BossBoarding."""


class BossBoardingError(Exception):
    """Base exception for all BossBoarding errors."""


class NotFoundError(BossBoardingError):
    """Raised when a customer, token or child record does not exist."""


class InvalidStepError(BossBoardingError):
    """Raised when a wizard step index or name is outside the step sequence."""


class StepNotReachedError(InvalidStepError):
    """Raised when jumping forward past the highest step reached."""

    def __init__(self, step: int, highest_step_reached: int):
        super().__init__(
            f"Step {step} has not been reached yet (highest step reached: {highest_step_reached})"
        )
        self.step = step
        self.highest_step_reached = highest_step_reached


class StepIncompleteError(BossBoardingError):
    """Raised when continuing from a step whose required fields are missing."""

    def __init__(self, step: str, missing: list):
        super().__init__(f"Step '{step}' is incomplete: {', '.join(missing)}")
        self.step = step
        self.missing = missing


class OnboardingCompletedError(BossBoardingError):
    """Raised when a completed onboarding wizard is reopened or modified."""


class UnknownTaskError(BossBoardingError):
    """Raised when a task status map references ids outside the stage catalog."""

    def __init__(self, task_ids):
        self.task_ids = sorted(task_ids)
        super().__init__(f"Unknown task id(s): {', '.join(self.task_ids)}")


class AuthenticationError(BossBoardingError):
    """Raised when credentials or reset tokens do not verify."""


class IntegrationError(BossBoardingError):
    """Raised when an external collaborator (email, storage, AI) fails."""


class InvalidRequestError(BossBoardingError):
    """Raised for payloads that are well-formed but violate a domain rule."""
