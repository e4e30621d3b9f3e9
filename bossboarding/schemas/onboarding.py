from pydantic import Field
from typing import Optional, List, Dict, Any, Union
from bossboarding.schemas.customer import CamelModel, Customer


class TokenRequest(CamelModel):
    token: str = Field(..., min_length=1)


class OnboardingSaveRequest(CamelModel):
    customer_id: str = Field(..., min_length=1)
    updates: Dict[str, Any] = {}


class StepRequest(CamelModel):
    """Partial form data merged before the navigation is applied."""

    form_data: Dict[str, Any] = {}


class GotoRequest(StepRequest):
    step: Union[int, str]


class SubmitRequest(StepRequest):
    pass


class StepInfo(CamelModel):
    index: int
    id: str
    name: str
    description: str
    reachable: bool
    is_current: bool


class WizardSessionResponse(CamelModel):
    customer_id: str
    onboarding_token: str
    current_step: int
    step_id: str
    step_name: str
    highest_step_reached: int
    total_steps: int
    completed: bool
    missing_fields: List[str] = []
    form_data: Dict[str, Any] = {}
    steps: List[StepInfo] = []


class SaveProgressResponse(CamelModel):
    success: bool
    saved_at: Optional[str] = None
    session: WizardSessionResponse


class SubmitResponse(CamelModel):
    success: bool
    customer: Customer
    portal_user_created: bool = False
    emails: Dict[str, Any] = {}
