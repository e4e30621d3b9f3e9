from typing import Optional, List, Dict
from bossboarding.schemas.customer import CamelModel


class CommissionEntry(CamelModel):
    customer_id: str
    customer_name: str
    sales_rep_id: str
    sales_rep_name: str
    deal_amount: float
    commission_rate: float
    commission_percent: float
    total_commission: float
    rep_commission: float
    payment_status: str
    paid_to_date: float
    commission_on_paid: float
    rep_commission_on_paid: float
    commission_paid: float
    commission_owed_now: float
    payment_term_months: int
    monthly_commission: float
    paid_date: Optional[str] = None
    status: str


class RepSummary(CamelModel):
    sales_rep_id: str
    sales_rep_name: str
    total_deals: int = 0
    total_commission: float = 0
    commission_owed_now: float = 0
    commission_paid: float = 0
    monthly_commission: float = 0


class CommissionReport(CamelModel):
    entries: List[CommissionEntry]
    summaries: List[RepSummary]
    total_commission: float
    total_owed_now: float
    total_paid: float
    total_monthly: float


class TaskReportRow(CamelModel):
    customer_id: str
    customer_name: str
    customer_status: str
    stage_id: str
    stage_name: str
    task_id: str
    task_name: str
    team: List[str]
    priority: str
    status: str
    updated_by: Optional[str] = None
    updated_at: Optional[str] = None


class TaskReport(CamelModel):
    rows: List[TaskReportRow]
    counts: Dict[str, int]


class OnboardingOverview(CamelModel):
    total_customers: int
    by_status: Dict[str, int]
    by_current_stage: Dict[str, int]
    average_progress: int
    wizards_completed: int
