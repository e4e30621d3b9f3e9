from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime


OnboardingStatus = Literal["not_started", "in_progress", "needs_review", "complete"]
TaskStatus = Literal["not_started", "in_progress", "complete"]
PaymentStatus = Literal["unpaid", "paid_partial", "paid_in_full"]
PrivilegeLevel = Literal["admin", "attendant", "employee"]


class CamelModel(BaseModel):
    """Base for payloads exchanged as camelCase JSON."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class InfoBlock(CamelModel):
    class Config:
        extra = "allow"


class Contact(InfoBlock):
    name: str = ""
    phone: str = ""
    email: str = ""


class LocationInfo(InfoBlock):
    common_name: str = ""
    phone_number: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    is_staffed: bool = False
    hours_of_operation: Dict[str, str] = {}
    holidays_closed: List[str] = []
    customer_service_contact: Optional[Contact] = None
    alerts_contact: Optional[Contact] = None


class ShippingInfo(InfoBlock):
    same_as_location: bool = True
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    notes: str = ""
    shipment_method: str = "ltl_freight"  # ltl_freight, ups, other


class PCICompliance(InfoBlock):
    representative_name: str = ""
    company_name: str = ""
    title: str = ""
    consent_date: Optional[str] = None
    has_consented: bool = False


class KioskInfo(InfoBlock):
    has_kiosk: bool = False
    kiosks: List[Dict[str, Any]] = []


class MerchantAccount(InfoBlock):
    status: str = "pending"  # pending, submitted, boarded, active
    application_date: Optional[str] = None
    boarded_date: Optional[str] = None


class OnboardingDates(InfoBlock):
    start_date: str
    estimated_completion_date: str
    ai_estimated_date: Optional[str] = None
    actual_completion_date: Optional[str] = None
    admin_override_date: Optional[str] = None
    use_admin_override: bool = False


class SavedOnboardingData(InfoBlock):
    current_step: int = 0
    form_data: Dict[str, Any] = {}
    saved_at: Optional[str] = None


class OnboardingSection(CamelModel):
    id: str
    name: str
    status: OnboardingStatus = "not_started"
    completed_at: Optional[str] = None


class TaskMetadata(CamelModel):
    updated_by: str = "Unknown"
    updated_at: str


class SalesRepAssignment(CamelModel):
    sales_rep_id: str
    sales_rep_name: str = ""
    commission_percent: float = Field(100.0, ge=0, le=100)


class Machine(CamelModel):
    id: Optional[str] = None
    machine_number: int = 0
    type: str = "washer"  # washer, dryer, other
    make: str = ""
    model: str = ""
    serial_number: str = ""
    coins_accepted: str = "quarter"
    pricing: Dict[str, float] = {}
    capacity: Optional[str] = None
    price: Optional[float] = None
    status: str = "active"
    location_in_store: Optional[str] = None
    after_market_upgrades: Optional[str] = None
    notes: Optional[str] = None


class Employee(CamelModel):
    id: Optional[str] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str = "staff"
    pin: Optional[str] = None
    privilege_level: PrivilegeLevel = "employee"
    is_active: bool = True


class CustomerNote(CamelModel):
    id: str
    content: str
    created_by: str = "Unknown"
    created_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None
    is_edited: bool = False


class Customer(CamelModel):
    """In-memory customer aggregate, serialized as camelCase."""

    id: str
    business_name: str
    owner_name: str = ""
    email: str = ""
    phone: str = ""
    status: OnboardingStatus = "not_started"

    onboarding_token: str
    onboarding_started: bool = False
    onboarding_completed: bool = False
    current_step: int = 0
    total_steps: int = 11
    sections: List[OnboardingSection] = []
    saved_onboarding_data: Optional[SavedOnboardingData] = None

    current_stage_id: str = "contract_setup"
    task_statuses: Dict[str, TaskStatus] = {}
    task_metadata: Dict[str, TaskMetadata] = {}
    assigned_to: Optional[str] = None

    location_info: Optional[LocationInfo] = None
    shipping_info: Optional[ShippingInfo] = None
    kiosk_info: Optional[KioskInfo] = None
    pci_compliance: Optional[PCICompliance] = None
    merchant_account: Optional[MerchantAccount] = None
    billing_info: Optional[Dict[str, Any]] = None
    dashboard_credentials: Optional[Dict[str, Any]] = None
    store_media: List[Dict[str, Any]] = []
    store_logo: Optional[Dict[str, Any]] = None
    onboarding_dates: Optional[OnboardingDates] = None
    payment_processors: List[Dict[str, Any]] = []
    payment_links: List[Dict[str, Any]] = []

    contract_signed: bool = False
    contract_signed_date: Optional[str] = None
    installation_date: Optional[str] = None
    go_live_date: Optional[str] = None

    non_recurring_revenue: float = 0
    monthly_recurring_fee: float = 0
    other_fees: float = 0
    deal_amount: Optional[float] = None
    cogs: float = 0
    commission_rate: float = 10
    payment_term_months: int = 48
    sales_rep_assignments: List[SalesRepAssignment] = []

    payment_status: PaymentStatus = "unpaid"
    paid_to_date_amount: float = 0
    commission_paid_amount: float = 0
    paid_date: Optional[str] = None

    machines: List[Machine] = []
    employees: List[Employee] = []
    notes: List[CustomerNote] = []

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CustomerCreate(CamelModel):
    business_name: str = Field(..., min_length=1, max_length=200)
    owner_name: str = ""
    email: str = ""
    phone: str = ""
    assigned_to: Optional[str] = None
    non_recurring_revenue: float = 0
    monthly_recurring_fee: float = 0
    other_fees: float = 0
    deal_amount: Optional[float] = None
    cogs: float = 0
    commission_rate: Optional[float] = None
    payment_term_months: Optional[int] = None
    sales_rep_assignments: List[SalesRepAssignment] = []


class CustomerUpdate(CamelModel):
    """Partial admin update. Only fields present in the payload are written."""

    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    owner_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[OnboardingStatus] = None
    current_step: Optional[int] = Field(None, ge=0)
    onboarding_completed: Optional[bool] = None
    sections: Optional[List[OnboardingSection]] = None
    task_statuses: Optional[Dict[str, TaskStatus]] = None
    task_metadata: Optional[Dict[str, TaskMetadata]] = None
    current_stage_id: Optional[str] = None
    assigned_to: Optional[str] = None
    location_info: Optional[LocationInfo] = None
    shipping_info: Optional[ShippingInfo] = None
    kiosk_info: Optional[KioskInfo] = None
    pci_compliance: Optional[PCICompliance] = None
    merchant_account: Optional[MerchantAccount] = None
    billing_info: Optional[Dict[str, Any]] = None
    dashboard_credentials: Optional[Dict[str, Any]] = None
    store_media: Optional[List[Dict[str, Any]]] = None
    store_logo: Optional[Dict[str, Any]] = None
    onboarding_dates: Optional[OnboardingDates] = None
    payment_processors: Optional[List[Dict[str, Any]]] = None
    payment_links: Optional[List[Dict[str, Any]]] = None
    contract_signed: Optional[bool] = None
    contract_signed_date: Optional[str] = None
    installation_date: Optional[str] = None
    go_live_date: Optional[str] = None
    non_recurring_revenue: Optional[float] = None
    monthly_recurring_fee: Optional[float] = None
    other_fees: Optional[float] = None
    deal_amount: Optional[float] = None
    cogs: Optional[float] = None
    commission_rate: Optional[float] = None
    payment_term_months: Optional[int] = Field(None, ge=1)
    sales_rep_assignments: Optional[List[SalesRepAssignment]] = None
    payment_status: Optional[PaymentStatus] = None
    paid_to_date_amount: Optional[float] = None
    commission_paid_amount: Optional[float] = None
    paid_date: Optional[str] = None
    machines: Optional[List[Machine]] = None
    employees: Optional[List[Employee]] = None


class NoteCreate(CamelModel):
    content: str = Field(..., min_length=1)
    created_by: Optional[str] = None


class NoteUpdate(CamelModel):
    content: str = Field(..., min_length=1)
    updated_by: Optional[str] = None


class TaskStatusUpdate(CamelModel):
    status: TaskStatus
    updated_by: Optional[str] = None


class CurrentStageUpdate(CamelModel):
    stage_id: str


class MachineCloneRequest(CamelModel):
    count: int = Field(1, ge=1, le=99)
