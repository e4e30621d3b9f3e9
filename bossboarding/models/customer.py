from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Numeric, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bossboarding.database import Base
from bossboarding.models.machine import Machine  # noqa: F401
from bossboarding.models.employee import Employee  # noqa: F401


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String, primary_key=True, index=True)

    # Basic info
    business_name = Column(String, nullable=False)
    owner_name = Column(String)
    email = Column(String, index=True)
    phone = Column(String)

    # Wizard lifecycle
    status = Column(String, nullable=False, default="not_started")  # not_started, in_progress, needs_review, complete
    onboarding_token = Column(String, unique=True, nullable=False, index=True)
    onboarding_started = Column(Boolean, default=False)
    onboarding_completed = Column(Boolean, default=False)
    current_step = Column(Integer, default=0)
    total_steps = Column(Integer, default=11)
    sections = Column(JSON)
    saved_onboarding_data = Column(JSON)

    # Admin stage/task tracking
    current_stage_id = Column(String)
    task_statuses = Column(JSON)
    task_metadata = Column(JSON)
    assigned_to = Column(String)

    # Nested info blocks
    location_info = Column(JSON)
    shipping_info = Column(JSON)
    kiosk_info = Column(JSON)
    pci_compliance = Column(JSON)
    merchant_account = Column(JSON)
    billing_info = Column(JSON)
    dashboard_credentials = Column(JSON)
    store_media = Column(JSON)
    store_logo = Column(JSON)
    onboarding_dates = Column(JSON)
    payment_processors = Column(JSON)
    payment_links = Column(JSON)
    sales_rep_assignments = Column(JSON)

    # Contract and dates (ISO strings)
    contract_signed = Column(Boolean, default=False)
    contract_signed_date = Column(String)
    installation_date = Column(String)
    go_live_date = Column(String)

    # Deal and commission
    non_recurring_revenue = Column(Numeric(15, 2), default=0)
    monthly_recurring_fee = Column(Numeric(15, 2), default=0)
    other_fees = Column(Numeric(15, 2), default=0)
    deal_amount = Column(Numeric(15, 2))
    cogs = Column(Numeric(15, 2), default=0)
    commission_rate = Column(Numeric(5, 2), default=10)
    payment_term_months = Column(Integer, default=48)

    # Payment tracking
    payment_status = Column(String, default="unpaid")  # unpaid, paid_partial, paid_in_full
    paid_to_date_amount = Column(Numeric(15, 2), default=0)
    commission_paid_amount = Column(Numeric(15, 2), default=0)
    paid_date = Column(String)

    # Metadata
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    machines = relationship("Machine", cascade="all, delete-orphan", order_by="Machine.id")
    employees = relationship("Employee", cascade="all, delete-orphan", order_by="Employee.id")
    notes = relationship("CustomerNote", cascade="all, delete-orphan",
                         order_by="CustomerNote.created_at.desc()")


class CustomerNote(Base):
    __tablename__ = "customer_notes"

    id = Column(String, primary_key=True, index=True)
    customer_id = Column(String, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_by_name = Column(String)
    updated_by_name = Column(String)
    is_edited = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True))
