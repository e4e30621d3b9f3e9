"""
Row <-> domain conversion, one pair of functions per entity.

Rows are the SQLAlchemy models (snake_case columns, Numeric money, JSON
blocks); the domain side is the pydantic aggregate in
``bossboarding.schemas.customer`` that serializes as camelCase.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from bossboarding.models.customer import Customer as CustomerRow, CustomerNote as NoteRow
from bossboarding.models.employee import Employee as EmployeeRow
from bossboarding.models.machine import Machine as MachineRow
from bossboarding.schemas.customer import Customer, CustomerNote, Employee, Machine

MONEY_FIELDS = (
    "non_recurring_revenue", "monthly_recurring_fee", "other_fees", "deal_amount", "cogs",
    "commission_rate", "paid_to_date_amount", "commission_paid_amount",
)

JSON_FIELDS = (
    "sections", "saved_onboarding_data", "task_statuses", "task_metadata",
    "location_info", "shipping_info", "kiosk_info", "pci_compliance", "merchant_account",
    "billing_info", "dashboard_credentials", "store_media", "store_logo", "onboarding_dates",
    "payment_processors", "payment_links", "sales_rep_assignments",
)

SCALAR_FIELDS = (
    "business_name", "owner_name", "email", "phone", "status", "onboarding_token",
    "onboarding_started", "onboarding_completed", "current_step", "total_steps",
    "current_stage_id", "assigned_to", "contract_signed", "contract_signed_date",
    "installation_date", "go_live_date", "payment_term_months", "payment_status", "paid_date",
)

LIST_DEFAULTS = ("sections", "store_media", "payment_processors", "payment_links", "sales_rep_assignments")
DICT_DEFAULTS = ("task_statuses", "task_metadata")


def _to_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _parse_machine_number(value: Optional[str]) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def machine_from_row(row: MachineRow) -> Machine:
    return Machine(
        id=str(row.id) if row.id is not None else None,
        machine_number=_parse_machine_number(row.machine_id),
        type=row.type or "other",
        make=row.manufacturer or "",
        model=row.model or "",
        serial_number=row.serial_number or "",
        coins_accepted=row.coins_accepted or "quarter",
        pricing=row.pricing or {},
        capacity=row.capacity,
        price=_to_float(row.price),
        status=row.status or "active",
        location_in_store=row.location_in_store,
        after_market_upgrades=row.after_market_upgrades,
        notes=row.notes,
    )


def machine_to_row(customer_id: str, machine: Machine) -> MachineRow:
    return MachineRow(
        customer_id=customer_id,
        machine_id=str(machine.machine_number),
        type=machine.type or "other",
        manufacturer=machine.make or None,
        model=machine.model or None,
        serial_number=machine.serial_number or None,
        coins_accepted=machine.coins_accepted,
        pricing=dict(machine.pricing),
        capacity=machine.capacity,
        price=machine.price,
        status=machine.status or "active",
        location_in_store=machine.location_in_store,
        after_market_upgrades=machine.after_market_upgrades,
        notes=machine.notes,
    )


def employee_from_row(row: EmployeeRow) -> Employee:
    return Employee(
        id=str(row.id) if row.id is not None else None,
        name=row.name,
        email=row.email,
        phone=row.phone,
        role=row.role or "staff",
        pin=row.pin,
        privilege_level=row.privilege_level or "employee",
        is_active=row.is_active is not False,
    )


def employee_to_row(customer_id: str, employee: Employee) -> EmployeeRow:
    return EmployeeRow(
        customer_id=customer_id,
        name=employee.name,
        email=employee.email or None,
        phone=employee.phone or None,
        role=employee.role or "staff",
        pin=employee.pin or None,
        privilege_level=employee.privilege_level,
        is_active=employee.is_active,
    )


def note_from_row(row: NoteRow) -> CustomerNote:
    return CustomerNote(
        id=row.id,
        content=row.content,
        created_by=row.created_by_name or "Unknown",
        created_at=row.created_at,
        updated_by=row.updated_by_name,
        updated_at=row.updated_at,
        is_edited=bool(row.is_edited),
    )


def note_to_row(customer_id: str, note: CustomerNote) -> NoteRow:
    return NoteRow(
        id=note.id,
        customer_id=customer_id,
        content=note.content,
        created_by_name=note.created_by,
        created_at=note.created_at,
        updated_by_name=note.updated_by,
        updated_at=note.updated_at,
        is_edited=note.is_edited,
    )


def customer_from_row(row: CustomerRow) -> Customer:
    """Build the full aggregate, children included, from a customer row."""
    data: Dict[str, Any] = {"id": row.id}
    for field in SCALAR_FIELDS:
        value = getattr(row, field)
        if value is not None:
            data[field] = value
    for field in JSON_FIELDS:
        value = getattr(row, field)
        if value is not None:
            data[field] = value
    for field in MONEY_FIELDS:
        value = _to_float(getattr(row, field))
        if value is not None:
            data[field] = value

    data["machines"] = [machine_from_row(m) for m in row.machines]
    data["employees"] = [employee_from_row(e) for e in row.employees]
    data["notes"] = [note_from_row(n) for n in row.notes]
    data["created_at"] = row.created_at
    data["updated_at"] = row.updated_at
    return Customer.model_validate(data)


def customer_to_columns(updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map domain field updates (snake_case keys, pydantic values) to column values.

    Child collections and notes are not columns and are skipped.
    """
    columns = {}
    for field, value in updates.items():
        if field in ("id", "machines", "employees", "notes", "created_at", "updated_at"):
            continue
        if field in JSON_FIELDS:
            if hasattr(value, "model_dump"):
                value = value.model_dump(by_alias=True, mode="json")
            elif isinstance(value, list):
                value = [v.model_dump(by_alias=True, mode="json") if hasattr(v, "model_dump") else v for v in value]
            elif isinstance(value, dict):
                value = {k: v.model_dump(by_alias=True, mode="json") if hasattr(v, "model_dump") else v
                         for k, v in value.items()}
            columns[field] = value
        elif field in MONEY_FIELDS or field in SCALAR_FIELDS:
            columns[field] = value
    return columns


def customer_to_row(customer: Customer) -> CustomerRow:
    row = CustomerRow(id=customer.id)
    fields = {field: getattr(customer, field) for field in SCALAR_FIELDS + JSON_FIELDS + MONEY_FIELDS}
    for field, value in customer_to_columns(fields).items():
        setattr(row, field, value)
    return row
