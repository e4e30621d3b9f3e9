"""
Customer repository with two interchangeable backends.

``SqlCustomerStore`` persists through SQLAlchemy; ``MemoryCustomerStore`` keeps
aggregates in process memory (local development, demos, tests). The backend is
chosen once at startup by ``build_store_factory`` and handed to request
handlers through ``app.state``; call sites never branch on the backend.
"""

import copy
import logging
import secrets
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from bossboarding.exceptions import NotFoundError
from bossboarding.models.customer import Customer as CustomerRow, CustomerNote as NoteRow
from bossboarding.schemas.customer import Customer, CustomerNote, Employee, Machine
from bossboarding.transforms import (
    customer_from_row,
    customer_to_columns,
    customer_to_row,
    employee_to_row,
    machine_to_row,
    note_from_row,
    note_to_row,
)

logger = logging.getLogger(__name__)


def new_note_id() -> str:
    return f"note_{secrets.token_hex(8)}"


def new_note(content: str, created_by: str) -> CustomerNote:
    return CustomerNote(
        id=new_note_id(),
        content=content,
        created_by=created_by,
        created_at=datetime.now(timezone.utc),
    )


class CustomerStore(ABC):
    backend = ""

    @abstractmethod
    def list_customers(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Customer]:
        """All customers, newest first, optionally filtered."""

    @abstractmethod
    def find(self, customer_id: str) -> Optional[Customer]:
        """Customer by id, or None."""

    @abstractmethod
    def get_by_token(self, token: str) -> Optional[Customer]:
        """Customer owning an onboarding token, or None."""

    @abstractmethod
    def create(self, customer: Customer) -> Customer:
        """Insert a new aggregate including its machines and employees."""

    @abstractmethod
    def update(
        self,
        customer_id: str,
        updates: Dict,
        machines: Optional[List[Machine]] = None,
        employees: Optional[List[Employee]] = None,
    ) -> Customer:
        """
        Apply field updates and optionally replace the machine/employee sets.

        All changes are applied atomically. ``None`` for a collection leaves
        it untouched; an empty list clears it.
        """

    @abstractmethod
    def delete(self, customer_id: str) -> bool:
        """Remove a customer and its children. False when it did not exist."""

    @abstractmethod
    def add_note(self, customer_id: str, content: str, created_by: str) -> CustomerNote:
        pass

    @abstractmethod
    def update_note(self, customer_id: str, note_id: str, content: str, updated_by: str) -> CustomerNote:
        pass

    @abstractmethod
    def delete_note(self, customer_id: str, note_id: str) -> bool:
        pass

    def get(self, customer_id: str) -> Customer:
        customer = self.find(customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    def token_exists(self, token: str) -> bool:
        return self.get_by_token(token) is not None


class SqlCustomerStore(CustomerStore):
    backend = "sql"

    def __init__(self, db: Session):
        self.db = db

    def _row(self, customer_id: str) -> CustomerRow:
        row = self.db.query(CustomerRow).filter(CustomerRow.id == customer_id).first()
        if row is None:
            raise NotFoundError("Customer not found")
        return row

    def list_customers(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Customer]:
        query = self.db.query(CustomerRow)

        if status:
            query = query.filter(CustomerRow.status == status)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                CustomerRow.business_name.ilike(search_term) |
                CustomerRow.owner_name.ilike(search_term) |
                CustomerRow.email.ilike(search_term)
            )

        rows = query.order_by(CustomerRow.created_at.desc()).all()
        return [customer_from_row(row) for row in rows]

    def find(self, customer_id: str) -> Optional[Customer]:
        row = self.db.query(CustomerRow).filter(CustomerRow.id == customer_id).first()
        return customer_from_row(row) if row else None

    def get_by_token(self, token: str) -> Optional[Customer]:
        row = self.db.query(CustomerRow).filter(CustomerRow.onboarding_token == token).first()
        return customer_from_row(row) if row else None

    def create(self, customer: Customer) -> Customer:
        row = customer_to_row(customer)
        row.machines = [machine_to_row(customer.id, m) for m in customer.machines]
        row.employees = [employee_to_row(customer.id, e) for e in customer.employees]
        try:
            self.db.add(row)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(row)
        return customer_from_row(row)

    def update(
        self,
        customer_id: str,
        updates: Dict,
        machines: Optional[List[Machine]] = None,
        employees: Optional[List[Employee]] = None,
    ) -> Customer:
        row = self._row(customer_id)
        try:
            for column, value in customer_to_columns(updates).items():
                setattr(row, column, value)

            # Replacing the collection deletes the old rows (delete-orphan)
            # inside the same transaction as the inserts.
            if machines is not None:
                row.machines = [machine_to_row(customer_id, m) for m in machines]
            if employees is not None:
                row.employees = [employee_to_row(customer_id, e) for e in employees]

            row.updated_at = datetime.now(timezone.utc)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(row)
        return customer_from_row(row)

    def delete(self, customer_id: str) -> bool:
        row = self.db.query(CustomerRow).filter(CustomerRow.id == customer_id).first()
        if not row:
            return False

        self.db.delete(row)
        self.db.commit()
        return True

    def _note_row(self, customer_id: str, note_id: str) -> NoteRow:
        row = self.db.query(NoteRow).filter(
            NoteRow.id == note_id,
            NoteRow.customer_id == customer_id,
        ).first()
        if row is None:
            raise NotFoundError("Note not found")
        return row

    def add_note(self, customer_id: str, content: str, created_by: str) -> CustomerNote:
        self._row(customer_id)
        row = note_to_row(customer_id, new_note(content, created_by))
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return note_from_row(row)

    def update_note(self, customer_id: str, note_id: str, content: str, updated_by: str) -> CustomerNote:
        row = self._note_row(customer_id, note_id)
        row.content = content
        row.updated_by_name = updated_by
        row.updated_at = datetime.now(timezone.utc)
        row.is_edited = True
        self.db.commit()
        self.db.refresh(row)
        return note_from_row(row)

    def delete_note(self, customer_id: str, note_id: str) -> bool:
        row = self.db.query(NoteRow).filter(
            NoteRow.id == note_id,
            NoteRow.customer_id == customer_id,
        ).first()
        if not row:
            return False

        self.db.delete(row)
        self.db.commit()
        return True


class MemoryCustomerStore(CustomerStore):
    backend = "memory"

    def __init__(self):
        self._customers: Dict[str, Customer] = {}
        self._lock = threading.Lock()
        self._next_child_id = 1

    def _copy(self, customer: Customer) -> Customer:
        return customer.model_copy(deep=True)

    def _stamp_ids(self, items):
        stamped = []
        for item in items:
            stamped.append(item.model_copy(update={"id": str(self._next_child_id)}))
            self._next_child_id += 1
        return stamped

    def list_customers(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Customer]:
        with self._lock:
            customers = list(self._customers.values())

        if status:
            customers = [c for c in customers if c.status == status]

        if search:
            term = search.lower()
            customers = [
                c for c in customers
                if term in (c.business_name or "").lower()
                or term in (c.owner_name or "").lower()
                or term in (c.email or "").lower()
            ]

        epoch = datetime.min.replace(tzinfo=timezone.utc)
        customers.sort(key=lambda c: c.created_at or epoch, reverse=True)
        return [self._copy(c) for c in customers]

    def find(self, customer_id: str) -> Optional[Customer]:
        with self._lock:
            customer = self._customers.get(customer_id)
            return self._copy(customer) if customer else None

    def get_by_token(self, token: str) -> Optional[Customer]:
        with self._lock:
            for customer in self._customers.values():
                if customer.onboarding_token == token:
                    return self._copy(customer)
        return None

    def create(self, customer: Customer) -> Customer:
        now = datetime.now(timezone.utc)
        with self._lock:
            stored = customer.model_copy(deep=True, update={
                "machines": self._stamp_ids(customer.machines),
                "employees": self._stamp_ids(customer.employees),
                "created_at": customer.created_at or now,
                "updated_at": now,
            })
            self._customers[stored.id] = stored
            return self._copy(stored)

    def update(
        self,
        customer_id: str,
        updates: Dict,
        machines: Optional[List[Machine]] = None,
        employees: Optional[List[Employee]] = None,
    ) -> Customer:
        with self._lock:
            current = self._customers.get(customer_id)
            if current is None:
                raise NotFoundError("Customer not found")

            data = current.model_dump()
            for field, value in updates.items():
                if field in ("id", "machines", "employees", "notes", "created_at", "updated_at"):
                    continue
                data[field] = copy.deepcopy(value)
            if machines is not None:
                data["machines"] = self._stamp_ids(machines)
            if employees is not None:
                data["employees"] = self._stamp_ids(employees)
            data["updated_at"] = datetime.now(timezone.utc)

            # Validate the whole aggregate before swapping it in
            updated = Customer.model_validate(data)
            self._customers[customer_id] = updated
            return self._copy(updated)

    def delete(self, customer_id: str) -> bool:
        with self._lock:
            return self._customers.pop(customer_id, None) is not None

    def add_note(self, customer_id: str, content: str, created_by: str) -> CustomerNote:
        with self._lock:
            customer = self._customers.get(customer_id)
            if customer is None:
                raise NotFoundError("Customer not found")
            note = new_note(content, created_by)
            customer.notes.insert(0, note)
            return note.model_copy()

    def update_note(self, customer_id: str, note_id: str, content: str, updated_by: str) -> CustomerNote:
        with self._lock:
            customer = self._customers.get(customer_id)
            if customer is None:
                raise NotFoundError("Customer not found")
            for i, note in enumerate(customer.notes):
                if note.id == note_id:
                    edited = note.model_copy(update={
                        "content": content,
                        "updated_by": updated_by,
                        "updated_at": datetime.now(timezone.utc),
                        "is_edited": True,
                    })
                    customer.notes[i] = edited
                    return edited.model_copy()
        raise NotFoundError("Note not found")

    def delete_note(self, customer_id: str, note_id: str) -> bool:
        with self._lock:
            customer = self._customers.get(customer_id)
            if customer is None:
                return False
            remaining = [n for n in customer.notes if n.id != note_id]
            deleted = len(remaining) != len(customer.notes)
            customer.notes = remaining
            return deleted


StoreFactory = Callable[[Session], CustomerStore]


def build_store_factory(backend: str) -> StoreFactory:
    """Pick the customer store backend once, at application startup."""
    backend = (backend or "sql").lower()
    if backend == "memory":
        store = MemoryCustomerStore()
        logger.info("Customer store: in-memory backend")
        return lambda db: store
    if backend == "sql":
        logger.info("Customer store: SQL backend")
        return SqlCustomerStore
    raise ValueError(f"Unknown CUSTOMER_STORE backend: {backend!r}")
