"""Pytest configuration and fixtures."""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SKIP_DB_INIT", "true")
os.environ.setdefault("CUSTOMER_STORE", "sql")

import pytest
from fastapi.testclient import TestClient

from bossboarding.database import Base, SessionLocal, get_engine, init_models
from bossboarding.main import app
from bossboarding.models.auth import AdminUser
from bossboarding.repositories.auth_repo import AdminUserRepository
from bossboarding.repositories.customer_store import MemoryCustomerStore, SqlCustomerStore, build_store_factory
from bossboarding.schemas.customer import CustomerCreate, SalesRepAssignment
from bossboarding.services import customer_service
from bossboarding.utils.security import create_access_token


@pytest.fixture
def db_session():
    """Fresh schema per test on the shared in-memory database."""
    init_models()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=get_engine())


@pytest.fixture
def client(db_session) -> TestClient:
    app.state.store_factory = build_store_factory("sql")
    return TestClient(app)


@pytest.fixture
def sql_store(db_session) -> SqlCustomerStore:
    return SqlCustomerStore(db_session)


@pytest.fixture
def memory_store() -> MemoryCustomerStore:
    return MemoryCustomerStore()


@pytest.fixture
def admin_user(db_session) -> AdminUser:
    return AdminUserRepository(db_session).create(
        email="ops@laundryboss.com",
        password="admin-password",
        name="Ops Admin",
        role="admin",
    )


@pytest.fixture
def admin_headers(admin_user) -> dict:
    token = create_access_token(data={"sub": admin_user.id, "kind": "admin", "role": admin_user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(sql_store):
    """A new customer with one sales rep on a 10k deal."""
    return customer_service.create_customer(sql_store, CustomerCreate(
        business_name="Suds City Laundromat",
        owner_name="Dana Reyes",
        email="dana@sudscity.com",
        phone="555-0100",
        deal_amount=10000,
        commission_rate=10,
        sales_rep_assignments=[SalesRepAssignment(sales_rep_id="sr1", commission_percent=50)],
    ))
