"""Tests for the customer store backends."""

import pytest

from bossboarding.exceptions import NotFoundError
from bossboarding.repositories.customer_store import MemoryCustomerStore, SqlCustomerStore, build_store_factory
from bossboarding.schemas.customer import CustomerCreate, Employee, Machine
from bossboarding.services import customer_service


@pytest.fixture(params=["sql", "memory"])
def store(request, db_session):
    if request.param == "sql":
        return SqlCustomerStore(db_session)
    return MemoryCustomerStore()


def create(store, name: str = "Suds City", **kwargs):
    return customer_service.create_customer(store, CustomerCreate(business_name=name, **kwargs))


class TestCreateAndRead:
    def test_new_customer_defaults(self, store) -> None:
        customer = create(store, email="dana@sudscity.com")

        assert customer.status == "not_started"
        assert len(customer.onboarding_token) == 8
        assert customer.current_stage_id == "contract_setup"
        assert len(customer.sections) == customer.total_steps == 11
        assert set(customer.task_statuses.values()) == {"not_started"}
        assert customer.payment_processors[0]["type"] == "paystri"
        assert customer.onboarding_dates.start_date

    def test_find_and_token_lookup(self, store) -> None:
        customer = create(store)
        assert store.find(customer.id).business_name == "Suds City"
        assert store.get_by_token(customer.onboarding_token).id == customer.id
        assert store.get_by_token("missing") is None
        assert store.find("missing") is None

    def test_get_missing_raises(self, store) -> None:
        with pytest.raises(NotFoundError):
            store.get("missing")

    def test_list_filters_by_status_and_search(self, store) -> None:
        first = create(store, "Bubbles Wash")
        create(store, "Clean Spin", owner_name="Pat Bubbleman")
        store.update(first.id, {"status": "in_progress"})

        assert [c.business_name for c in store.list_customers(status="in_progress")] == ["Bubbles Wash"]
        assert len(store.list_customers(search="bubble")) == 2
        assert store.list_customers(search="nothing here") == []


class TestUpdate:
    def test_partial_update_keeps_other_fields(self, store) -> None:
        customer = create(store, email="dana@sudscity.com", deal_amount=12000)
        updated = store.update(customer.id, {"phone": "555-0199"})

        assert updated.phone == "555-0199"
        assert updated.email == "dana@sudscity.com"
        assert updated.deal_amount == 12000

    def test_nested_blocks_round_trip(self, store) -> None:
        customer = create(store)
        updated = store.update(customer.id, {
            "location_info": {"commonName": "Main St", "city": "Austin", "holidaysClosed": ["Dec 25"]},
        })
        assert updated.location_info.common_name == "Main St"
        assert updated.location_info.holidays_closed == ["Dec 25"]

    def test_machines_and_employees_are_replaced(self, store) -> None:
        customer = create(store)
        store.update(customer.id, {}, machines=[
            Machine(machine_number=1, type="washer", make="Speed Queen", model="SC40"),
            Machine(machine_number=101, type="dryer", make="Dexter", model="T30"),
        ], employees=[Employee(name="Sam", pin="1234")])

        updated = store.update(customer.id, {}, machines=[
            Machine(machine_number=2, type="washer", make="Huebsch", model="HC20"),
        ])

        assert [(m.machine_number, m.make) for m in updated.machines] == [(2, "Huebsch")]
        assert [e.name for e in updated.employees] == ["Sam"]
        assert updated.machines[0].id is not None

    def test_update_missing_customer_raises(self, store) -> None:
        with pytest.raises(NotFoundError):
            store.update("missing", {"phone": "1"})

    def test_delete(self, store) -> None:
        customer = create(store)
        assert store.delete(customer.id)
        assert store.find(customer.id) is None
        assert not store.delete(customer.id)


class TestNotes:
    def test_note_lifecycle(self, store) -> None:
        customer = create(store)
        note = store.add_note(customer.id, "Called the owner", "Ops Admin")
        assert note.created_by == "Ops Admin"
        assert not note.is_edited

        edited = store.update_note(customer.id, note.id, "Called the owner twice", "Jim Law")
        assert edited.is_edited
        assert edited.updated_by == "Jim Law"
        assert [n.content for n in store.get(customer.id).notes] == ["Called the owner twice"]

        assert store.delete_note(customer.id, note.id)
        assert store.get(customer.id).notes == []

    def test_update_missing_note_raises(self, store) -> None:
        customer = create(store)
        with pytest.raises(NotFoundError):
            store.update_note(customer.id, "missing", "text", "Ops Admin")


class TestStoreFactory:
    def test_memory_factory_shares_one_store(self) -> None:
        factory = build_store_factory("memory")
        assert factory(None) is factory(None)

    def test_sql_factory_binds_session(self, db_session) -> None:
        assert isinstance(build_store_factory("sql")(db_session), SqlCustomerStore)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            build_store_factory("redis")
