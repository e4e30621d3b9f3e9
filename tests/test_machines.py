"""Tests for machine numbering and cloning."""

import pytest

from bossboarding.exceptions import InvalidRequestError
from bossboarding.onboarding.machines import (
    assign_machine_numbers,
    clone_machine,
    in_range,
    next_machine_number,
)
from bossboarding.schemas.customer import Machine


def washer(number: int, **kwargs) -> Machine:
    return Machine(machine_number=number, type="washer", make="Speed Queen", model="SC40", **kwargs)


def dryer(number: int, **kwargs) -> Machine:
    return Machine(machine_number=number, type="dryer", make="Dexter", model="T30", **kwargs)


class TestRanges:
    @pytest.mark.parametrize("machine_type,number,expected", [
        ("washer", 1, True),
        ("washer", 99, True),
        ("washer", 100, False),
        ("dryer", 101, True),
        ("dryer", 199, True),
        ("dryer", 50, False),
        ("other", 201, True),
        ("other", 150, False),
    ])
    def test_in_range(self, machine_type: str, number: int, expected: bool) -> None:
        assert in_range(machine_type, number) is expected

    def test_next_number_fills_gaps(self) -> None:
        machines = [washer(1), washer(2), washer(4), dryer(101)]
        assert next_machine_number("washer", machines) == 3
        assert next_machine_number("dryer", machines) == 102
        assert next_machine_number("other", machines) == 201

    def test_full_range_has_no_next_number(self) -> None:
        machines = [washer(n) for n in range(1, 100)]
        assert next_machine_number("washer", machines) is None


class TestClone:
    def test_clone_takes_next_free_number_and_clears_serial(self) -> None:
        machines = [washer(n, serial_number=f"SN{n}") for n in range(1, 6)]
        clones = clone_machine(machines[0], machines)

        assert len(clones) == 1
        assert clones[0].machine_number == 6
        assert clones[0].serial_number == ""
        assert clones[0].make == "Speed Queen"
        assert clones[0].id is None

    def test_clone_many_dryers(self) -> None:
        machines = [dryer(101), dryer(103)]
        clones = clone_machine(machines[0], machines, count=3)
        assert [c.machine_number for c in clones] == [102, 104, 105]

    def test_clone_stops_when_range_is_full(self) -> None:
        machines = [washer(n) for n in range(1, 99)]
        clones = clone_machine(machines[0], machines, count=5)
        assert [c.machine_number for c in clones] == [99]


class TestAssignNumbers:
    def test_valid_numbers_are_kept(self) -> None:
        numbered = assign_machine_numbers([washer(7), dryer(150)])
        assert [m.machine_number for m in numbered] == [7, 150]

    def test_out_of_range_and_duplicates_are_renumbered(self) -> None:
        numbered = assign_machine_numbers([washer(1), washer(1), dryer(5), washer(120)])
        assert [m.machine_number for m in numbered] == [1, 2, 101, 3]

    def test_renumbering_respects_later_kept_numbers(self) -> None:
        numbered = assign_machine_numbers([washer(0), washer(1)])
        assert [m.machine_number for m in numbered] == [2, 1]

    def test_type_is_normalized(self) -> None:
        numbered = assign_machine_numbers([Machine(machine_number=0, type="Washer")])
        assert numbered[0].type == "washer"
        assert numbered[0].machine_number == 1

    def test_exhausted_range_raises(self) -> None:
        machines = [washer(n) for n in range(1, 100)] + [washer(0)]
        with pytest.raises(InvalidRequestError):
            assign_machine_numbers(machines)
