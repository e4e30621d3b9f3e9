"""
Machine numbering rules.

Washers take numbers 1-99 and dryers 101-199 (100 stays reserved); any other
type is numbered from 201 upwards. The rules are applied whenever machines
are written.
"""

from typing import Iterable, List, Optional, Set

from bossboarding.exceptions import InvalidRequestError
from bossboarding.schemas.customer import Machine

MACHINE_RANGES = {
    "washer": (1, 99),
    "dryer": (101, 199),
}
OTHER_START = 201


def normalize_type(machine_type: Optional[str]) -> str:
    value = (machine_type or "").strip().lower()
    return value if value in MACHINE_RANGES else (value or "other")


def in_range(machine_type: str, number: int) -> bool:
    machine_type = normalize_type(machine_type)
    if machine_type in MACHINE_RANGES:
        low, high = MACHINE_RANGES[machine_type]
        return low <= number <= high
    return number >= OTHER_START


def _first_free(machine_type: str, used: Set[int]) -> Optional[int]:
    machine_type = normalize_type(machine_type)
    if machine_type in MACHINE_RANGES:
        low, high = MACHINE_RANGES[machine_type]
        for number in range(low, high + 1):
            if number not in used:
                return number
        return None

    number = OTHER_START
    while number in used:
        number += 1
    return number


def next_machine_number(machine_type: str, machines: Iterable[Machine]) -> Optional[int]:
    """First unused number in the type's range, or None when the range is full."""
    used = {m.machine_number for m in machines}
    return _first_free(machine_type, used)


def clone_machine(source: Machine, machines: Iterable[Machine], count: int = 1) -> List[Machine]:
    """
    Copies of ``source`` numbered with the next free numbers of its type.

    The serial number is cleared on every copy. Fewer than ``count`` copies
    are returned when the range runs out.
    """
    used = {m.machine_number for m in machines}
    clones = []
    for _ in range(count):
        number = _first_free(source.type, used)
        if number is None:
            break
        used.add(number)
        clones.append(source.model_copy(update={
            "id": None,
            "machine_number": number,
            "serial_number": "",
        }))
    return clones


def assign_machine_numbers(machines: Iterable[Machine]) -> List[Machine]:
    """
    Normalize numbering before a bulk save.

    A machine keeps its number when it is inside its type's range and not
    already taken earlier in the list; the rest get the first free numbers
    once every kept number is reserved.
    """
    machines = list(machines)
    used: Set[int] = set()
    kept: List[Optional[int]] = []
    for machine in machines:
        number = machine.machine_number or 0
        if in_range(machine.type, number) and number not in used:
            used.add(number)
            kept.append(number)
        else:
            kept.append(None)

    numbered = []
    for machine, number in zip(machines, kept):
        machine_type = normalize_type(machine.type)
        if number is None:
            number = _first_free(machine_type, used)
            if number is None:
                low, high = MACHINE_RANGES[machine_type]
                raise InvalidRequestError(f"No free {machine_type} numbers left in {low}-{high}")
            used.add(number)
        numbered.append(machine.model_copy(update={"machine_number": number, "type": machine_type}))
    return numbered
