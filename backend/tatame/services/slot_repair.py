"""
Slot Repair Engine: assign seed positions to paid registrations.

Pure functions, no I/O. Seeding is first-come-first-served:
unseeded registrations are processed oldest first (created_at, then id)
and each takes the lowest free slot index, scanning 1..capacity ascending.
The result depends only on the input set, so rerunning a repair after a
partial failure yields the same assignments.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Set

from tatame.config import DEFAULT_BRACKET_CAPACITY


@dataclass(frozen=True)
class SlotCandidate:
    id: int
    bracket_slot: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class SlotAssignment:
    id: int
    new_slot: int


@dataclass
class SlotRepairResult:
    assignments: List[SlotAssignment] = field(default_factory=list)
    new_capacity: int = DEFAULT_BRACKET_CAPACITY

    def slot_for(self, registration_id: int) -> Optional[int]:
        for assignment in self.assignments:
            if assignment.id == registration_id:
                return assignment.new_slot
        return None


def is_power_of_two(n: int) -> bool:
    return n >= 2 and (n & (n - 1)) == 0


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (never below 2)."""
    if n <= 2:
        return 2
    return 1 << (n - 1).bit_length()


def normalize_capacity(capacity: Optional[int], default: int = DEFAULT_BRACKET_CAPACITY) -> int:
    """Unset or degenerate capacities fall back to the default; others round up to a power of two."""
    if capacity is None or capacity < 2:
        return next_power_of_two(default)
    return next_power_of_two(capacity)


def needs_slot_repair(slots: Sequence[Optional[int]], capacity: Optional[int]) -> bool:
    """True if any slot is missing, out of range, or shared by two registrations."""
    limit = normalize_capacity(capacity)
    seen: Set[int] = set()
    for slot in slots:
        if slot is None or slot < 1 or slot > limit or slot in seen:
            return True
        seen.add(slot)
    return False


def repair_slots(
    registrations: Sequence[SlotCandidate],
    current_capacity: Optional[int],
) -> SlotRepairResult:
    """
    Compute slot assignments for unseeded registrations.

    Args:
        registrations: every paid registration of one (event, category)
        current_capacity: the category's bracket capacity

    Returns:
        SlotRepairResult with one assignment per registration that needs a
        slot, and the capacity that holds everyone. Capacity never shrinks;
        when it grows it becomes the smallest power of two >= the number of
        registrations (or >= the highest seeded slot for legacy data).

    A seeded slot below 1, or a slot already claimed by an older
    registration, is treated as unseeded and reassigned.
    """
    if not registrations:
        return SlotRepairResult(assignments=[], new_capacity=normalize_capacity(current_capacity))

    ordered = sorted(registrations, key=lambda r: (r.created_at, r.id))

    occupied: Set[int] = set()
    unseeded: List[SlotCandidate] = []
    for reg in ordered:
        slot = reg.bracket_slot
        if slot is None or slot < 1 or slot in occupied:
            unseeded.append(reg)
        else:
            occupied.add(slot)

    capacity = normalize_capacity(current_capacity)
    required = max(len(ordered), max(occupied, default=0))
    if required > capacity:
        capacity = next_power_of_two(required)
    new_capacity = capacity

    free_slots = (slot for slot in range(1, new_capacity + 1) if slot not in occupied)
    assignments = [SlotAssignment(id=reg.id, new_slot=next(free_slots)) for reg in unseeded]

    return SlotRepairResult(assignments=assignments, new_capacity=new_capacity)
