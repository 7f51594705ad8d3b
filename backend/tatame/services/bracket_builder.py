"""
Bracket Builder: single-elimination match tree from a slot map.

Round 1 pairs slots (1,2), (3,4), ... and resolves byes. Later rounds are
empty placeholders (slot_a = slot_b = 0) so previews show the full tree;
their pairings depend on round-1 results and are not computed here.

Pure and deterministic: the same arguments always give equal output.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"


@dataclass(frozen=True)
class SlotAthlete:
    id: int
    name: str


@dataclass
class BracketMatch:
    id: str
    event_id: int
    category_id: int
    round: int
    match_no: int
    slot_a: int
    slot_b: int
    athlete_a_id: Optional[int] = None
    athlete_b_id: Optional[int] = None
    winner_id: Optional[int] = None
    is_bye: bool = False
    status: str = STATUS_PENDING
    is_preview: bool = False
    athlete_a_name: Optional[str] = None
    athlete_b_name: Optional[str] = None


def total_rounds(capacity: int) -> int:
    if capacity < 2 or capacity & (capacity - 1):
        raise ValueError(f"bracket capacity must be a power of two >= 2, got {capacity}")
    return capacity.bit_length() - 1


def bracket_shape(capacity: int) -> List[int]:
    """Match count per round: bracket_shape(8) == [4, 2, 1]."""
    return [capacity >> round_no for round_no in range(1, total_rounds(capacity) + 1)]


def build_bracket(
    capacity: int,
    slot_to_athlete: Mapping[int, SlotAthlete],
    event_id: int,
    category_id: int,
    is_preview: bool = False,
) -> List[BracketMatch]:
    """
    Build every match of a single-elimination bracket.

    Args:
        capacity: bracket size, a power of two >= 2
        slot_to_athlete: slot number -> athlete; slots beyond capacity are ignored
        event_id, category_id: copied onto every match
        is_preview: marks matches as belonging to an unpersisted preview

    Returns:
        capacity - 1 matches, round 1 first in slot order, match_no 1..capacity-1

    Raises:
        ValueError: capacity is not a power of two >= 2
    """
    rounds = total_rounds(capacity)
    matches: List[BracketMatch] = []
    match_no = 1

    for slot_a in range(1, capacity + 1, 2):
        slot_b = slot_a + 1
        athlete_a = slot_to_athlete.get(slot_a)
        athlete_b = slot_to_athlete.get(slot_b)

        # Bye only when exactly one side is filled; an empty pair stays pending
        is_bye = (athlete_a is None) != (athlete_b is None)
        winner = (athlete_a or athlete_b) if is_bye else None

        matches.append(
            BracketMatch(
                id=f"preview-{match_no}",
                event_id=event_id,
                category_id=category_id,
                round=1,
                match_no=match_no,
                slot_a=slot_a,
                slot_b=slot_b,
                athlete_a_id=athlete_a.id if athlete_a else None,
                athlete_b_id=athlete_b.id if athlete_b else None,
                winner_id=winner.id if winner else None,
                is_bye=is_bye,
                status=STATUS_COMPLETED if is_bye else STATUS_PENDING,
                is_preview=is_preview,
                athlete_a_name=athlete_a.name if athlete_a else None,
                athlete_b_name=athlete_b.name if athlete_b else None,
            )
        )
        match_no += 1

    for round_no in range(2, rounds + 1):
        for index in range(1, (capacity >> round_no) + 1):
            matches.append(
                BracketMatch(
                    id=f"preview-r{round_no}-{index}",
                    event_id=event_id,
                    category_id=category_id,
                    round=round_no,
                    match_no=match_no,
                    slot_a=0,
                    slot_b=0,
                    is_preview=is_preview,
                )
            )
            match_no += 1

    return matches
