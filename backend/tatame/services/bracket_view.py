"""
Bracket View Service: what the organizer's bracket page shows.

Locked categories return their persisted round-1 matches. Unlocked
categories return a preview rebuilt on every call; missing slots are
repaired and committed first so repeated reads stay stable.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import aliased
from sqlmodel import Session, func, select

from tatame.config import BRACKET_REPAIR_MAX_ATTEMPTS
from tatame.models.match import Match
from tatame.models.profile import Profile
from tatame.models.registration import Registration, RegistrationStatus
from tatame.services.bracket_builder import BracketMatch, bracket_shape, build_bracket
from tatame.services.bracket_state import check_phase_consistency
from tatame.services.slot_persistence import effective_capacity, ensure_category_slots, slot_map
from tatame.utils.access_guards import list_event_categories, require_event_category, require_event_owner

logger = logging.getLogger(__name__)


@dataclass
class RegistrationSlot:
    bracket_slot: int
    athlete_id: int
    athlete_name: str


@dataclass
class BracketView:
    event_id: int
    category_id: int
    capacity: int
    is_locked: bool
    matches: List[BracketMatch]
    # None when locked: the frozen bracket is read from matches only
    registrations: Optional[List[RegistrationSlot]] = None


@dataclass
class CategoryBracketStatus:
    category_id: int
    name: str
    capacity: int
    is_locked: bool
    locked_at: Optional[datetime]
    paid_registrations: int
    unseeded_registrations: int
    persisted_matches: int
    expected_round_one_matches: int


@dataclass
class EventBracketStatus:
    event_id: int
    is_open_for_inscriptions: bool
    categories: List[CategoryBracketStatus] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def get_bracket(
    session: Session,
    event_id: int,
    category_id: int,
    caller: Optional[Profile],
    max_attempts: int = BRACKET_REPAIR_MAX_ATTEMPTS,
) -> BracketView:
    """
    Get the bracket of one category.

    Raises:
        BracketAccessDenied: caller does not own the event, or the category is not part of it
        SlotRepairConflict: concurrent repairs kept conflicting
    """
    require_event_owner(session, event_id, caller)
    category = require_event_category(session, event_id, category_id)

    if category.is_locked:
        return BracketView(
            event_id=event_id,
            category_id=category_id,
            capacity=effective_capacity(category),
            is_locked=True,
            matches=load_persisted_matches(session, event_id, category_id),
        )

    registrations = ensure_category_slots(session, event_id, category, max_attempts=max_attempts)
    capacity = effective_capacity(category)
    matches = build_bracket(capacity, slot_map(registrations), event_id, category_id, is_preview=True)

    seeded = sorted(
        (r for r in registrations if r.bracket_slot is not None),
        key=lambda r: r.bracket_slot,
    )
    return BracketView(
        event_id=event_id,
        category_id=category_id,
        capacity=capacity,
        is_locked=False,
        matches=matches,
        registrations=[
            RegistrationSlot(bracket_slot=r.bracket_slot, athlete_id=r.athlete_id, athlete_name=r.athlete_name)
            for r in seeded
        ],
    )


def load_persisted_matches(session: Session, event_id: int, category_id: int) -> List[BracketMatch]:
    """Persisted matches ordered by (round, match_no) with athlete names joined."""
    athlete_a = aliased(Profile)
    athlete_b = aliased(Profile)
    rows = session.exec(
        select(Match, athlete_a.name, athlete_b.name)
        .join(athlete_a, athlete_a.id == Match.athlete_a_id, isouter=True)
        .join(athlete_b, athlete_b.id == Match.athlete_b_id, isouter=True)
        .where(Match.event_id == event_id, Match.category_id == category_id)
        .order_by(Match.round, Match.match_no)
    ).all()

    return [
        BracketMatch(
            id=str(match.id),
            event_id=match.event_id,
            category_id=match.category_id,
            round=match.round,
            match_no=match.match_no,
            slot_a=match.slot_a,
            slot_b=match.slot_b,
            athlete_a_id=match.athlete_a_id,
            athlete_b_id=match.athlete_b_id,
            winner_id=match.winner_id,
            is_bye=match.is_bye,
            status=match.status,
            is_preview=False,
            athlete_a_name=(name_a or "") if match.athlete_a_id is not None else None,
            athlete_b_name=(name_b or "") if match.athlete_b_id is not None else None,
        )
        for match, name_a, name_b in rows
    ]


def get_bracket_status(session: Session, event_id: int, caller: Optional[Profile]) -> EventBracketStatus:
    """Per-category lock/seeding summary for an event. Read-only."""
    event = require_event_owner(session, event_id, caller)
    categories = list_event_categories(session, event_id)

    paid_counts: Dict[int, int] = {}
    unseeded_counts: Dict[int, int] = {}
    for category_id, slot in session.exec(
        select(Registration.category_id, Registration.bracket_slot).where(
            Registration.event_id == event_id, Registration.status == RegistrationStatus.paid.value
        )
    ).all():
        paid_counts[category_id] = paid_counts.get(category_id, 0) + 1
        if slot is None:
            unseeded_counts[category_id] = unseeded_counts.get(category_id, 0) + 1

    match_counts = dict(
        session.exec(
            select(Match.category_id, func.count(Match.id))
            .where(Match.event_id == event_id)
            .group_by(Match.category_id)
        ).all()
    )

    status = EventBracketStatus(
        event_id=event_id,
        is_open_for_inscriptions=event.is_open_for_inscriptions,
        warnings=check_phase_consistency(event, categories),
    )
    for category in categories:
        capacity = effective_capacity(category)
        persisted = match_counts.get(category.id, 0)
        status.categories.append(
            CategoryBracketStatus(
                category_id=category.id,
                name=category.name,
                capacity=capacity,
                is_locked=category.is_locked,
                locked_at=category.locked_at,
                paid_registrations=paid_counts.get(category.id, 0),
                unseeded_registrations=unseeded_counts.get(category.id, 0),
                persisted_matches=persisted,
                expected_round_one_matches=bracket_shape(capacity)[0],
            )
        )
        if category.is_locked and not persisted and paid_counts.get(category.id):
            status.warnings.append(f"Category {category.id} is locked but has no persisted bracket")

    if status.warnings:
        logger.warning("Event %d bracket status: %s", event_id, "; ".join(status.warnings))
    return status
