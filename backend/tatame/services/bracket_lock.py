"""
Lock/Unlock Controller: close or reopen an event's registrations.

Locking closes the event, freezes every linked category, then builds and
persists each category's round-1 matches inside its own savepoint. One
category failing does not stop the others; the report says which
categories were built, skipped or failed, and calling stop again retries
only the categories that are locked without matches.

Reopening deletes every match of the event and returns its categories to
preview, so the bracket view falls back to the live preview. Capacities
and slot numbers are kept.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete
from sqlmodel import Session, func, select

from tatame.models.category import Category
from tatame.models.match import Match
from tatame.models.profile import Profile
from tatame.services.bracket_builder import BracketMatch, build_bracket
from tatame.services.bracket_errors import BracketPersistenceError
from tatame.services.bracket_state import (
    close_registrations,
    freeze_category,
    open_registrations,
    reopen_category,
)
from tatame.services.slot_persistence import apply_slot_repair, load_paid_registrations, slot_map
from tatame.utils.access_guards import list_event_categories, require_event_owner

logger = logging.getLogger(__name__)

RESULT_BUILT = "built"
RESULT_EMPTY = "empty"  # no paid registrations; nothing persisted
RESULT_SKIPPED = "skipped"  # already locked with persisted matches
RESULT_FAILED = "failed"
RESULT_REOPENED = "reopened"


@dataclass
class CategoryLockResult:
    category_id: int
    status: str
    matches_created: int = 0
    matches_deleted: int = 0
    capacity: Optional[int] = None
    error: Optional[str] = None


@dataclass
class LockReport:
    event_id: int
    is_open_for_inscriptions: bool
    categories: List[CategoryLockResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(c.status != RESULT_FAILED for c in self.categories)

    @property
    def failed_categories(self) -> List[int]:
        return [c.category_id for c in self.categories if c.status == RESULT_FAILED]


def count_category_matches(session: Session, event_id: int, category_id: int) -> int:
    return session.exec(
        select(func.count(Match.id)).where(Match.event_id == event_id, Match.category_id == category_id)
    ).one()


def to_match_row(match: BracketMatch) -> Match:
    return Match(
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
    )


def stop_registrations(session: Session, event_id: int, caller: Optional[Profile]) -> LockReport:
    """
    Close registrations and lock every category of the event.

    Raises:
        BracketAccessDenied: caller is not the owning organizer
        BracketPersistenceError: the event/category state could not be saved
    """
    event = require_event_owner(session, event_id, caller)
    categories = list_event_categories(session, event_id)
    now = datetime.utcnow()

    try:
        if event.is_open_for_inscriptions:
            close_registrations(event)
            session.add(event)
        for category in categories:
            if not category.is_locked:
                freeze_category(category, now)
                session.add(category)
        session.commit()
    except Exception as exc:
        session.rollback()
        raise BracketPersistenceError(f"Failed to lock event {event_id}: {exc}") from exc

    report = LockReport(event_id=event_id, is_open_for_inscriptions=False)
    for category_id in [c.id for c in categories]:
        report.categories.append(_lock_category(session, event_id, category_id))

    logger.info(
        "Stopped registrations for event %d: %d categories, failed=%s",
        event_id,
        len(report.categories),
        report.failed_categories,
    )
    return report


def _lock_category(session: Session, event_id: int, category_id: int) -> CategoryLockResult:
    existing = count_category_matches(session, event_id, category_id)
    if existing:
        logger.warning("Category %d already has %d matches; not rebuilding", category_id, existing)
        return CategoryLockResult(category_id=category_id, status=RESULT_SKIPPED)

    try:
        with session.begin_nested():
            category = session.get(Category, category_id)
            registrations = load_paid_registrations(session, event_id, category_id)
            if not registrations:
                return CategoryLockResult(
                    category_id=category_id, status=RESULT_EMPTY, capacity=category.bracket_capacity
                )

            repair = apply_slot_repair(session, event_id, category, registrations)
            matches = build_bracket(repair.new_capacity, slot_map(registrations), event_id, category_id)
            round_one = [to_match_row(m) for m in matches if m.round == 1]
            session.add_all(round_one)
        session.commit()
    except Exception as exc:
        session.rollback()
        logger.exception("Failed to build bracket for category %d of event %d: %s", category_id, event_id, exc)
        return CategoryLockResult(category_id=category_id, status=RESULT_FAILED, error=str(exc))

    return CategoryLockResult(
        category_id=category_id,
        status=RESULT_BUILT,
        matches_created=len(round_one),
        capacity=repair.new_capacity,
    )


def reopen_registrations(session: Session, event_id: int, caller: Optional[Profile]) -> LockReport:
    """
    Reopen registrations: delete the event's matches and unlock its categories.

    Raises:
        BracketAccessDenied: caller is not the owning organizer
        BracketPersistenceError: the deletion or state change failed (nothing is applied)
    """
    event = require_event_owner(session, event_id, caller)
    categories = list_event_categories(session, event_id)
    report = LockReport(event_id=event_id, is_open_for_inscriptions=True)

    try:
        for category in categories:
            deleted = session.execute(
                delete(Match).where(Match.event_id == event_id, Match.category_id == category.id)
            ).rowcount
            if category.is_locked:
                reopen_category(category)
                session.add(category)
            report.categories.append(
                CategoryLockResult(
                    category_id=category.id,
                    status=RESULT_REOPENED,
                    matches_deleted=deleted or 0,
                    capacity=category.bracket_capacity,
                )
            )

        # Matches of categories no longer linked to the event go too
        session.execute(delete(Match).where(Match.event_id == event_id))

        if not event.is_open_for_inscriptions:
            open_registrations(event)
            session.add(event)
        session.commit()
    except Exception as exc:
        session.rollback()
        raise BracketPersistenceError(f"Failed to reopen event {event_id}: {exc}") from exc

    logger.info(
        "Reopened registrations for event %d: %d matches deleted",
        event_id,
        sum(c.matches_deleted for c in report.categories),
    )
    return report
