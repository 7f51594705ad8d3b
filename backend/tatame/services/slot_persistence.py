"""
Slot persistence: run the Slot Repair Engine against the database.

Repairs are applied all-or-nothing under an optimistic-concurrency check:
the category's bracket_version is compared-and-incremented in the same
transaction as the slot writes, and every slot write only succeeds if the
stored slot is still the one that was read. A concurrent repair therefore
makes the losing transaction raise SlotRepairConflict instead of silently
overwriting the winner's capacity or slots.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from tatame.config import BRACKET_REPAIR_MAX_ATTEMPTS
from tatame.models.category import Category
from tatame.models.profile import Profile
from tatame.models.registration import Registration, RegistrationStatus
from tatame.services.bracket_builder import SlotAthlete
from tatame.services.bracket_errors import SlotRepairConflict
from tatame.services.slot_repair import (
    SlotCandidate,
    SlotRepairResult,
    needs_slot_repair,
    normalize_capacity,
    repair_slots,
)

logger = logging.getLogger(__name__)


@dataclass
class PaidRegistration:
    id: int
    athlete_id: int
    athlete_name: str
    bracket_slot: Optional[int]
    created_at: datetime


def load_paid_registrations(session: Session, event_id: int, category_id: int) -> List[PaidRegistration]:
    """Paid registrations of one category, oldest first, with athlete names joined."""
    rows = session.exec(
        select(Registration, Profile.name)
        .join(Profile, Profile.id == Registration.athlete_id, isouter=True)
        .where(
            Registration.event_id == event_id,
            Registration.category_id == category_id,
            Registration.status == RegistrationStatus.paid.value,
        )
        .order_by(Registration.created_at, Registration.id)
    ).all()

    return [
        PaidRegistration(
            id=reg.id,
            athlete_id=reg.athlete_id,
            athlete_name=name or "",
            bracket_slot=reg.bracket_slot,
            created_at=reg.created_at,
        )
        for reg, name in rows
    ]


def slot_map(registrations: List[PaidRegistration]) -> Dict[int, SlotAthlete]:
    """slot -> athlete for every registration that holds a slot."""
    return {
        reg.bracket_slot: SlotAthlete(id=reg.athlete_id, name=reg.athlete_name)
        for reg in registrations
        if reg.bracket_slot is not None
    }


def persist_slot_repair(
    session: Session,
    event_id: int,
    category_id: int,
    seen_version: int,
    registrations: List[PaidRegistration],
    result: SlotRepairResult,
) -> None:
    """
    Write a repair result. Does not commit.

    Slots still held by unpaid or cancelled registrations of the category
    are released first, since repair may hand them to paid athletes.

    Raises:
        SlotRepairConflict: the category version or a registration's slot
            changed since they were read. The caller must roll back.
    """
    bumped = session.execute(
        update(Category)
        .where(Category.id == category_id, Category.bracket_version == seen_version)
        .values(bracket_capacity=result.new_capacity, bracket_version=Category.bracket_version + 1)
        .execution_options(synchronize_session=False)
    )
    if bumped.rowcount != 1:
        raise SlotRepairConflict(f"Category {category_id} changed while its slots were being repaired")

    released = session.execute(
        update(Registration)
        .where(
            Registration.event_id == event_id,
            Registration.category_id == category_id,
            Registration.status != RegistrationStatus.paid.value,
            Registration.bracket_slot.is_not(None),
        )
        .values(bracket_slot=None)
        .execution_options(synchronize_session=False)
    ).rowcount
    if released:
        logger.info("Released %d slot(s) held by unpaid registrations in category %d", released, category_id)

    previous_slots = {reg.id: reg.bracket_slot for reg in registrations}
    for assignment in result.assignments:
        previous = previous_slots.get(assignment.id)
        unchanged = (
            Registration.bracket_slot.is_(None) if previous is None else Registration.bracket_slot == previous
        )
        written = session.execute(
            update(Registration)
            .where(Registration.id == assignment.id, unchanged)
            .values(bracket_slot=assignment.new_slot)
            .execution_options(synchronize_session=False)
        )
        if written.rowcount != 1:
            raise SlotRepairConflict(f"Registration {assignment.id} slot changed during repair")


def apply_slot_repair(
    session: Session, event_id: int, category: Category, registrations: List[PaidRegistration]
) -> SlotRepairResult:
    """
    Repair slots in memory and in the session's current transaction.

    Returns the repair result; registrations are updated in place so the
    caller can build a bracket without re-reading. Does not commit.
    """
    result = repair_slots(
        [SlotCandidate(id=r.id, bracket_slot=r.bracket_slot, created_at=r.created_at) for r in registrations],
        category.bracket_capacity,
    )
    if not registrations:
        return result

    persist_slot_repair(session, event_id, category.id, category.bracket_version, registrations, result)

    new_slots = {a.id: a.new_slot for a in result.assignments}
    for reg in registrations:
        if reg.id in new_slots:
            reg.bracket_slot = new_slots[reg.id]

    if result.assignments or result.new_capacity != category.bracket_capacity:
        logger.info(
            "Repaired category %d: %d slot(s) assigned, capacity %s -> %d",
            category.id,
            len(result.assignments),
            category.bracket_capacity,
            result.new_capacity,
        )
    return result


def ensure_category_slots(
    session: Session,
    event_id: int,
    category: Category,
    max_attempts: int = BRACKET_REPAIR_MAX_ATTEMPTS,
) -> List[PaidRegistration]:
    """
    Make sure every paid registration of the category holds a slot.

    Repairs and commits when needed, re-reading and retrying when another
    request repaired the same category first. Returns the registrations as
    stored after the repair.

    Raises:
        SlotRepairConflict: still conflicting after max_attempts
    """
    for attempt in range(1, max_attempts + 1):
        registrations = load_paid_registrations(session, event_id, category.id)
        slots = [reg.bracket_slot for reg in registrations]
        if not needs_slot_repair(slots, category.bracket_capacity):
            return registrations

        try:
            apply_slot_repair(session, event_id, category, registrations)
            session.commit()
        except SlotRepairConflict as exc:
            session.rollback()
            logger.warning(
                "Slot repair attempt %d/%d for category %d lost a race: %s", attempt, max_attempts, category.id, exc
            )
            session.refresh(category)
            continue

        session.refresh(category)
        return load_paid_registrations(session, event_id, category.id)

    raise SlotRepairConflict(f"Could not repair slots for category {category.id} after {max_attempts} attempts")


def effective_capacity(category: Category) -> int:
    return normalize_capacity(category.bracket_capacity)
