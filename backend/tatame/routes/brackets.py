"""
Bracket management endpoints (organizer-only).

Stop/reopen registrations for an event and read a category's bracket.
"""
import logging
from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from tatame.auth import require_organizer
from tatame.database import get_session
from tatame.models.profile import Profile
from tatame.services.bracket_errors import (
    BracketAccessDenied,
    BracketPersistenceError,
    InvalidPhaseTransition,
    SlotRepairConflict,
)
from tatame.services.bracket_lock import LockReport, reopen_registrations, stop_registrations
from tatame.services.bracket_view import get_bracket, get_bracket_status

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Response models ─────────────────────────────────────────────────────


class CategoryLockResultResponse(BaseModel):
    category_id: int
    status: str  # built | empty | skipped | failed | reopened
    matches_created: int = 0
    matches_deleted: int = 0
    capacity: Optional[int] = None
    error: Optional[str] = None


class LockResponse(BaseModel):
    success: bool
    message: str
    event_id: int
    is_open_for_inscriptions: bool
    categories: List[CategoryLockResultResponse]


class MatchResponse(BaseModel):
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
    is_bye: bool
    status: str
    is_preview: bool = False
    athlete_a_name: Optional[str] = None
    athlete_b_name: Optional[str] = None


class RegistrationSlotResponse(BaseModel):
    bracket_slot: int
    athlete_id: int
    athlete_name: str


class BracketResponse(BaseModel):
    event_id: int
    category_id: int
    capacity: int
    is_locked: bool
    matches: List[MatchResponse]
    registrations: Optional[List[RegistrationSlotResponse]] = None


class CategoryStatusResponse(BaseModel):
    category_id: int
    name: str
    capacity: int
    is_locked: bool
    locked_at: Optional[datetime] = None
    paid_registrations: int
    unseeded_registrations: int
    persisted_matches: int
    expected_round_one_matches: int


class BracketStatusResponse(BaseModel):
    event_id: int
    is_open_for_inscriptions: bool
    categories: List[CategoryStatusResponse]
    warnings: List[str]


def _lock_response(report: LockReport, message: str) -> LockResponse:
    if not report.success:
        message = f"{message} Failed categories: {', '.join(str(c) for c in report.failed_categories)}."
    return LockResponse(
        success=report.success,
        message=message,
        event_id=report.event_id,
        is_open_for_inscriptions=report.is_open_for_inscriptions,
        categories=[CategoryLockResultResponse(**asdict(c)) for c in report.categories],
    )


# ── Endpoints ───────────────────────────────────────────────────────────


@router.post("/events/{event_id}/registrations/stop", response_model=LockResponse)
def stop_event_registrations(
    event_id: int,
    session: Session = Depends(get_session),
    user: Profile = Depends(require_organizer),
):
    """Close registrations and lock every category bracket of the event"""
    try:
        report = stop_registrations(session, event_id, user)
    except BracketAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidPhaseTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BracketPersistenceError as e:
        logger.error(f"Stop registrations failed for event {event_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to stop registrations. Try again.")
    except Exception as e:
        session.rollback()
        logger.exception(f"Stop registrations crashed for event {event_id}")
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    return _lock_response(report, "Registrations closed and brackets generated.")


@router.post("/events/{event_id}/registrations/reopen", response_model=LockResponse)
def reopen_event_registrations(
    event_id: int,
    session: Session = Depends(get_session),
    user: Profile = Depends(require_organizer),
):
    """Reopen registrations, deleting the event's frozen brackets"""
    try:
        report = reopen_registrations(session, event_id, user)
    except BracketAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidPhaseTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BracketPersistenceError as e:
        logger.error(f"Reopen registrations failed for event {event_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to reopen registrations. Try again.")
    except Exception as e:
        session.rollback()
        logger.exception(f"Reopen registrations crashed for event {event_id}")
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    return _lock_response(report, "Registrations reopened.")


@router.get(
    "/events/{event_id}/categories/{category_id}/bracket",
    response_model=BracketResponse,
    response_model_exclude_unset=True,
)
def get_category_bracket(
    event_id: int,
    category_id: int,
    session: Session = Depends(get_session),
    user: Profile = Depends(require_organizer),
):
    """Frozen bracket if the category is locked, otherwise a live preview"""
    try:
        view = get_bracket(session, event_id, category_id, user)
    except BracketAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))
    except SlotRepairConflict as e:
        logger.warning(f"Bracket preview for category {category_id} kept conflicting: {e}")
        raise HTTPException(status_code=409, detail="Bracket is being updated by another request. Try again.")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        session.rollback()
        logger.exception(f"Bracket read failed for category {category_id} of event {event_id}")
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    payload = {
        "event_id": view.event_id,
        "category_id": view.category_id,
        "capacity": view.capacity,
        "is_locked": view.is_locked,
        "matches": [asdict(m) for m in view.matches],
    }
    if view.registrations is not None:
        payload["registrations"] = [asdict(r) for r in view.registrations]
    return payload


@router.get("/events/{event_id}/brackets/status", response_model=BracketStatusResponse)
def get_event_bracket_status(
    event_id: int,
    session: Session = Depends(get_session),
    user: Profile = Depends(require_organizer),
):
    """Lock state, seeding and persisted match counts per category"""
    try:
        status = get_bracket_status(session, event_id, user)
    except BracketAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception as e:
        session.rollback()
        logger.exception(f"Bracket status failed for event {event_id}")
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    return asdict(status)
