"""
Ownership guards for organizer-only bracket operations.

Every failure raises BracketAccessDenied with the same message, whether
the caller lacks the role, does not own the event, or the event/category
does not exist.
"""

from typing import List, Optional

from sqlmodel import Session, select

from tatame.models.category import Category
from tatame.models.event import Event, EventCategory
from tatame.models.profile import Profile, ProfileRole
from tatame.services.bracket_errors import BracketAccessDenied


def require_event_owner(session: Session, event_id: int, caller: Optional[Profile]) -> Event:
    """
    Require that caller is an organizer who owns the event.

    The role is checked before anything is read.

    Raises:
        BracketAccessDenied: no caller, wrong role, missing event, or not the owner
    """
    if caller is None or caller.role != ProfileRole.organizer:
        raise BracketAccessDenied()

    event = session.get(Event, event_id)
    if not event or event.organizer_id != caller.id:
        raise BracketAccessDenied()

    return event


def require_event_category(session: Session, event_id: int, category_id: int) -> Category:
    """Get a category linked to the event, or raise BracketAccessDenied."""
    link = session.exec(
        select(EventCategory).where(EventCategory.event_id == event_id, EventCategory.category_id == category_id)
    ).first()
    if not link:
        raise BracketAccessDenied()

    category = session.get(Category, category_id)
    if not category:
        raise BracketAccessDenied()

    return category


def list_event_categories(session: Session, event_id: int) -> List[Category]:
    """All categories linked to the event, ordered by id."""
    return list(
        session.exec(
            select(Category)
            .join(EventCategory, EventCategory.category_id == Category.id)
            .where(EventCategory.event_id == event_id)
            .order_by(Category.id)
        ).all()
    )
