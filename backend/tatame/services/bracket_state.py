"""
Registration phase / bracket state transitions.

These functions are the only code that writes Event.registration_phase,
Category.bracket_state and Category.locked_at. They mutate the model in
memory; the caller adds and commits.

    Event:     OPEN  <-> CLOSED
    Category:  PREVIEW -> FROZEN (lock) -> PREVIEW (reopen) -> ...
"""

from datetime import datetime
from typing import Iterable, List, Optional

from tatame.models.category import Category, CategoryBracketState
from tatame.models.event import Event, RegistrationPhase
from tatame.services.bracket_errors import InvalidPhaseTransition


def close_registrations(event: Event) -> Event:
    if event.registration_phase != RegistrationPhase.open:
        raise InvalidPhaseTransition(f"Registrations for event {event.id} are already closed")
    event.registration_phase = RegistrationPhase.closed
    return event


def open_registrations(event: Event) -> Event:
    if event.registration_phase != RegistrationPhase.closed:
        raise InvalidPhaseTransition(f"Registrations for event {event.id} are already open")
    event.registration_phase = RegistrationPhase.open
    return event


def freeze_category(category: Category, now: Optional[datetime] = None) -> Category:
    if category.bracket_state == CategoryBracketState.frozen:
        raise InvalidPhaseTransition(f"Category {category.id} bracket is already locked")
    category.bracket_state = CategoryBracketState.frozen
    category.locked_at = now or datetime.utcnow()
    return category


def reopen_category(category: Category) -> Category:
    if category.bracket_state != CategoryBracketState.frozen:
        raise InvalidPhaseTransition(f"Category {category.id} bracket is not locked")
    category.bracket_state = CategoryBracketState.preview
    category.locked_at = None
    return category


def check_phase_consistency(event: Event, categories: Iterable[Category]) -> List[str]:
    """Describe every category whose bracket state disagrees with the event's phase."""
    problems = []
    for category in categories:
        if event.registration_phase == RegistrationPhase.closed and not category.is_locked:
            problems.append(f"Category {category.id} is still in preview while registrations are closed")
        elif event.registration_phase == RegistrationPhase.open and category.is_locked:
            problems.append(f"Category {category.id} is locked while registrations are open")
        if category.is_locked and category.locked_at is None:
            problems.append(f"Category {category.id} is locked without a lock timestamp")
    return problems
