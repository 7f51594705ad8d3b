"""
Bracket engine errors.

Services raise these; routes translate them to HTTP status codes.
"""


class BracketError(Exception):
    """Base class for bracket engine failures."""


class BracketAccessDenied(BracketError):
    """Caller is not the owning organizer, or the event/category does not exist.

    Both cases share one message so existence is never leaked.
    """

    def __init__(self, message: str = "Not authorized."):
        super().__init__(message)


class InvalidPhaseTransition(BracketError):
    """A registration phase or bracket state transition was requested from the wrong state."""


class BracketPersistenceError(BracketError):
    """A write to matches, slots or category fields failed."""


class SlotRepairConflict(BracketPersistenceError):
    """Another writer changed the category's slots or capacity since they were read."""
