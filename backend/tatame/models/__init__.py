from tatame.models.category import Category, CategoryBracketState
from tatame.models.event import Event, EventCategory, RegistrationPhase
from tatame.models.match import Match
from tatame.models.profile import Profile, ProfileRole
from tatame.models.registration import Registration, RegistrationStatus

__all__ = [
    "Category",
    "CategoryBracketState",
    "Event",
    "EventCategory",
    "RegistrationPhase",
    "Match",
    "Profile",
    "ProfileRole",
    "Registration",
    "RegistrationStatus",
]
