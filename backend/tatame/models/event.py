from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class RegistrationPhase(str, Enum):
    open = "open"
    closed = "closed"


class Event(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    organizer_id: int = Field(foreign_key="profile.id", index=True)
    name: str
    # Mutated only through tatame.services.bracket_state
    registration_phase: RegistrationPhase = Field(
        default=RegistrationPhase.open, sa_column=Column(String, nullable=False)
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_open_for_inscriptions(self) -> bool:
        return self.registration_phase == RegistrationPhase.open


class EventCategory(SQLModel, table=True):
    """Categories offered by an event."""

    __table_args__ = (SAUniqueConstraint("event_id", "category_id", name="uq_event_category"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    category_id: int = Field(foreign_key="category.id")
