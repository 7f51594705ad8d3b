from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Index, String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class RegistrationStatus(str, Enum):
    pending_payment = "pending_payment"
    paid = "paid"
    cancelled = "cancelled"


class Registration(SQLModel, table=True):
    __table_args__ = (
        # A slot belongs to at most one athlete per category (NULL slots are not compared)
        SAUniqueConstraint("event_id", "category_id", "bracket_slot", name="uq_registration_slot"),
        Index("ix_registration_event_category", "event_id", "category_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id")
    category_id: int = Field(foreign_key="category.id")
    athlete_id: int = Field(foreign_key="profile.id")
    status: RegistrationStatus = Field(
        default=RegistrationStatus.pending_payment, sa_column=Column(String, nullable=False)
    )
    bracket_slot: Optional[int] = Field(default=None)  # 1-based seed position, assigned by slot repair
    created_at: datetime = Field(default_factory=datetime.utcnow)
