from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class Match(SQLModel, table=True):
    """Persisted round-1 match of a frozen bracket."""

    __table_args__ = (SAUniqueConstraint("event_id", "category_id", "match_no", name="uq_match_category_no"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    category_id: int = Field(foreign_key="category.id", index=True)
    round: int
    match_no: int  # bracket-wide, 1-based, round by round
    slot_a: int  # 0 when not yet determined (rounds >= 2)
    slot_b: int

    athlete_a_id: Optional[int] = Field(default=None, foreign_key="profile.id")
    athlete_b_id: Optional[int] = Field(default=None, foreign_key="profile.id")
    winner_id: Optional[int] = Field(default=None, foreign_key="profile.id")

    is_bye: bool = Field(default=False)
    status: str = Field(default="pending")  # "pending" | "completed"
    created_at: datetime = Field(default_factory=datetime.utcnow)
