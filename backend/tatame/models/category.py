from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String
from sqlmodel import Column, Field, SQLModel

from tatame.config import DEFAULT_BRACKET_CAPACITY


class CategoryBracketState(str, Enum):
    preview = "preview"  # unlocked: bracket recomputed on every read
    frozen = "frozen"  # locked: round-1 matches persisted


class Category(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    belt: Optional[str] = None
    age_group: Optional[str] = None
    min_weight: Optional[float] = None
    max_weight: Optional[float] = None

    # Bracket fields. Capacity and version are written only by slot persistence,
    # state and locked_at only by tatame.services.bracket_state.
    bracket_capacity: int = Field(default=DEFAULT_BRACKET_CAPACITY)
    bracket_version: int = Field(default=0)  # compare-and-swap token for capacity/slot repairs
    bracket_state: CategoryBracketState = Field(
        default=CategoryBracketState.preview, sa_column=Column(String, nullable=False)
    )
    locked_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_locked(self) -> bool:
        return self.bracket_state == CategoryBracketState.frozen
