from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String
from sqlmodel import Column, Field, SQLModel


class ProfileRole(str, Enum):
    athlete = "athlete"
    organizer = "organizer"
    super_admin = "super_admin"


class Profile(SQLModel, table=True):
    """User profile. Owned by the auth subsystem; read here for roles and athlete names."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: Optional[str] = None
    role: ProfileRole = Field(default=ProfileRole.athlete, sa_column=Column(String, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)
