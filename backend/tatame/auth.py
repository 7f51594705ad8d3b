"""
Caller identity for the API.

Authentication happens upstream; the gateway forwards the signed-in
profile id in the X-User-Id header. Tests override get_current_user.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from tatame.database import get_session
from tatame.models.profile import Profile, ProfileRole


def get_current_user(
    x_user_id: Optional[int] = Header(default=None),
    session: Session = Depends(get_session),
) -> Profile:
    """Resolve the calling profile, 401 if absent or unknown"""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated.")

    profile = session.get(Profile, x_user_id)
    if not profile:
        raise HTTPException(status_code=401, detail="Not authenticated.")

    return profile


def require_organizer(user: Profile = Depends(get_current_user)) -> Profile:
    """Only organizers may manage brackets"""
    if user.role != ProfileRole.organizer:
        raise HTTPException(status_code=403, detail="Not authorized.")
    return user
