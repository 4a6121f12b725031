from typing import Optional
from sqlalchemy.orm import Session
from ..models import User
from ..schemas import UserIdentity
from ..constants import ErrorMessages
from ..exceptions import NotFoundError

def normalize_attribute(value: Optional[str]) -> Optional[str]:
    """Lower-cases and trims a stored pairing attribute; blank becomes None."""
    if value is None:
        return None
    value = value.strip().lower()
    return value or None

class IdentityDirectory:
    """Read-only view of users: role, pairing attribute and whether the account is active."""

    def __init__(self, db: Session):
        self.db = db

    def find_user(self, user_id: int) -> Optional[UserIdentity]:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            return None
        return UserIdentity(
            id=user.id,
            role=user.role,
            match_attribute=normalize_attribute(user.gender),
            active=bool(user.is_active),
            full_name=user.full_name,
            email=user.email,
        )

    def get_user(self, user_id: int) -> UserIdentity:
        identity = self.find_user(user_id)
        if identity is None:
            raise NotFoundError(ErrorMessages.USER_NOT_FOUND, user_id=user_id)
        return identity
