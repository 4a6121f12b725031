from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.orm import Session
from ..core.intervals import utc_now
from ..models import MentorshipStatus, SessionStatus, UserRole
from ..repositories import MentorshipRepository, SessionRepository
from ..schemas import UserStatistics
from .identity_service import IdentityDirectory

class StatisticsService:
    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.clock = clock or utc_now
        self.directory = IdentityDirectory(db)
        self.mentorships = MentorshipRepository(db)
        self.sessions = SessionRepository(db)

    def get_user_statistics(self, user_id: int, role: Optional[UserRole] = None) -> UserStatistics:
        """Dashboard counters, with mentorships counted from the side of the user's role"""
        if role is None:
            role = self.directory.get_user(user_id).role
        return UserStatistics(
            user_id=user_id,
            active_mentorships=self.mentorships.count_for_user(user_id, role, MentorshipStatus.ACTIVE),
            completed_mentorships=self.mentorships.count_for_user(user_id, role, MentorshipStatus.COMPLETED),
            completed_sessions=self.sessions.count_for_user(user_id, SessionStatus.COMPLETED),
            upcoming_sessions=self.sessions.count_for_user(user_id, SessionStatus.SCHEDULED, starting_after=self.clock()),
        )
