# mentorship_engine/utils/validation_utils.py
from datetime import datetime
from sqlalchemy.orm import Session
from ..models import Mentorship, MentorshipSession, MentorshipStatus, SessionStatus
from ..config import get_settings
from ..constants import ErrorMessages
from ..repositories import MentorshipRepository, SessionRepository
from ..exceptions import (
    ForbiddenError, InvalidIntervalError, InvalidStateError, InvalidStatusTransitionError, NotFoundError
)

class ValidationUtils:
    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.mentorships = MentorshipRepository(db)
        self.sessions = SessionRepository(db)

    def get_mentorship_or_404(self, mentorship_id: int, for_update: bool = False) -> Mentorship:
        mentorship = self.mentorships.find(mentorship_id, for_update=for_update)
        if not mentorship:
            raise NotFoundError(ErrorMessages.MENTORSHIP_NOT_FOUND, mentorship_id=mentorship_id)
        return mentorship

    def get_session_or_404(self, session_id: int, for_update: bool = False) -> MentorshipSession:
        session = self.sessions.find(session_id, for_update=for_update)
        if not session:
            raise NotFoundError(ErrorMessages.SESSION_NOT_FOUND, session_id=session_id)
        return session

    def require_mentor_of(self, mentorship: Mentorship, actor_id: int):
        if mentorship.mentor_id != actor_id:
            raise ForbiddenError(ErrorMessages.NOT_MENTOR_OF_RECORD, mentorship_id=mentorship.id, actor_id=actor_id)

    def require_party(self, mentorship: Mentorship, actor_id: int):
        if actor_id not in (mentorship.mentor_id, mentorship.mentee_id):
            raise ForbiddenError(ErrorMessages.NOT_PARTY_OF_RECORD, mentorship_id=mentorship.id, actor_id=actor_id)

    def validate_mentorship_status(self, mentorship: Mentorship, *allowed: MentorshipStatus):
        if mentorship.status not in [s.value for s in allowed]:
            expected = ", ".join(s.value for s in allowed)
            raise InvalidStatusTransitionError(
                f"Mentorship is not {expected} (current: {mentorship.status})",
                mentorship_id=mentorship.id,
                status=mentorship.status,
            )

    def validate_session_status(self, session: MentorshipSession, *allowed: SessionStatus):
        if session.status not in [s.value for s in allowed]:
            expected = ", ".join(s.value for s in allowed)
            raise InvalidStateError(
                f"Session is not {expected} (current: {session.status})",
                session_id=session.id,
                status=session.status,
            )

    def validate_mentorship_active(self, mentorship: Mentorship):
        if mentorship.status != MentorshipStatus.ACTIVE.value:
            raise InvalidStateError(
                ErrorMessages.MENTORSHIP_NOT_ACTIVE, mentorship_id=mentorship.id, status=mentorship.status
            )

    def validate_session_window(self, start: datetime, duration_minutes: int, now: datetime):
        """Start strictly after ``now``; duration an int within the configured bounds."""
        minimum = self.settings.SESSION_MIN_DURATION_MINUTES
        maximum = self.settings.SESSION_MAX_DURATION_MINUTES
        if start <= now:
            raise InvalidIntervalError(ErrorMessages.SESSION_IN_PAST, start=start.isoformat())
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) \
                or not minimum <= duration_minutes <= maximum:
            raise InvalidIntervalError(
                ErrorMessages.SESSION_DURATION.format(minimum=minimum, maximum=maximum),
                duration_minutes=duration_minutes,
            )
