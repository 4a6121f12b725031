"""
Session Repository

Data access for sessions scoped to a mentorship. Like the mentorship
repository it never commits.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from ..core.intervals import as_utc, intervals_overlap, session_end
from ..models import Mentorship, MentorshipSession, SessionStatus, OPEN_SESSION_STATUSES

logger = logging.getLogger(__name__)

_OPEN_VALUES = [s.value for s in OPEN_SESSION_STATUSES]


class SessionRepository:
    def __init__(self, db: Session):
        self.db = db

    def find(self, session_id: int, for_update: bool = False) -> Optional[MentorshipSession]:
        query = self.db.query(MentorshipSession).filter(MentorshipSession.id == session_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_for_mentorship(self, mentorship_id: int) -> List[MentorshipSession]:
        return self.db.query(MentorshipSession).filter(
            MentorshipSession.mentorship_id == mentorship_id
        ).order_by(MentorshipSession.scheduled_start).all()

    def find_overlapping(self, mentorship_id: int, start: datetime, end: datetime) -> List[MentorshipSession]:
        """
        Open sessions of the mentorship whose [start, start + duration) intersects [start, end).

        The ``scheduled_start < end`` half of the test runs in SQL; the end of a stored
        session depends on its duration, so the other half is evaluated here.
        """
        query = self.db.query(MentorshipSession).filter(
            MentorshipSession.mentorship_id == mentorship_id,
            MentorshipSession.status.in_(_OPEN_VALUES),
            MentorshipSession.scheduled_start < end
        )
        return [
            existing for existing in query.order_by(MentorshipSession.scheduled_start).all()
            if intervals_overlap(
                existing.scheduled_start,
                session_end(as_utc(existing.scheduled_start), existing.duration_minutes),
                start,
                end,
            )
        ]

    def find_pending_for_mentor(self, mentor_id: int) -> List[MentorshipSession]:
        return self.db.query(MentorshipSession).join(Mentorship).options(
            joinedload(MentorshipSession.mentorship)
        ).filter(
            Mentorship.mentor_id == mentor_id,
            MentorshipSession.status == SessionStatus.PENDING.value
        ).order_by(MentorshipSession.scheduled_start).all()

    def find_recent_scheduled_for_user(self, user_id: int, since: datetime, now: datetime, limit: int) -> List[MentorshipSession]:
        """Upcoming scheduled sessions created after ``since``, newest first."""
        return self.db.query(MentorshipSession).join(Mentorship).filter(
            (Mentorship.mentor_id == user_id) | (Mentorship.mentee_id == user_id),
            MentorshipSession.status == SessionStatus.SCHEDULED.value,
            MentorshipSession.scheduled_start > now,
            MentorshipSession.created_at > since
        ).order_by(MentorshipSession.created_at.desc(), MentorshipSession.id.desc()).limit(limit).all()

    def count_for_user(self, user_id: int, status: SessionStatus, starting_after: Optional[datetime] = None) -> int:
        query = self.db.query(MentorshipSession).join(Mentorship).filter(
            (Mentorship.mentor_id == user_id) | (Mentorship.mentee_id == user_id),
            MentorshipSession.status == SessionStatus(status).value
        )
        if starting_after is not None:
            query = query.filter(MentorshipSession.scheduled_start > starting_after)
        return query.count()

    def insert(self, session: MentorshipSession) -> MentorshipSession:
        self.db.add(session)
        self.db.flush()
        return session

    def update_status(
        self,
        session: MentorshipSession,
        expected_status: SessionStatus,
        new_status: SessionStatus,
        updated_at: datetime,
        **values,
    ) -> bool:
        """Compare-and-set transition; False when another caller changed the status first."""
        result = self.db.execute(
            update(MentorshipSession)
            .where(MentorshipSession.id == session.id, MentorshipSession.status == SessionStatus(expected_status).value)
            .values(status=SessionStatus(new_status).value, updated_at=updated_at, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Session {session.id} left {expected_status.value} before it could move to {new_status.value}")
            return False
        self.db.refresh(session)
        return True
