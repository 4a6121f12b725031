import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from ..constants import Defaults, ErrorMessages, LockKeys
from ..core.intervals import as_utc, overlap_minutes, session_end
from ..core.locks import keyed_locks
from ..core.notifications import NotificationDispatcher
from ..exceptions import (
    InvalidIntervalError, InvalidSessionDataError, InvalidStateError, SchedulingConflictError
)
from ..models import MentorshipSession, SessionStatus
from ..repositories import SessionRepository
from ..schemas import SessionEvent
from ..utils.validation_utils import ValidationUtils
from .base import BaseService

logger = logging.getLogger(__name__)


class SchedulingService(BaseService):
    """
    Books sessions on active mentorships and moves them through
    pending -> scheduled -> completed, with cancelled reachable from
    pending or scheduled.

    Every pending or scheduled session reserves its half-open slot
    [start, start + duration); no two reserved slots of one mentorship may
    intersect.
    """

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db, dispatcher, clock)
        self.repository = SessionRepository(db)
        self.validator = ValidationUtils(db)

    def request_session(
        self,
        mentorship_id: int,
        actor_id: int,
        title: str,
        start: datetime,
        duration_minutes: int,
        meeting_link: Optional[str] = None,
        description: Optional[str] = None,
    ) -> MentorshipSession:
        """
        Books a session. Mentor-authored sessions are scheduled straight away;
        mentee-authored ones stay pending until the mentor responds.
        """
        key = LockKeys.MENTORSHIP_SESSIONS.format(mentorship_id=mentorship_id)
        with keyed_locks.hold(key):
            with self.unit_of_work("request_session"):
                # Row lock on the mentorship serializes bookings across processes
                mentorship = self.validator.get_mentorship_or_404(mentorship_id, for_update=True)
                self.validator.require_party(mentorship, actor_id)
                self.validator.validate_mentorship_active(mentorship)

                title = title.strip() if isinstance(title, str) else ""
                if not title:
                    raise InvalidSessionDataError(ErrorMessages.SESSION_TITLE_REQUIRED, mentorship_id=mentorship_id)
                if not isinstance(start, datetime):
                    raise InvalidIntervalError(ErrorMessages.SESSION_START_INVALID, start=repr(start))

                now = self.clock()
                start = as_utc(start)
                self.validator.validate_session_window(start, duration_minutes, now)
                end = session_end(start, duration_minutes)

                conflicts = self.repository.find_overlapping(mentorship_id, start, end)
                if conflicts:
                    raise SchedulingConflictError(
                        ErrorMessages.SCHEDULING_CONFLICT,
                        mentorship_id=mentorship_id,
                        conflicting_session_ids=[c.id for c in conflicts],
                        overlap_minutes={
                            c.id: overlap_minutes(
                                c.scheduled_start,
                                session_end(as_utc(c.scheduled_start), c.duration_minutes),
                                start,
                                end,
                            )
                            for c in conflicts
                        },
                    )

                status = SessionStatus.SCHEDULED if actor_id == mentorship.mentor_id else SessionStatus.PENDING
                session = MentorshipSession(
                    mentorship_id=mentorship_id,
                    title=title,
                    description=(description or "").strip() or None,
                    scheduled_start=start,
                    duration_minutes=duration_minutes,
                    status=status.value,
                    meeting_link=(meeting_link or "").strip() or None,
                    created_by=actor_id,
                    created_at=now,
                    updated_at=now,
                )
                self.repository.insert(session)
                event = self._event(session, None, status, actor_id, now)

        return self._finish(session, event)

    def respond(self, session_id: int, actor_id: int, approve: bool, reason: Optional[str] = None) -> MentorshipSession:
        """Mentor approves (-> scheduled) or rejects (-> cancelled) a pending session"""
        with self.unit_of_work("respond"):
            session = self.validator.get_session_or_404(session_id, for_update=True)
            mentorship = self.validator.get_mentorship_or_404(session.mentorship_id)
            self.validator.require_mentor_of(mentorship, actor_id)
            self.validator.validate_session_status(session, SessionStatus.PENDING)

            if approve:
                self.validator.validate_mentorship_active(mentorship)
                event = self._transition(session, SessionStatus.PENDING, SessionStatus.SCHEDULED, actor_id)
            else:
                event = self._transition(
                    session,
                    SessionStatus.PENDING,
                    SessionStatus.CANCELLED,
                    actor_id,
                    cancelled_by=actor_id,
                    cancellation_reason=(reason or "").strip() or Defaults.SESSION_DECLINE_REASON,
                )
        return self._finish(session, event)

    def cancel(self, session_id: int, actor_id: int, reason: Optional[str] = None) -> MentorshipSession:
        """Either party cancels a pending or scheduled session"""
        with self.unit_of_work("cancel_session"):
            session = self.validator.get_session_or_404(session_id, for_update=True)
            mentorship = self.validator.get_mentorship_or_404(session.mentorship_id)
            self.validator.require_party(mentorship, actor_id)
            self.validator.validate_session_status(session, SessionStatus.PENDING, SessionStatus.SCHEDULED)
            event = self._transition(
                session,
                SessionStatus(session.status),
                SessionStatus.CANCELLED,
                actor_id,
                cancelled_by=actor_id,
                cancellation_reason=(reason or "").strip() or None,
            )
        return self._finish(session, event)

    def complete(self, session_id: int, actor_id: int) -> MentorshipSession:
        """Either party marks a scheduled session that has already started as completed"""
        with self.unit_of_work("complete_session"):
            session = self.validator.get_session_or_404(session_id, for_update=True)
            mentorship = self.validator.get_mentorship_or_404(session.mentorship_id)
            self.validator.require_party(mentorship, actor_id)
            self.validator.validate_session_status(session, SessionStatus.SCHEDULED)
            if as_utc(session.scheduled_start) > self.clock():
                raise InvalidIntervalError(
                    ErrorMessages.SESSION_NOT_STARTED,
                    session_id=session_id,
                    start=as_utc(session.scheduled_start).isoformat(),
                )
            event = self._transition(session, SessionStatus.SCHEDULED, SessionStatus.COMPLETED, actor_id)
        return self._finish(session, event)

    def get_session(self, session_id: int) -> MentorshipSession:
        return self.validator.get_session_or_404(session_id)

    def get_sessions_for_mentorship(self, mentorship_id: int) -> List[MentorshipSession]:
        self.validator.get_mentorship_or_404(mentorship_id)
        return self.repository.find_for_mentorship(mentorship_id)

    def get_pending_sessions_for_mentor(self, mentor_id: int) -> List[MentorshipSession]:
        return self.repository.find_pending_for_mentor(mentor_id)

    def get_recent_scheduled_sessions(self, user_id: int, since: datetime) -> List[MentorshipSession]:
        """Upcoming scheduled sessions booked since ``since``; feeds the dashboard's new-session poll"""
        return self.repository.find_recent_scheduled_for_user(
            user_id, as_utc(since), self.clock(), self.settings.RECENT_SESSIONS_LIMIT
        )

    def _transition(
        self,
        session: MentorshipSession,
        from_status: SessionStatus,
        to_status: SessionStatus,
        actor_id: int,
        **values,
    ) -> SessionEvent:
        now = self.clock()
        if not self.repository.update_status(session, from_status, to_status, now, **values):
            raise InvalidStateError(
                f"Session is no longer {from_status.value}", session_id=session.id, status=from_status.value
            )
        return self._event(session, from_status, to_status, actor_id, now)

    def _event(
        self,
        session: MentorshipSession,
        from_status: Optional[SessionStatus],
        to_status: SessionStatus,
        actor_id: int,
        occurred_at: datetime,
    ) -> SessionEvent:
        return SessionEvent(
            session_id=session.id,
            mentorship_id=session.mentorship_id,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            scheduled_start=as_utc(session.scheduled_start),
            duration_minutes=session.duration_minutes,
            occurred_at=occurred_at,
        )

    def _finish(self, session: MentorshipSession, event: SessionEvent) -> MentorshipSession:
        self.db.refresh(session)
        logger.info(
            f"Session {event.session_id} on mentorship {event.mentorship_id}: "
            f"{event.from_status.value if event.from_status else 'new'} -> {event.to_status.value} by user {event.actor_id}"
        )
        self.publish(event)
        return session
