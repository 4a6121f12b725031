# mentorship_engine/services/mentorship_service.py
import logging
from typing import Callable, Iterable, List, Optional
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from ..models import Mentorship, MentorshipStatus, UserRole
from ..schemas import AvailableMentor, MentorshipEvent
from ..constants import Defaults, ErrorMessages, LockKeys
from ..core.locks import acquire_advisory_lock, keyed_locks
from ..core.notifications import NotificationDispatcher
from ..exceptions import (
    DuplicateRequestError, ForbiddenError, InvalidStatusTransitionError, MissingAttributeError, NotFoundError
)
from ..repositories import MentorshipRepository
from ..repositories.mentorship_repository import is_open_pair_violation
from ..utils.validation_utils import ValidationUtils
from .base import BaseService
from .identity_service import IdentityDirectory, normalize_attribute
from .pairing_service import PairingValidator

logger = logging.getLogger(__name__)

class MentorshipService(BaseService):
    """
    Mentorship lifecycle: pending -> active | declined | cancelled, active -> cancelled | completed.
    declined, cancelled and completed are terminal.
    """

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db, dispatcher, clock)
        self.directory = IdentityDirectory(db)
        self.pairing = PairingValidator(self.directory)
        self.repository = MentorshipRepository(db)
        self.validator = ValidationUtils(db)

    def request_mentorship(self, mentor_id: int, mentee_id: int, actor_id: Optional[int] = None) -> Mentorship:
        """Creates a pending mentorship request from a mentee to a mentor"""
        if actor_id is not None and actor_id != mentee_id:
            raise ForbiddenError(ErrorMessages.MENTEE_ONLY, actor_id=actor_id, mentee_id=mentee_id)

        # Existence check and insert must not interleave with another request for the same pair
        key = LockKeys.MENTORSHIP_PAIR.format(mentor_id=mentor_id, mentee_id=mentee_id)
        with keyed_locks.hold(key):
            with self.unit_of_work("request_mentorship"):
                acquire_advisory_lock(self.db, key)

                mentee = self.directory.get_user(mentee_id)
                if mentee.role != UserRole.MENTEE:
                    raise ForbiddenError(ErrorMessages.MENTEE_ONLY, user_id=mentee_id, role=mentee.role.value)

                mentor = self.directory.find_user(mentor_id)
                if mentor is None or mentor.role != UserRole.MENTOR or not mentor.active:
                    raise NotFoundError(ErrorMessages.MENTOR_UNAVAILABLE, mentor_id=mentor_id)

                existing = self.repository.find_open_by_pair(mentor_id, mentee_id)
                if existing:
                    raise DuplicateRequestError(
                        ErrorMessages.DUPLICATE_PAIR,
                        mentorship_id=existing.id,
                        status=existing.status,
                        mentor_id=mentor_id,
                        mentee_id=mentee_id,
                    )

                self.pairing.validate_pair(mentor_id, mentee_id)

                now = self.clock()
                mentorship = Mentorship(
                    mentor_id=mentor_id,
                    mentee_id=mentee_id,
                    status=MentorshipStatus.PENDING.value,
                    requested_at=now,
                    updated_at=now,
                )
                try:
                    self.repository.insert(mentorship)
                except IntegrityError as e:
                    if not is_open_pair_violation(e):
                        raise
                    # The partial unique index caught a request committed by another process
                    raise DuplicateRequestError(
                        ErrorMessages.DUPLICATE_PAIR, mentor_id=mentor_id, mentee_id=mentee_id
                    ) from e

                event = self._event(mentorship, None, MentorshipStatus.PENDING, mentee_id, now)

        return self._finish(mentorship, event)

    def accept(self, mentorship_id: int, actor_id: int) -> Mentorship:
        """Accepts a pending request; the pairing rule is re-checked since profiles may have changed"""
        with self.unit_of_work("accept"):
            mentorship = self.validator.get_mentorship_or_404(mentorship_id, for_update=True)
            self.validator.require_mentor_of(mentorship, actor_id)
            self.validator.validate_mentorship_status(mentorship, MentorshipStatus.PENDING)
            self.pairing.validate_pair(mentorship.mentor_id, mentorship.mentee_id)
            event = self._transition(mentorship, MentorshipStatus.PENDING, MentorshipStatus.ACTIVE, actor_id)
        return self._finish(mentorship, event)

    def decline(self, mentorship_id: int, actor_id: int, reason: Optional[str] = None) -> Mentorship:
        """Declines a pending request, keeping the reason in the notes"""
        notes = (reason or "").strip() or Defaults.DECLINE_NOTE
        with self.unit_of_work("decline"):
            mentorship = self.validator.get_mentorship_or_404(mentorship_id, for_update=True)
            self.validator.require_mentor_of(mentorship, actor_id)
            self.validator.validate_mentorship_status(mentorship, MentorshipStatus.PENDING)
            event = self._transition(
                mentorship, MentorshipStatus.PENDING, MentorshipStatus.DECLINED, actor_id, notes=notes
            )
        return self._finish(mentorship, event)

    def cancel(self, mentorship_id: int, actor_id: int) -> Mentorship:
        """Either party withdraws a pending request or ends an active mentorship"""
        with self.unit_of_work("cancel"):
            mentorship = self.validator.get_mentorship_or_404(mentorship_id, for_update=True)
            self.validator.require_party(mentorship, actor_id)
            self.validator.validate_mentorship_status(mentorship, MentorshipStatus.PENDING, MentorshipStatus.ACTIVE)
            event = self._transition(
                mentorship, MentorshipStatus(mentorship.status), MentorshipStatus.CANCELLED, actor_id
            )
        return self._finish(mentorship, event)

    def complete(self, mentorship_id: int, actor_id: int) -> Mentorship:
        """Either party concludes an active mentorship"""
        with self.unit_of_work("complete"):
            mentorship = self.validator.get_mentorship_or_404(mentorship_id, for_update=True)
            self.validator.require_party(mentorship, actor_id)
            self.validator.validate_mentorship_status(mentorship, MentorshipStatus.ACTIVE)
            event = self._transition(mentorship, MentorshipStatus.ACTIVE, MentorshipStatus.COMPLETED, actor_id)
        return self._finish(mentorship, event)

    def get_mentorship(self, mentorship_id: int) -> Mentorship:
        return self.validator.get_mentorship_or_404(mentorship_id)

    def get_mentorships_for_user(
        self, user_id: int, statuses: Optional[Iterable[MentorshipStatus]] = None
    ) -> List[Mentorship]:
        """All mentorships the user takes part in, newest first, optionally filtered by status"""
        return self.repository.find_for_user(user_id, statuses)

    def find_available_mentors(self, mentee_id: int) -> List[AvailableMentor]:
        """
        Mentors the mentee could request right now: active, same pairing attribute,
        and no pending or active mentorship with this mentee. Ordered by name.
        """
        mentee = self.directory.get_user(mentee_id)
        if mentee.role != UserRole.MENTEE:
            raise ForbiddenError(ErrorMessages.MENTEE_ONLY, user_id=mentee_id, role=mentee.role.value)
        if not self.pairing.is_recognised(mentee.match_attribute):
            raise MissingAttributeError(ErrorMessages.MENTEE_ATTRIBUTE_MISSING, user_id=mentee_id, side="mentee")

        return [
            AvailableMentor(
                id=user.id,
                full_name=user.full_name,
                email=user.email,
                match_attribute=normalize_attribute(user.gender),
                active_mentee_count=count,
            )
            for user, count in self.repository.find_available_mentors(mentee_id, mentee.match_attribute)
        ]

    def _transition(
        self,
        mentorship: Mentorship,
        from_status: MentorshipStatus,
        to_status: MentorshipStatus,
        actor_id: int,
        **values,
    ) -> MentorshipEvent:
        now = self.clock()
        if not self.repository.update_status(mentorship, from_status, to_status, now, **values):
            raise InvalidStatusTransitionError(
                f"Mentorship is no longer {from_status.value}",
                mentorship_id=mentorship.id,
                status=from_status.value,
            )
        return self._event(mentorship, from_status, to_status, actor_id, now)

    def _event(
        self,
        mentorship: Mentorship,
        from_status: Optional[MentorshipStatus],
        to_status: MentorshipStatus,
        actor_id: int,
        occurred_at: datetime,
    ) -> MentorshipEvent:
        return MentorshipEvent(
            mentorship_id=mentorship.id,
            mentor_id=mentorship.mentor_id,
            mentee_id=mentorship.mentee_id,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            occurred_at=occurred_at,
            notes=mentorship.notes,
        )

    def _finish(self, mentorship: Mentorship, event: MentorshipEvent) -> Mentorship:
        self.db.refresh(mentorship)
        logger.info(
            f"Mentorship {event.mentorship_id}: {event.from_status.value if event.from_status else 'new'}"
            f" -> {event.to_status.value} by user {event.actor_id}"
        )
        self.publish(event)
        return mentorship
