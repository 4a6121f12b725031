"""
Mentorship Repository

Data access for mentorship records. Repositories never commit: the calling
service owns the transaction, so every query here runs inside the caller's
unit of work.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..models import Mentorship, MentorshipStatus, OPEN_MENTORSHIP_STATUSES, OPEN_PAIR_INDEX, User, UserRole

logger = logging.getLogger(__name__)


def _values(statuses: Iterable[MentorshipStatus]) -> List[str]:
    return [MentorshipStatus(s).value for s in statuses]


def is_open_pair_violation(error: IntegrityError) -> bool:
    """True when the error was raised by the one-open-mentorship-per-pair index."""
    constraint = getattr(getattr(error.orig, "diag", None), "constraint_name", None)
    if constraint:
        return constraint == OPEN_PAIR_INDEX
    # SQLite reports the indexed columns rather than the index name
    message = str(error.orig)
    return OPEN_PAIR_INDEX in message or "mentorships.mentor_id, mentorships.mentee_id" in message


class MentorshipRepository:
    def __init__(self, db: Session):
        self.db = db

    def find(self, mentorship_id: int, for_update: bool = False) -> Optional[Mentorship]:
        """Fetches one mentorship; ``for_update`` row-locks it where the dialect supports it."""
        query = self.db.query(Mentorship).filter(Mentorship.id == mentorship_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_open_by_pair(self, mentor_id: int, mentee_id: int) -> Optional[Mentorship]:
        return self.db.query(Mentorship).filter(
            Mentorship.mentor_id == mentor_id,
            Mentorship.mentee_id == mentee_id,
            Mentorship.status.in_(_values(OPEN_MENTORSHIP_STATUSES))
        ).first()

    def find_for_user(self, user_id: int, statuses: Optional[Iterable[MentorshipStatus]] = None) -> List[Mentorship]:
        """All mentorships the user is a party to, newest request first, with both users loaded."""
        query = self.db.query(Mentorship).options(
            joinedload(Mentorship.mentor),
            joinedload(Mentorship.mentee)
        ).filter(
            (Mentorship.mentor_id == user_id) | (Mentorship.mentee_id == user_id)
        )
        if statuses:
            query = query.filter(Mentorship.status.in_(_values(statuses)))
        return query.order_by(Mentorship.requested_at.desc(), Mentorship.id.desc()).all()

    def count_for_user(self, user_id: int, role: UserRole, status: MentorshipStatus) -> int:
        column = Mentorship.mentor_id if role == UserRole.MENTOR else Mentorship.mentee_id
        return self.db.query(Mentorship).filter(
            column == user_id,
            Mentorship.status == MentorshipStatus(status).value
        ).count()

    def find_available_mentors(self, mentee_id: int, match_attribute: str) -> List[Tuple[User, int]]:
        """
        Active mentors sharing ``match_attribute`` that the mentee has no pending or
        active mentorship with, each paired with their count of active mentorships.
        """
        active_counts = select(
            Mentorship.mentor_id.label("mentor_id"),
            func.count(Mentorship.id).label("active_mentee_count")
        ).where(
            Mentorship.status == MentorshipStatus.ACTIVE.value
        ).group_by(Mentorship.mentor_id).subquery()

        already_open = select(Mentorship.mentor_id).where(
            Mentorship.mentee_id == mentee_id,
            Mentorship.status.in_(_values(OPEN_MENTORSHIP_STATUSES))
        )

        rows = self.db.query(User, func.coalesce(active_counts.c.active_mentee_count, 0)).outerjoin(
            active_counts, active_counts.c.mentor_id == User.id
        ).filter(
            User.role == UserRole.MENTOR.value,
            User.is_active.is_(True),
            User.id != mentee_id,
            func.lower(func.trim(User.gender)) == match_attribute,
            User.id.not_in(already_open)
        ).order_by(User.full_name, User.id).all()
        return [(user, int(count)) for user, count in rows]

    def insert(self, mentorship: Mentorship) -> Mentorship:
        """Adds and flushes so the id is assigned; uniqueness violations surface here."""
        self.db.add(mentorship)
        self.db.flush()
        return mentorship

    def update_status(
        self,
        mentorship: Mentorship,
        expected_status: MentorshipStatus,
        new_status: MentorshipStatus,
        updated_at: datetime,
        **values,
    ) -> bool:
        """
        Compare-and-set transition. Returns False when the stored status no longer
        equals ``expected_status`` (a concurrent transition won the row).
        """
        result = self.db.execute(
            update(Mentorship)
            .where(Mentorship.id == mentorship.id, Mentorship.status == MentorshipStatus(expected_status).value)
            .values(status=MentorshipStatus(new_status).value, updated_at=updated_at, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Mentorship {mentorship.id} left {expected_status.value} before it could move to {new_status.value}")
            return False
        self.db.refresh(mentorship)
        return True
