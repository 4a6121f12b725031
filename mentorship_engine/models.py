from enum import Enum
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Boolean, ForeignKey, Index, Sequence, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .database import Base

class UserRole(str, Enum):
    MENTOR = "mentor"
    MENTEE = "mentee"

# Enum for Mentorship Status
class MentorshipStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    DECLINED = "declined" # Mentor turned the request down
    CANCELLED = "cancelled" # Either party withdrew a pending or active mentorship
    COMPLETED = "completed" # Mentorship successfully concluded

OPEN_MENTORSHIP_STATUSES = (MentorshipStatus.PENDING, MentorshipStatus.ACTIVE)

OPEN_PAIR_INDEX = "uq_mentorships_open_pair"

class SessionStatus(str, Enum):
    PENDING = "pending" # Requested by the mentee, awaiting mentor approval
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled" # Also the status of a session the mentor declined
    COMPLETED = "completed"

# Sessions in these states reserve their time slot
OPEN_SESSION_STATUSES = (SessionStatus.PENDING, SessionStatus.SCHEDULED)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, Sequence('user_id_seq'), primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, nullable=False)
    gender = Column(String, nullable=True) # Pairing attribute; unset means an incomplete profile
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, role='{self.role}', email='{self.email}')>"


class Mentorship(Base):
    __tablename__ = "mentorships"
    __table_args__ = (
        # At most one open mentorship per pair; closed history rows are not constrained
        Index(
            OPEN_PAIR_INDEX,
            "mentor_id",
            "mentee_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'active')"),
            sqlite_where=text("status IN ('pending', 'active')"),
        ),
    )

    id = Column(Integer, Sequence('mentorship_id_seq'), primary_key=True, index=True)

    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    mentee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String, default=MentorshipStatus.PENDING.value, nullable=False)

    requested_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)

    mentor = relationship("User", foreign_keys=[mentor_id], viewonly=True)
    mentee = relationship("User", foreign_keys=[mentee_id], viewonly=True)
    sessions = relationship("MentorshipSession", back_populates="mentorship", order_by="MentorshipSession.scheduled_start")

    def __repr__(self):
        return f"<Mentorship(id={self.id}, mentor_id={self.mentor_id}, mentee_id={self.mentee_id}, status='{self.status}')>"


class MentorshipSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, Sequence('session_id_seq'), primary_key=True, index=True)
    mentorship_id = Column(Integer, ForeignKey("mentorships.id"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    scheduled_start = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String, default=SessionStatus.PENDING.value, nullable=False)
    meeting_link = Column(String, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    mentorship = relationship("Mentorship", back_populates="sessions")

    def __repr__(self):
        return f"<MentorshipSession(id={self.id}, mentorship_id={self.mentorship_id}, start={self.scheduled_start}, status='{self.status}')>"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, Sequence('activity_log_id_seq'), primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String, nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ActivityLog(id={self.id}, user_id={self.user_id}, action='{self.action}')>"
