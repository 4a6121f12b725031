from datetime import datetime, timedelta
from typing import Optional
from pydantic import BaseModel, Field, computed_field
from .models import MentorshipStatus, SessionStatus, UserRole

# --- Identity ---

class UserIdentity(BaseModel):
    id: int
    role: UserRole
    match_attribute: Optional[str] = Field(None, description="Lower-cased pairing attribute; None when unset.")
    active: bool
    full_name: Optional[str] = None
    email: Optional[str] = None

class PairingCheck(BaseModel):
    mentor_id: int
    mentee_id: int
    ok: bool
    error_code: Optional[str] = None
    message: str = ""

class AvailableMentor(BaseModel):
    id: int
    full_name: str
    email: str
    match_attribute: str
    active_mentee_count: int = Field(0, description="Mentorships the mentor currently has in the active state.")

class UserStatistics(BaseModel):
    user_id: int
    active_mentorships: int = 0
    completed_mentorships: int = 0
    completed_sessions: int = 0
    upcoming_sessions: int = 0

# --- Output Models ---

class MentorshipResponse(BaseModel):
    id: int
    mentor_id: int
    mentor_name: Optional[str] = None # populated dynamically from relationships
    mentee_id: int
    mentee_name: Optional[str] = None # populated dynamically from relationships
    status: MentorshipStatus
    requested_at: datetime
    updated_at: datetime
    notes: Optional[str]

    model_config = {
        "from_attributes": True,
        "arbitrary_types_allowed": True
    }

class SessionResponse(BaseModel):
    id: int
    mentorship_id: int
    title: str
    description: Optional[str]
    scheduled_start: datetime
    duration_minutes: int
    status: SessionStatus
    meeting_link: Optional[str]
    created_by: int
    cancelled_by: Optional[int]
    cancellation_reason: Optional[str]

    model_config = {
        "from_attributes": True,
        "arbitrary_types_allowed": True
    }

    @computed_field
    @property
    def scheduled_end(self) -> datetime:
        return self.scheduled_start + timedelta(minutes=self.duration_minutes)

# --- Domain Events ---

class MentorshipEvent(BaseModel):
    """Published after a mentorship transition has been committed."""
    mentorship_id: int
    mentor_id: int
    mentee_id: int
    from_status: Optional[MentorshipStatus] = Field(None, description="None when the request was just created.")
    to_status: MentorshipStatus
    actor_id: int
    occurred_at: datetime
    notes: Optional[str] = None

    @property
    def action(self) -> str:
        if self.from_status is None:
            return "mentorship_requested"
        return f"mentorship_{self.to_status.value}"

class SessionEvent(BaseModel):
    """Published after a session transition has been committed."""
    session_id: int
    mentorship_id: int
    from_status: Optional[SessionStatus] = Field(None, description="None when the session was just created.")
    to_status: SessionStatus
    actor_id: int
    scheduled_start: datetime
    duration_minutes: int
    occurred_at: datetime

    @property
    def action(self) -> str:
        if self.from_status is None:
            return "session_created"
        return f"session_{self.to_status.value}"
