from .mentorship_repository import MentorshipRepository
from .session_repository import SessionRepository

__all__ = ["MentorshipRepository", "SessionRepository"]
