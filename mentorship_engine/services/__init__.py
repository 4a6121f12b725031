from .identity_service import IdentityDirectory
from .pairing_service import PairingValidator
from .mentorship_service import MentorshipService
from .scheduling_service import SchedulingService
from .statistics_service import StatisticsService

__all__ = ["IdentityDirectory", "PairingValidator", "MentorshipService", "SchedulingService", "StatisticsService"]
