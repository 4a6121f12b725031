# mentorship_engine/dependencies/service_dependencies.py
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Optional
from sqlalchemy.orm import Session
from ..config import get_settings
from ..core.notifications import ActivityLogHook, LoggingNotificationHook, NotificationDispatcher
from ..database import SessionLocal
from ..services.identity_service import IdentityDirectory
from ..services.mentorship_service import MentorshipService
from ..services.pairing_service import PairingValidator
from ..services.scheduling_service import SchedulingService
from ..services.statistics_service import StatisticsService

@lru_cache()
def get_notification_dispatcher() -> NotificationDispatcher:
    """Process-wide dispatcher: application log plus the activity_logs audit trail."""
    settings = get_settings()
    executor = None
    if settings.NOTIFICATION_ASYNC:
        executor = ThreadPoolExecutor(
            max_workers=settings.NOTIFICATION_MAX_WORKERS, thread_name_prefix="notifications"
        )
    return NotificationDispatcher(
        hooks=[LoggingNotificationHook(), ActivityLogHook(SessionLocal)],
        executor=executor,
    )

def get_mentorship_service(db: Session, dispatcher: Optional[NotificationDispatcher] = None) -> MentorshipService:
    return MentorshipService(db, dispatcher or get_notification_dispatcher())

def get_scheduling_service(db: Session, dispatcher: Optional[NotificationDispatcher] = None) -> SchedulingService:
    return SchedulingService(db, dispatcher or get_notification_dispatcher())

def get_pairing_validator(db: Session) -> PairingValidator:
    return PairingValidator(IdentityDirectory(db))

def get_statistics_service(db: Session) -> StatisticsService:
    return StatisticsService(db)
