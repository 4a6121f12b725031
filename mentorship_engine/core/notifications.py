import logging
from concurrent.futures import Executor, Future
from typing import Callable, List, Optional, Protocol, Union

from sqlalchemy.orm import Session

from ..models import ActivityLog
from ..schemas import MentorshipEvent, SessionEvent

logger = logging.getLogger(__name__)

DomainEvent = Union[MentorshipEvent, SessionEvent]


class NotificationHook(Protocol):
    def notify(self, event: DomainEvent) -> None:
        ...


class LoggingNotificationHook:
    """Writes every event to the application log."""

    def notify(self, event: DomainEvent) -> None:
        logger.info(f"{event.action}: {event.model_dump_json()}")


class ActivityLogHook:
    """
    Records each event in the activity_logs table through its own session,
    so a failed audit write never touches the caller's transaction.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def notify(self, event: DomainEvent) -> None:
        db = self.session_factory()
        try:
            db.add(ActivityLog(
                user_id=event.actor_id,
                action=event.action,
                details=event.model_dump(mode="json"),
            ))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class NotificationDispatcher:
    """
    Fans committed domain events out to the registered hooks.

    Delivery is best-effort: hook failures are logged and never reach the
    caller. With an executor, hooks run on its workers and publish() returns
    without waiting for them.
    """

    def __init__(self, hooks: Optional[List[NotificationHook]] = None, executor: Optional[Executor] = None):
        self.hooks: List[NotificationHook] = list(hooks or [])
        self.executor = executor

    def add_hook(self, hook: NotificationHook):
        self.hooks.append(hook)

    def publish(self, event: DomainEvent) -> List[Future]:
        futures = []
        for hook in self.hooks:
            if self.executor is None:
                self._deliver(hook, event)
            else:
                futures.append(self.executor.submit(self._deliver, hook, event))
        return futures

    def _deliver(self, hook: NotificationHook, event: DomainEvent):
        try:
            hook.notify(event)
        except Exception as e:
            logger.error(f"Notification hook {type(hook).__name__} failed for {event.action}: {e}", exc_info=True)

    def shutdown(self, wait: bool = True):
        if self.executor is not None:
            self.executor.shutdown(wait=wait)
