import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..core.intervals import utc_now
from ..core.notifications import DomainEvent, NotificationDispatcher
from ..exceptions import BusinessLogicError, RepositoryFailure

logger = logging.getLogger(__name__)


class BaseService:
    """
    Shared plumbing for the mutating services: one SQLAlchemy session per
    service, an injectable clock, and post-commit event publication.
    """

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.settings = get_settings()
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.clock = clock or utc_now

    @contextmanager
    def unit_of_work(self, operation: str) -> Iterator[None]:
        """
        Runs the block as one transaction. Any exception rolls back; storage errors
        surface as RepositoryFailure, everything else propagates unchanged.
        """
        try:
            yield
            self.db.commit()
        except BusinessLogicError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error during {operation}: {e}")
            raise RepositoryFailure(f"Database error during {operation}", operation=operation) from e
        except Exception:
            self.db.rollback()
            raise

    def publish(self, event: DomainEvent):
        """Hands a committed event to the dispatcher; never raises."""
        try:
            self.dispatcher.publish(event)
        except Exception as e:
            logger.error(f"Failed to publish {event.action}: {e}", exc_info=True)
