import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class KeyedLock:
    """
    Process-local mutex per string key.

    Entries are reference counted so the registry only holds keys that
    somebody is currently waiting on or holding.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, List] = {}  # key -> [lock, holders]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def active_keys(self) -> List[str]:
        with self._guard:
            return list(self._locks)


# Shared by every service instance in the process
keyed_locks = KeyedLock()


def get_dialect_name(db: Session) -> str:
    bind = db.get_bind()
    return bind.dialect.name if bind is not None else ""


def acquire_advisory_lock(db: Session, key: str) -> bool:
    """
    Takes a transaction-scoped PostgreSQL advisory lock on ``key``; it is
    released by the next commit or rollback. Other dialects rely on the
    in-process lock and the schema's uniqueness guards. Returns whether a
    database lock was taken.
    """
    if get_dialect_name(db) != "postgresql":
        return False
    db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})
    logger.debug(f"Advisory lock acquired for {key}")
    return True
