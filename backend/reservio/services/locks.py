"""Per-event critical sections.

Every check-then-act sequence on an event (capacity recount + insert,
recount + promote, status transitions) runs while holding that event's
in-process lock, and commits before the lock is released. Together with the
``SELECT ... FOR UPDATE`` row lock taken by the services this serializes
callers within one worker and across workers sharing a PostgreSQL database.
"""
import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from reservio.config import settings
from reservio.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


class KeyedLocks:
    """One ``threading.Lock`` per key, created on first use.

    Entries are weak: a key's lock lives only while some caller holds or
    waits on it, so ids that never turn out to exist leave nothing behind.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: str, timeout: float) -> Iterator[None]:
        lock = self._lock_for(key)
        if not lock.acquire(timeout=timeout):
            logger.warning("Timed out after %.1fs waiting for lock on %s", timeout, key)
            raise StoreUnavailableError("The event is busy, please try again.")
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        return len(self._locks)


event_locks = KeyedLocks()


@contextmanager
def event_transaction(db: Session, event_id: str, timeout: Optional[float] = None) -> Iterator[None]:
    """Run the body under ``event_id``'s lock and commit it as one unit.

    Any exception rolls the session back before it propagates, so a failed
    action never leaves partial state behind.
    """
    wait = settings.LOCK_TIMEOUT_SECONDS if timeout is None else timeout
    with event_locks.hold(event_id, wait):
        try:
            yield
            db.commit()
        except Exception:
            db.rollback()
            raise
