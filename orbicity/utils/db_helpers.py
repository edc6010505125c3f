"""
Locking helpers for the availability check-then-write paths.

Booking creation, reschedule and channel reconciliation all read the
occupancy of one apartment type and then write to it. apartment_write_lock
makes that read and write atomic per apartment type; InFlightRegistry
keeps two syncs of the same feed from running side by side.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Optional, TypeVar, Type, Dict
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _dialect(db: Session) -> Optional[str]:
    try:
        return db.bind.dialect.name
    except AttributeError:
        return None


def is_postgres(db: Session) -> bool:
    return _dialect(db) == 'postgresql'


def acquire_row_lock(db: Session, model: Type[T], filter_condition, nowait: bool = False) -> Optional[T]:
    """
    Load one row, holding SELECT ... FOR UPDATE on PostgreSQL until the
    session commits or rolls back. SQLite has no row locks; there the
    plain row is returned and callers rely on the in-process lock.

    With nowait=True a row already locked by another transaction raises
    instead of waiting.
    """
    query = db.query(model).filter(filter_condition)
    if is_postgres(db):
        query = query.with_for_update(nowait=True) if nowait else query.with_for_update()
    return query.first()


class KeyedLocks:
    """
    Process-wide registry of one lock per key.

    Locks are created on first use and kept for the life of the process;
    the key space (apartment types) is small and fixed.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


_apartment_locks = KeyedLocks()


@contextmanager
def apartment_write_lock(db: Session, apartment_type_id: str):
    """
    Serialize every read-availability-then-write unit for one apartment type.

    Inside this scope the caller checks availability, writes, and commits.
    Within a process a per-type lock serializes callers; across processes
    the ApartmentType row is locked FOR UPDATE on PostgreSQL until the
    caller's commit or rollback.

    On exit without a commit (an exception) the session is rolled back so
    nothing half-validated is left pending.
    """
    from ..models.apartment_type import ApartmentType

    lock = _apartment_locks.get(apartment_type_id)
    with lock:
        try:
            acquire_row_lock(db, ApartmentType, ApartmentType.id == apartment_type_id)
            yield
        except Exception:
            logger.debug(f"Rolling back write for apartment type {apartment_type_id}")
            db.rollback()
            raise


class InFlightRegistry:
    """
    Tracks keys with work in progress so a second request for the same key
    is rejected instead of running in parallel.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._in_flight = set()

    def try_acquire(self, key: str) -> bool:
        with self._guard:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def release(self, key: str) -> None:
        with self._guard:
            self._in_flight.discard(key)

    def is_running(self, key: str) -> bool:
        with self._guard:
            return key in self._in_flight
