"""Serialize writes to a single pup's calendar.

An overlap check followed by an insert is only safe if nobody else writes
the same pup's calendar in between. Two layers cover this:

    - a process-local lock per pup, for concurrent requests handled by the
      same worker process
    - ``SELECT ... FOR UPDATE`` on the pup row, which row-locking databases
      (PostgreSQL, MySQL) hold until the transaction ends. SQLite ignores
      the clause and already serializes writers at the file level.
"""
import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

from sqlmodel import Session, select

from dogcal.models import Pup

_registry_lock = threading.Lock()
# Entries disappear once no request holds or waits on the pup's lock
_pup_locks: "weakref.WeakValueDictionary[UUID, threading.Lock]" = (
    weakref.WeakValueDictionary()
)


def _lock_for(pup_id: UUID) -> threading.Lock:
    with _registry_lock:
        lock = _pup_locks.get(pup_id)
        if lock is None:
            lock = _pup_locks[pup_id] = threading.Lock()
        return lock


@contextmanager
def pup_calendar_lock(session: Session, pup_id: UUID) -> Iterator[None]:
    """Hold the pup's calendar for the duration of a check-then-write."""
    lock = _lock_for(pup_id)
    with lock:
        session.exec(select(Pup.id).where(Pup.id == pup_id).with_for_update()).first()
        yield
