"""Tests for per-pup calendar locking."""

import gc
import threading
from uuid import uuid4

from dogcal.scheduling import locks
from dogcal.scheduling.locks import pup_calendar_lock


def test_same_pup_shares_one_lock_while_in_use(session, pup):
    with pup_calendar_lock(session, pup.id):
        held = locks._pup_locks[pup.id]
        assert locks._lock_for(pup.id) is held
        assert held.locked()


def test_lock_dropped_once_unused(session, pup):
    with pup_calendar_lock(session, pup.id):
        assert pup.id in locks._pup_locks
    gc.collect()
    assert pup.id not in locks._pup_locks


def test_registry_does_not_grow_with_pups():
    for _ in range(100):
        locks._lock_for(uuid4())
    gc.collect()
    assert len(locks._pup_locks) == 0


def test_second_writer_waits_for_the_first(session, pup):
    entered = threading.Event()

    def contender():
        with locks._lock_for(pup.id):
            entered.set()

    with pup_calendar_lock(session, pup.id):
        worker = threading.Thread(target=contender)
        worker.start()
        assert not entered.wait(timeout=0.1)
    worker.join(timeout=1)
    assert entered.is_set()
