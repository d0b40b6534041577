import threading

import pytest

from registrar.core.exceptions import ConcurrencyError
from registrar.services.concurrency_manager import ConcurrencyManager, Resource


def test_locks_are_taken_in_fixed_order():
    manager = ConcurrencyManager()

    with manager.lock(Resource.ENROLLMENTS, Resource.IDENTITY, Resource.COURSES):
        pass

    assert manager.get_statistics() == {'acquisitions': 3, 'timeouts': 0}


def test_out_of_order_request_is_refused():
    manager = ConcurrencyManager()

    with manager.lock(Resource.ENROLLMENTS):
        with pytest.raises(ConcurrencyError):
            with manager.lock(Resource.IDENTITY):
                pass
        # Re-entering a held lock is fine.
        with manager.lock(Resource.ENROLLMENTS):
            pass


def test_timeout_is_reported():
    manager = ConcurrencyManager(default_timeout=0.05)
    held = threading.Event()
    done = threading.Event()

    def holder():
        with manager.lock(Resource.COURSES):
            held.set()
            done.wait(2)

    thread = threading.Thread(target=holder)
    thread.start()
    held.wait(2)
    try:
        with pytest.raises(ConcurrencyError):
            with manager.lock(Resource.COURSES):
                pass
    finally:
        done.set()
        thread.join()

    assert manager.get_statistics()['timeouts'] == 1


def test_release_of_unheld_lock_fails():
    with pytest.raises(ConcurrencyError):
        ConcurrencyManager().release(Resource.IDENTITY)
