"""
Concurrency management for the record collections.
"""

import threading
from contextlib import contextmanager
from enum import Enum
from typing import Dict, List, Optional

from ..core.exceptions import ConcurrencyError


class Resource(Enum):
    """Lockable collections, declared in their fixed acquisition order."""
    IDENTITY = 1
    COURSES = 2
    ENROLLMENTS = 3


class ConcurrencyManager:
    """One re-entrant lock per collection, always taken in ``Resource`` order.

    Read-then-write sequences such as get-or-create must hold every lock they
    touch for their whole duration. Taking the locks in a single global order
    rules out deadlock between callers that need several collections.
    """

    def __init__(self, default_timeout: Optional[float] = None):
        self._default_timeout = default_timeout
        self._locks: Dict[Resource, threading.RLock] = {
            resource: threading.RLock() for resource in Resource
        }
        self._local = threading.local()
        self._stats_lock = threading.Lock()
        self._acquisitions = 0
        self._timeouts = 0

    def _held(self) -> List[Resource]:
        if not hasattr(self._local, "held"):
            self._local.held = []
        return self._local.held

    def acquire(self, resource: Resource, timeout: Optional[float] = None) -> None:
        """Acquire one collection lock, refusing out-of-order requests."""
        held = self._held()
        if resource not in held and any(h.value > resource.value for h in held):
            raise ConcurrencyError(
                f"Lock order violation: {resource.name} requested while holding "
                f"{', '.join(h.name for h in held)}"
            )

        timeout = self._default_timeout if timeout is None else timeout
        acquired = self._locks[resource].acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            with self._stats_lock:
                self._timeouts += 1
            raise ConcurrencyError(f"Timed out acquiring {resource.name} lock")

        held.append(resource)
        with self._stats_lock:
            self._acquisitions += 1

    def release(self, resource: Resource) -> None:
        held = self._held()
        # Release the most recent hold of this resource.
        for index in range(len(held) - 1, -1, -1):
            if held[index] is resource:
                del held[index]
                break
        else:
            raise ConcurrencyError(f"{resource.name} lock is not held by this thread")
        self._locks[resource].release()

    @contextmanager
    def lock(self, *resources: Resource, timeout: Optional[float] = None):
        """Context manager acquiring ``resources`` in fixed order."""
        acquired: List[Resource] = []
        try:
            for resource in sorted(set(resources), key=lambda r: r.value):
                self.acquire(resource, timeout)
                acquired.append(resource)
            yield
        finally:
            for resource in reversed(acquired):
                self.release(resource)

    def get_statistics(self) -> Dict[str, int]:
        with self._stats_lock:
            return {
                'acquisitions': self._acquisitions,
                'timeouts': self._timeouts,
            }
