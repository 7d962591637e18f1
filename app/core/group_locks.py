from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class GroupLockRegistry:
    """
    One lock per group id, created on first use. Different groups never block each other.

    Entries are weak: a group's lock is dropped once nobody holds or waits on it, so the
    registry only grows with the number of groups in flight.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.RLock] = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def __contains__(self, group_id: str) -> bool:
        return group_id in self._locks

    def lock_for(self, group_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(group_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[group_id] = lock
            return lock

    @contextmanager
    def hold(self, group_id: str) -> Iterator[None]:
        # the local reference keeps the entry alive while held
        lock = self.lock_for(group_id)
        with lock:
            yield


group_locks = GroupLockRegistry()
