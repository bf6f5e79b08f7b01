"""Per-item mutual exclusion for replace and retry-sync runs.

Two replaces on the same item would otherwise both capture the same retired
generation, or one would retire the other's half-synced generation. Locks are
process-local: the service runs as a single process.
"""

import threading
from contextlib import contextmanager
from typing import Generator, Hashable

from .errors import ReplaceInProgressError


class _ItemLock:
    """A lock plus the number of runs holding or waiting for it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class ItemLockRegistry:
    """Hands out one lock per key (a PricedItemRef).

    Entries exist only while some run holds or waits for the key, so the
    registry does not grow with the number of items ever repriced.
    """

    def __init__(self):
        self._locks: dict[Hashable, _ItemLock] = {}
        self._guard = threading.Lock()

    def _checkout(self, key: Hashable) -> _ItemLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _ItemLock()
                self._locks[key] = entry
            entry.users += 1
            return entry

    def _checkin(self, key: Hashable, entry: _ItemLock) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable, timeout: float = 30.0) -> Generator[None, None, None]:
        """Hold the lock for key.

        Raises:
            ReplaceInProgressError: If the lock is not acquired within timeout seconds
        """
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(timeout=timeout):
                raise ReplaceInProgressError(
                    f"Another price update for {key} is still running; try again shortly"
                )
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(key, entry)


# Shared by every request in the process
item_locks = ItemLockRegistry()
