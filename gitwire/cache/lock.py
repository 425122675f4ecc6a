"""Per-key locks serializing fetches of the same remote.

Locks are created lazily and kept for the life of the manager; the table
grows with the number of distinct keys in one config.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from gitwire.errors import LockError

logger = logging.getLogger(__name__)


class RepositoryLockManager:
    """Exclusive locks keyed by cache key."""

    def __init__(self, timeout: float | None = None) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()
        self._timeout = timeout

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def acquire(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the ``with`` block.

        Blocks until the lock is free. The lock is released on every exit
        path, including exceptions raised inside the block.
        """
        lock = self._lock_for(key)
        timeout = -1 if self._timeout is None else self._timeout
        if not lock.acquire(timeout=timeout):
            raise LockError(f"timed out after {self._timeout}s waiting for lock {key}")
        try:
            yield
        finally:
            self._release(key, lock)

    def try_acquire(self, key: str) -> bool:
        """Take the lock for ``key`` without blocking.

        Returns False if another caller holds it. On True the caller owns the
        lock and must hand it back with :meth:`release`.
        """
        acquired = self._lock_for(key).acquire(blocking=False)
        if not acquired:
            logger.debug(f"Lock {key} is busy")
        return acquired

    def release(self, key: str) -> None:
        """Release a lock taken with :meth:`try_acquire`."""
        with self._guard:
            lock = self._locks.get(key)
        if lock is None:
            raise LockError(f"release of unknown lock {key}")
        self._release(key, lock)

    def is_locked(self, key: str) -> bool:
        with self._guard:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @staticmethod
    def _release(key: str, lock: threading.Lock) -> None:
        try:
            lock.release()
        except RuntimeError as e:
            raise LockError(f"lock {key} released while not held") from e
