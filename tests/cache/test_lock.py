"""Tests for the per-key repository lock manager."""

from __future__ import annotations

import threading

import pytest

from gitwire.cache.lock import RepositoryLockManager
from gitwire.errors import LockError

KEY = "https://github.com/example/repo.git"


class TestRepositoryLockManager:
    def test_starts_empty(self) -> None:
        assert len(RepositoryLockManager()) == 0

    def test_locks_created_lazily_and_kept(self) -> None:
        locks = RepositoryLockManager()

        with locks.acquire(KEY):
            assert locks.is_locked(KEY)

        assert not locks.is_locked(KEY)
        assert len(locks) == 1

    def test_released_on_exception(self) -> None:
        locks = RepositoryLockManager()

        with pytest.raises(RuntimeError):
            with locks.acquire(KEY):
                raise RuntimeError("fetch failed")

        assert not locks.is_locked(KEY)

    def test_try_acquire_and_release(self) -> None:
        locks = RepositoryLockManager()

        assert locks.try_acquire(KEY) is True
        assert locks.is_locked(KEY)
        locks.release(KEY)
        assert not locks.is_locked(KEY)

    def test_try_acquire_while_held_by_other_thread(self) -> None:
        locks = RepositoryLockManager()
        held = threading.Event()
        done = threading.Event()

        def holder() -> None:
            with locks.acquire(KEY):
                held.set()
                done.wait(timeout=5)

        thread = threading.Thread(target=holder)
        thread.start()
        try:
            assert held.wait(timeout=5)
            assert locks.try_acquire(KEY) is False
            # Other keys are independent
            assert locks.try_acquire("other") is True
            locks.release("other")
        finally:
            done.set()
            thread.join(timeout=5)

        assert locks.try_acquire(KEY) is True
        locks.release(KEY)

    def test_concurrent_try_acquire_only_one_wins(self) -> None:
        locks = RepositoryLockManager()
        barrier = threading.Barrier(8)
        results: list[bool] = []
        results_lock = threading.Lock()

        def contender() -> None:
            barrier.wait(timeout=5)
            got = locks.try_acquire(KEY)
            with results_lock:
                results.append(got)

        threads = [threading.Thread(target=contender) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert results.count(True) == 1
        assert results.count(False) == 7
        locks.release(KEY)
        assert not locks.is_locked(KEY)

    def test_acquire_serializes_critical_sections(self) -> None:
        locks = RepositoryLockManager()
        inside = 0
        max_inside = 0
        counter_lock = threading.Lock()

        def worker() -> None:
            nonlocal inside, max_inside
            with locks.acquire(KEY):
                with counter_lock:
                    inside += 1
                    max_inside = max(max_inside, inside)
                threading.Event().wait(0.01)
                with counter_lock:
                    inside -= 1

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert max_inside == 1

    def test_release_not_held_is_an_error(self) -> None:
        locks = RepositoryLockManager()
        assert locks.try_acquire(KEY)
        locks.release(KEY)

        with pytest.raises(LockError):
            locks.release(KEY)

    def test_release_unknown_key_is_an_error(self) -> None:
        with pytest.raises(LockError):
            RepositoryLockManager().release("never-seen")

    def test_acquire_timeout_is_an_error(self) -> None:
        locks = RepositoryLockManager(timeout=0.05)
        assert locks.try_acquire(KEY)
        try:
            with pytest.raises(LockError):
                with locks.acquire(KEY):
                    pass
        finally:
            locks.release(KEY)
