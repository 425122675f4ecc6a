"""Cache of materialized checkouts, one per cache key per run.

For N entries sharing ``(url, branch, commit)`` exactly one fetch happens,
in sequential and parallel mode alike:

1. derive the key
2. take the key's lock
3. look the key up again (another worker may have filled it meanwhile)
4. fetch and register only if it is still missing

A failed fetch leaves the key unregistered, so a later entry retries it.
"""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gitwire.cache.keys import CacheKeyGenerator
from gitwire.cache.lock import RepositoryLockManager
from gitwire.checkout import Checkout
from gitwire.errors import CheckoutError
from gitwire.models.cached_repo import CachedRepository
from gitwire.models.entry import CheckoutMethod, ConfigEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyPlan:
    """How the checkout for one key is fetched.

    An empty ``sparse_paths`` means the full tree is checked out.
    """

    method: CheckoutMethod
    sparse_paths: tuple[str, ...] = ()


def plan_keys(entries: Iterable[ConfigEntry]) -> dict[str, KeyPlan]:
    """Group entries by cache key and decide method and sparse paths per key.

    The first entry of a key picks the method. Sparse checkout is dropped for
    the key as soon as one entry needs the whole tree or asks for
    ``shallow_no_sparse``.
    """
    methods: dict[str, CheckoutMethod] = {}
    paths: dict[str, set[str] | None] = {}

    for entry in entries:
        key = CacheKeyGenerator.generate_key(entry)
        methods.setdefault(key, entry.checkout_method)
        needs_full_tree = (
            entry.is_whole_tree or entry.checkout_method == CheckoutMethod.SHALLOW_NO_SPARSE
        )
        if needs_full_tree:
            paths[key] = None
        elif key not in paths:
            paths[key] = {"/".join(entry.src_parts)}
        elif paths[key] is not None:
            paths[key].add("/".join(entry.src_parts))

    return {
        key: KeyPlan(method=methods[key], sparse_paths=tuple(sorted(paths[key] or ())))
        for key in methods
    }


class CacheManager:
    """Maps cache keys to checkouts under ``root``."""

    def __init__(
        self,
        checkout: Checkout,
        root: Path,
        locks: RepositoryLockManager | None = None,
    ) -> None:
        self.checkout = checkout
        self.root = root
        self.locks = locks or RepositoryLockManager()
        self._repos: dict[str, CachedRepository] = {}
        self._plans: dict[str, KeyPlan] = {}
        self._guard = threading.RLock()
        self._stats = {"fetches": 0, "hits": 0, "failures": 0}

    def plan(self, entries: Iterable[ConfigEntry]) -> dict[str, KeyPlan]:
        """Record per-key fetch plans for a run before any fetch starts."""
        plans = plan_keys(entries)
        with self._guard:
            self._plans.update(plans)
        return plans

    def get(self, key: str) -> CachedRepository | None:
        """Registered checkout for ``key``, if any. Never fetches."""
        with self._guard:
            return self._repos.get(key)

    def get_or_fetch(self, entry: ConfigEntry) -> CachedRepository:
        """Return the checkout for ``entry``'s key, fetching it on first use."""
        key = CacheKeyGenerator.generate_key(entry)

        with self.locks.acquire(key):
            cached = self.get(key)
            if cached is not None:
                with self._guard:
                    self._stats["hits"] += 1
                logger.debug(f"Reusing checkout {key} for {entry.source_url}")
                return cached

            with self._guard:
                plan = self._plans.get(key)
            if plan is None:
                plan = plan_keys([entry])[key]

            destination = self.root / key
            if destination.exists():
                shutil.rmtree(destination)

            try:
                materialized = self.checkout.materialize(
                    entry.source_url,
                    entry.branch,
                    entry.commit_hash,
                    destination,
                    method=plan.method,
                    sparse_paths=plan.sparse_paths,
                )
            except CheckoutError as e:
                with self._guard:
                    self._stats["failures"] += 1
                raise type(e)(e.url, e.detail, key=key) from e

            repo = CachedRepository(
                key=key,
                path=materialized.path,
                source_url=entry.source_url,
                branch=entry.branch,
                method=plan.method,
                commit=materialized.commit,
                sparse_paths=plan.sparse_paths,
            )
            with self._guard:
                self._repos[key] = repo
                self._stats["fetches"] += 1
            return repo

    def clear(self) -> int:
        """Forget all checkouts and delete their directories."""
        with self._guard:
            repos = list(self._repos.values())
            self._repos.clear()
        for repo in repos:
            shutil.rmtree(repo.path, ignore_errors=True)
        return len(repos)

    def __len__(self) -> int:
        with self._guard:
            return len(self._repos)

    @property
    def stats(self) -> dict[str, Any]:
        """Fetch and reuse counters for this run."""
        with self._guard:
            return {**self._stats, "size": len(self._repos)}
