"""Applying an operation to every config entry, sequentially or in parallel."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum

from gitwire.cache.manager import CacheManager
from gitwire.errors import GitWireError, LockError
from gitwire.models.entry import ConfigEntry
from gitwire.models.result import AggregateResult, OperationResult
from gitwire.operations.base import Operation

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """Execution mode of a run."""

    SEQUENTIAL = "sequential"  # config order, calling thread
    PARALLEL = "parallel"  # thread pool; the cache's key locks keep fetches unique


class Sequencer:
    """Runs one operation over all entries and collects every result.

    A failing entry never stops the others, so one run reports all problems.
    Only a :class:`LockError` aborts the run.
    """

    def __init__(self, cache: CacheManager, workers: int | None = None) -> None:
        self.cache = cache
        self.workers = workers

    def run(
        self,
        entries: Iterable[ConfigEntry],
        operation: Operation,
        mode: Mode = Mode.PARALLEL,
    ) -> AggregateResult:
        entries = list(entries)
        if operation.requires_cache:
            self.cache.plan(entries)

        labels = [entry.label(index) for index, entry in enumerate(entries)]
        logger.info(f"{operation.name} started for {len(entries)} entries ({mode.value})")

        if mode == Mode.SEQUENTIAL:
            results = [
                self._apply_one(operation, entry, label) for entry, label in zip(entries, labels)
            ]
        else:
            results = self._run_parallel(operation, entries, labels)

        aggregate = AggregateResult(results)
        logger.info(
            f"{operation.name} finished: {len(aggregate) - len(aggregate.failed)} ok, "
            f"{len(aggregate.failed)} failed"
        )
        return aggregate

    def _run_parallel(
        self, operation: Operation, entries: list[ConfigEntry], labels: list[str]
    ) -> list[OperationResult]:
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="git-wire") as pool:
            futures: list[Future[OperationResult]] = [
                pool.submit(self._apply_one, operation, entry, label)
                for entry, label in zip(entries, labels)
            ]
            try:
                # Collected in submission order so results follow the config
                return [future.result() for future in futures]
            except LockError:
                for future in futures:
                    future.cancel()
                raise

    def _apply_one(
        self, operation: Operation, entry: ConfigEntry, label: str
    ) -> OperationResult:
        try:
            repo = self.cache.get_or_fetch(entry) if operation.requires_cache else None
            return operation.apply(entry, label, repo)
        except LockError:
            raise
        except (GitWireError, OSError) as e:
            logger.error(f"{label}: {e}")
            return OperationResult(label=label, success=False, error=str(e))
