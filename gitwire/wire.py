"""Main GitWire class - one entry point for sync and check runs."""

from __future__ import annotations

from pathlib import Path

from gitwire.cache.lock import RepositoryLockManager
from gitwire.cache.manager import CacheManager
from gitwire.checkout import Checkout, GitCheckout
from gitwire.config import load_config, select_entries
from gitwire.models.entry import ConfigEntry
from gitwire.models.result import AggregateResult
from gitwire.operations.base import Operation
from gitwire.operations.check import CheckOperation
from gitwire.operations.sync import SyncOperation
from gitwire.sequence import Mode, Sequencer
from gitwire.settings import GitWireSettings
from gitwire.workspace import workspace


class GitWire:
    """Sync and check the entries wired into one repository."""

    def __init__(
        self,
        root: str | Path,
        entries: list[ConfigEntry],
        settings: GitWireSettings | None = None,
        checkout: Checkout | None = None,
    ) -> None:
        self.root = Path(root)
        self.entries = entries
        self.settings = settings or GitWireSettings()
        self.checkout = checkout or GitCheckout(
            self.settings.git_executable, timeout=self.settings.git_timeout
        )
        self.last_stats: dict | None = None

    @classmethod
    def from_repository(
        cls,
        root: str | Path | None = None,
        settings: GitWireSettings | None = None,
        checkout: Checkout | None = None,
    ) -> "GitWire":
        """Load the config of the repository at ``root`` (or the current one)."""
        settings = settings or GitWireSettings()
        repo_root, entries = load_config(
            Path(root) if root is not None else None,
            config_file=settings.config_file,
            git_executable=settings.git_executable,
        )
        return cls(repo_root, entries, settings=settings, checkout=checkout)

    def sync(self, name: str | None = None, mode: Mode = Mode.PARALLEL) -> AggregateResult:
        """Copy every selected entry from upstream into the working tree."""
        return self._run(name, mode, lambda ws: SyncOperation(self.root))

    def check(self, name: str | None = None, mode: Mode = Mode.PARALLEL) -> AggregateResult:
        """Verify every selected entry against a fresh upstream checkout."""
        return self._run(
            name, mode, lambda ws: CheckOperation(self.root, self.checkout, ws.check_dir)
        )

    def _run(self, name, mode, make_operation) -> AggregateResult:
        entries = select_entries(self.entries, name)
        with workspace(self.settings.temp_dir) as ws:
            operation: Operation = make_operation(ws)
            cache = CacheManager(self.checkout, ws.cache_dir, RepositoryLockManager())
            sequencer = Sequencer(cache, workers=self.settings.workers)
            result = sequencer.run(entries, operation, mode)
            self.last_stats = cache.stats
        return result
