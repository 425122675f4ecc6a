"""Per-run temporary workspace holding every checkout of the run."""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Workspace:
    """Directory layout of one run's workspace."""

    root: Path

    @property
    def cache_dir(self) -> Path:
        """Shared checkouts, one directory per cache key."""
        return self.root / "cache"

    @property
    def check_dir(self) -> Path:
        """Throwaway checkouts made by the check operation."""
        return self.root / "check"


@contextmanager
def workspace(base_dir: str | Path | None = None) -> Iterator[Workspace]:
    """Create a workspace and remove it on exit, including error exits."""
    with tempfile.TemporaryDirectory(prefix="git-wire-", dir=base_dir) as tmp_dir:
        ws = Workspace(Path(tmp_dir))
        ws.cache_dir.mkdir()
        ws.check_dir.mkdir()
        logger.debug(f"Workspace created at {ws.root}")
        yield ws
    logger.debug(f"Workspace {tmp_dir} removed")
