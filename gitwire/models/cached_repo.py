"""A materialized local checkout shared by every entry with the same cache key."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from gitwire.models.entry import CheckoutMethod


@dataclass(frozen=True)
class CachedRepository:
    """Local checkout of one ``(url, branch, commit)`` triple.

    Owned by the cache manager. ``commit`` is the commit that was actually
    checked out, which differs from the requested ref when only a branch
    was given.
    """

    key: str
    path: Path
    source_url: str
    branch: str
    method: CheckoutMethod
    commit: str
    sparse_paths: tuple[str, ...] = field(default=())

    def source_dir(self, subpath: str) -> Path:
        """Absolute path of ``subpath`` inside the checkout."""
        stripped = subpath.replace("\\", "/").strip("/")
        return self.path / stripped if stripped else self.path
