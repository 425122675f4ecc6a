"""Sync: copy an entry's selected files from its cached checkout into the tree."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from gitwire.errors import SyncError
from gitwire.models.cached_repo import CachedRepository
from gitwire.models.entry import ConfigEntry
from gitwire.models.result import OperationResult
from gitwire.operations.selection import (
    first_symlink,
    list_files,
    same_entry,
    select_files,
    source_root,
)

logger = logging.getLogger(__name__)


class SyncOperation:
    """Writes the filtered ``src`` of each entry to its ``dst``.

    Files that already have identical content are left untouched. With
    ``prune`` (the default) destination files that are no longer selected
    upstream are deleted. Symlinks are reproduced as symlinks and nothing is
    ever written through one. Nothing is staged or committed.
    """

    name = "sync"
    requires_cache = True

    def __init__(self, root: Path) -> None:
        self.root = root

    def apply(
        self, entry: ConfigEntry, label: str, repo: CachedRepository | None
    ) -> OperationResult:
        if repo is None:
            raise SyncError(label, "no checkout available")

        src = repo.source_dir(entry.source_subpath)
        if first_symlink(repo.path, entry.src_parts) is not None:
            raise SyncError(label, f"`src` {entry.source_subpath!r} passes through a symlink")
        if not src.exists():
            raise SyncError(
                label, f"`src` {entry.source_subpath!r} does not exist in {entry.source_url}"
            )
        link = first_symlink(self.root, entry.dst_parts)
        if link is not None:
            raise SyncError(
                label, f"`dst` {entry.destination_subpath!r} passes through symlink {link}"
            )
        dst = self.root.joinpath(*entry.dst_parts)
        if dst.is_file():
            raise SyncError(label, f"`dst` {entry.destination_subpath!r} is a file")

        logger.info(f"{label}: sync {entry.source_url}:{entry.source_subpath} -> {dst}")
        selected = select_files(src, entry.file_filters)
        base = source_root(src)

        try:
            written = self._copy(base, dst, selected)
            removed = self._prune(dst, set(selected)) if entry.prune else []
        except OSError as e:
            raise SyncError(label, str(e)) from e

        logger.debug(f"{label}: {len(written)} written, {len(removed)} removed")
        return OperationResult(label=label, success=True, written=written, removed=removed)

    @staticmethod
    def _copy(base: Path, dst: Path, selected: list[str]) -> list[str]:
        written = []
        for rel in selected:
            source = base / rel
            target = dst / rel
            if same_entry(source, target):
                continue
            SyncOperation._clear(dst, target)
            target.parent.mkdir(parents=True, exist_ok=True)
            if source.is_symlink():
                os.symlink(os.readlink(source), target)
            else:
                shutil.copyfile(source, target)
                shutil.copymode(source, target)
            written.append(rel)
        return written

    @staticmethod
    def _clear(dst: Path, target: Path) -> None:
        """Make room for ``target``; symlinks on the way are removed, not followed."""
        link = first_symlink(dst, target.relative_to(dst).parts)
        if link is not None:
            link.unlink()
        elif target.is_dir():
            shutil.rmtree(target)

    @staticmethod
    def _prune(dst: Path, keep: set[str]) -> list[str]:
        removed = []
        for rel in list_files(dst):
            if rel not in keep:
                (dst / rel).unlink()
                removed.append(rel)

        if removed:
            # Bottom-up so parents become empty after their children are gone
            for dirpath, _, _ in sorted(os.walk(dst), key=lambda w: len(w[0]), reverse=True):
                path = Path(dirpath)
                if path != dst and not any(path.iterdir()):
                    path.rmdir()
        return removed
