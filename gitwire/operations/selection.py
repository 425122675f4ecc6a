"""File selection shared by sync and check.

Symlinks are entries of their own: they are listed, copied and compared as
links and never followed, whether they point at files or directories.
"""

from __future__ import annotations

import filecmp
import os
from collections.abc import Sequence
from fnmatch import fnmatch
from pathlib import Path


def matches_filters(relative_path: str, filters: Sequence[str]) -> bool:
    """Check a POSIX path (relative to ``src``) against an entry's filters.

    No filters selects everything. Otherwise a filter matches as a glob on
    the relative path, as a glob on the file name, or as a directory prefix.
    """
    if not filters:
        return True

    name = relative_path.rsplit("/", 1)[-1]
    for pattern in filters:
        pattern = pattern.replace("\\", "/")
        if fnmatch(relative_path, pattern) or fnmatch(name, pattern):
            return True
        prefix = pattern.strip("/")
        if prefix and relative_path.startswith(prefix + "/"):
            return True
    return False


def list_files(base: Path) -> list[str]:
    """All files and symlinks below ``base`` as sorted POSIX paths relative to it.

    ``.git`` directories are skipped and symlinked directories are not
    descended into. A missing ``base`` yields nothing, and a ``base`` that is
    itself a file or symlink yields its own name.
    """
    if base.is_symlink() or base.is_file():
        return [base.name]
    if not base.is_dir():
        return []

    found = []
    for dirpath, dirnames, filenames in os.walk(base):
        links = [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
        dirnames[:] = [d for d in dirnames if d != ".git" and d not in links]
        for filename in [*filenames, *links]:
            rel = os.path.relpath(os.path.join(dirpath, filename), base)
            found.append(Path(rel).as_posix())
    return sorted(found)


def source_root(base: Path) -> Path:
    """Directory the paths returned by :func:`list_files` are relative to."""
    return base.parent if base.is_symlink() or base.is_file() else base


def select_files(base: Path, filters: Sequence[str]) -> list[str]:
    """Files below ``base`` that pass ``filters``."""
    return [path for path in list_files(base) if matches_filters(path, filters)]


def same_entry(a: Path, b: Path) -> bool:
    """Compare two listed entries without following symlinks.

    Two links are equal when they point at the same target. A link never
    equals a regular file.
    """
    if a.is_symlink() or b.is_symlink():
        return a.is_symlink() and b.is_symlink() and os.readlink(a) == os.readlink(b)
    return b.is_file() and filecmp.cmp(a, b, shallow=False)


def first_symlink(base: Path, parts: Sequence[str]) -> Path | None:
    """First path component below ``base`` that is a symlink, if any."""
    current = base
    for part in parts:
        current = current / part
        if current.is_symlink():
            return current
    return None
