"""Pin config entries to exact upstream commits.

Resolves the current head of each entry's branch with ``git ls-remote`` and
stores it as ``commit_hash``, making later syncs and checks reproducible.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

from gitwire.config import select_entries
from gitwire.models.entry import ConfigEntry

logger = logging.getLogger(__name__)


@dataclass
class PinResult:
    """What happened to one entry."""

    label: str
    old_commit: str | None
    new_commit: str | None

    @property
    def changed(self) -> bool:
        return self.new_commit is not None and self.new_commit != self.old_commit


def ls_remote(
    url: str, branch: str, git_executable: str = "git", timeout: float | None = 30
) -> str | None:
    """Fetch the commit a remote branch or tag points at, without cloning."""
    try:
        result = subprocess.run(
            [git_executable, "ls-remote", url, f"refs/heads/{branch}", f"refs/tags/{branch}"],
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.warning(f"Error fetching {url}: {e}")
        return None

    if result.returncode != 0 or not result.stdout.strip():
        logger.warning(f"Could not resolve {branch} on {url}: {result.stderr.strip()}")
        return None

    # Peeled annotated tags ("^{}") point at the commit itself
    lines = [line.split() for line in result.stdout.strip().splitlines()]
    for sha, ref in lines:
        if ref.endswith("^{}"):
            return sha
    return lines[0][0]


def pin_entries(
    entries: list[ConfigEntry],
    update: bool = False,
    name: str | None = None,
    git_executable: str = "git",
) -> tuple[list[ConfigEntry], list[PinResult]]:
    """Return entries with ``commit_hash`` filled in.

    Already pinned entries are kept unless ``update`` is set. With ``name``
    only that entry is considered and an unknown name raises
    EntryNotFoundError. Lookups of the same remote branch are shared between
    entries.
    """
    if name is not None:
        select_entries(entries, name)

    resolved: dict[tuple[str, str], str | None] = {}
    pinned: list[ConfigEntry] = []
    results: list[PinResult] = []

    for index, entry in enumerate(entries):
        label = entry.label(index)
        skip = (name is not None and entry.name != name) or (entry.commit_hash and not update)
        if skip:
            pinned.append(entry)
            if name is None or entry.name == name:
                results.append(PinResult(label, entry.commit_hash, entry.commit_hash))
            continue

        remote = (entry.source_url, entry.branch)
        if remote not in resolved:
            resolved[remote] = ls_remote(entry.source_url, entry.branch, git_executable)
        commit = resolved[remote]

        if commit is None:
            pinned.append(entry)
        else:
            pinned.append(entry.model_copy(update={"commit_hash": commit}))
        results.append(PinResult(label, entry.commit_hash, commit))

    return pinned, results
