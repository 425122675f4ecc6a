"""Check: verify an entry's destination against a fresh upstream checkout."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from gitwire.cache.keys import CacheKeyGenerator
from gitwire.cache.manager import plan_keys
from gitwire.checkout import Checkout
from gitwire.errors import CheckoutError
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


def compare_trees(
    upstream: Path, destination: Path, filters: tuple[str, ...] | list[str], label: str
) -> OperationResult:
    """Diff the selected files of ``upstream`` against everything in ``destination``."""
    expected = select_files(upstream, filters)
    actual = list_files(destination)
    expected_set = set(expected)
    actual_set = set(actual)
    base = source_root(upstream)

    missing = [path for path in expected if path not in actual_set]
    extra = [path for path in actual if path not in expected_set]
    changed = [
        path
        for path in expected
        if path in actual_set and not same_entry(base / path, destination / path)
    ]

    result = OperationResult(
        label=label,
        success=not (missing or extra or changed),
        missing=missing,
        extra=extra,
        changed=changed,
    )
    for problem in result.problems:
        logger.info(f"{label}: {problem}")
    return result


class CheckOperation:
    """Read-only verification of the working tree.

    Every entry gets its own throwaway checkout under ``scratch_dir``; the
    shared cache is never consulted, so a stale cache cannot hide drift.
    """

    name = "check"
    requires_cache = False

    def __init__(self, root: Path, checkout: Checkout, scratch_dir: Path) -> None:
        self.root = root
        self.checkout = checkout
        self.scratch_dir = scratch_dir

    def apply(
        self, entry: ConfigEntry, label: str, repo: CachedRepository | None
    ) -> OperationResult:
        key = CacheKeyGenerator.generate_key(entry)
        plan = plan_keys([entry])[key]
        fresh_parent = Path(tempfile.mkdtemp(prefix=f"{key}-", dir=self.scratch_dir))

        logger.info(
            f"{label}: compare {entry.source_url}:{entry.source_subpath} "
            f"with {entry.destination_subpath}"
        )
        try:
            try:
                materialized = self.checkout.materialize(
                    entry.source_url,
                    entry.branch,
                    entry.commit_hash,
                    fresh_parent / "repo",
                    method=plan.method,
                    sparse_paths=plan.sparse_paths,
                )
            except CheckoutError as e:
                raise type(e)(e.url, e.detail, key=key) from e

            upstream = materialized.path.joinpath(*entry.src_parts)
            if first_symlink(materialized.path, entry.src_parts) is not None:
                return OperationResult(
                    label=label,
                    success=False,
                    error=f"`src` {entry.source_subpath!r} passes through a symlink",
                )
            if not upstream.exists():
                return OperationResult(
                    label=label,
                    success=False,
                    error=f"`src` {entry.source_subpath!r} does not exist in {entry.source_url}",
                )
            link = first_symlink(self.root, entry.dst_parts)
            if link is not None:
                return OperationResult(
                    label=label,
                    success=False,
                    error=f"`dst` {entry.destination_subpath!r} passes through symlink {link}",
                )
            destination = self.root.joinpath(*entry.dst_parts)
            return compare_trees(upstream, destination, entry.file_filters, label)
        finally:
            shutil.rmtree(fresh_parent, ignore_errors=True)
