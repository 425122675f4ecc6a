"""Materializing remote repositories with the git client.

Three checkout methods are supported, all built from the same steps
(init, add remote, optional sparse patterns, fetch, checkout):

- shallow: depth 1 fetch, sparse-checkout restricted to the paths in use
- shallow_no_sparse: depth 1 fetch of the full tree
- partial: blobless fetch of the branch history; blobs are only downloaded
  for the paths that get checked out
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from gitwire.errors import (
    AuthenticationError,
    CheckoutError,
    RemoteUnreachableError,
    UnknownRefError,
    UnsupportedStrategyError,
)
from gitwire.models.entry import CheckoutMethod

logger = logging.getLogger(__name__)

# Substrings of git's stderr, checked in order
_ERROR_PATTERNS: list[tuple[type[CheckoutError], tuple[str, ...]]] = [
    (
        AuthenticationError,
        (
            "authentication failed",
            "could not read username",
            "could not read password",
            "permission denied",
            "terminal prompts disabled",
        ),
    ),
    (
        RemoteUnreachableError,
        (
            "could not resolve host",
            "unable to access",
            "connection refused",
            "connection timed out",
            "does not appear to be a git repository",
            "repository not found",
            "could not read from remote repository",
        ),
    ),
    (
        UnknownRefError,
        (
            "couldn't find remote ref",
            "not our ref",
            "unknown revision",
            "did not match any",
            "reference is not a tree",
            "invalid reference",
            "not a valid object name",
        ),
    ),
    (
        UnsupportedStrategyError,
        (
            "does not support",
            "not supported",
            "unknown option",
            "is not a git command",
        ),
    ),
]


def classify_git_error(url: str, stderr: str) -> CheckoutError:
    """Map git's error output onto the checkout error taxonomy."""
    lowered = stderr.lower()
    for error_type, patterns in _ERROR_PATTERNS:
        if any(pattern in lowered for pattern in patterns):
            return error_type(url, stderr.strip())
    return CheckoutError(url, stderr.strip() or "git exited with an error")


def sparse_patterns(paths: Sequence[str]) -> list[str]:
    """Non-cone sparse-checkout patterns anchored at the repository root."""
    patterns = []
    for path in paths:
        stripped = path.replace("\\", "/").strip("/")
        if stripped:
            patterns.append(f"/{stripped}")
    return sorted(set(patterns))


@dataclass(frozen=True)
class Materialized:
    """A finished checkout: where it lives and which commit is checked out."""

    path: Path
    commit: str


class Checkout(Protocol):
    """Anything able to produce a local checkout of a remote."""

    def materialize(
        self,
        source_url: str,
        branch: str,
        commit_hash: str | None,
        destination: Path,
        method: CheckoutMethod = CheckoutMethod.SHALLOW,
        sparse_paths: Sequence[str] = (),
    ) -> Materialized: ...


class GitCheckout:
    """Checkout strategies implemented by shelling out to git."""

    def __init__(self, git_executable: str = "git", timeout: float | None = None) -> None:
        self.git_executable = git_executable
        self.timeout = timeout
        self._methods: dict[CheckoutMethod, Callable[..., None]] = {
            CheckoutMethod.SHALLOW: self._shallow,
            CheckoutMethod.SHALLOW_NO_SPARSE: self._shallow_no_sparse,
            CheckoutMethod.PARTIAL: self._partial,
        }

    def materialize(
        self,
        source_url: str,
        branch: str,
        commit_hash: str | None,
        destination: Path,
        method: CheckoutMethod = CheckoutMethod.SHALLOW,
        sparse_paths: Sequence[str] = (),
    ) -> Materialized:
        """Check out ``source_url`` at ``branch`` (or ``commit_hash``) into ``destination``.

        ``destination`` must not exist yet. On failure it is removed again so a
        later attempt starts from scratch.
        """
        handler = self._methods.get(method)
        if handler is None:
            raise UnsupportedStrategyError(source_url, f"unknown checkout method {method!r}")

        logger.info(f"Fetching {source_url} @ {commit_hash or branch} ({method.value})")
        destination.mkdir(parents=True)
        try:
            handler(source_url, branch, commit_hash, destination, sparse_paths)
            commit = self._run(["rev-parse", "HEAD"], destination, source_url).stdout.strip()
            self._ensure_clean(destination, source_url)
        except BaseException:
            shutil.rmtree(destination, ignore_errors=True)
            raise

        logger.debug(f"Checked out {source_url} at {commit} into {destination}")
        return Materialized(destination, commit)

    def _shallow(
        self,
        url: str,
        branch: str,
        commit_hash: str | None,
        repo: Path,
        sparse_paths: Sequence[str],
    ) -> None:
        self._init(repo, url)
        self._configure_sparse(repo, url, sparse_paths)
        self._fetch_and_checkout(repo, url, branch, commit_hash, depth=1)

    def _shallow_no_sparse(
        self,
        url: str,
        branch: str,
        commit_hash: str | None,
        repo: Path,
        sparse_paths: Sequence[str],
    ) -> None:
        self._init(repo, url)
        self._fetch_and_checkout(repo, url, branch, commit_hash, depth=1)

    def _partial(
        self,
        url: str,
        branch: str,
        commit_hash: str | None,
        repo: Path,
        sparse_paths: Sequence[str],
    ) -> None:
        self._init(repo, url)
        self._run(["config", "remote.origin.promisor", "true"], repo, url)
        self._run(["config", "remote.origin.partialclonefilter", "blob:none"], repo, url)
        self._configure_sparse(repo, url, sparse_paths)
        self._fetch_and_checkout(
            repo, url, branch, commit_hash, depth=None, extra=["--filter=blob:none"]
        )

    def _init(self, repo: Path, url: str) -> None:
        self._run(["init", "--quiet"], repo, url)
        self._run(["remote", "add", "origin", url], repo, url)

    def _configure_sparse(self, repo: Path, url: str, sparse_paths: Sequence[str]) -> None:
        patterns = sparse_patterns(sparse_paths)
        if not patterns:
            return
        self._run(["config", "core.sparseCheckout", "true"], repo, url)
        sparse_file = repo / ".git" / "info" / "sparse-checkout"
        sparse_file.parent.mkdir(parents=True, exist_ok=True)
        sparse_file.write_text("\n".join(patterns) + "\n")

    def _fetch_and_checkout(
        self,
        repo: Path,
        url: str,
        branch: str,
        commit_hash: str | None,
        depth: int | None,
        extra: Sequence[str] = (),
    ) -> None:
        depth_args = [f"--depth={depth}"] if depth else []

        if commit_hash is None:
            self._run(["fetch", "--quiet", *depth_args, *extra, "origin", branch], repo, url)
            self._run(["checkout", "--quiet", "-B", branch, "FETCH_HEAD"], repo, url)
            return

        try:
            self._run(
                ["fetch", "--quiet", *depth_args, *extra, "origin", commit_hash], repo, url
            )
        except (RemoteUnreachableError, AuthenticationError):
            raise
        except CheckoutError as e:
            # Not every server lets clients fetch a bare commit; walk the branch instead
            logger.debug(f"Direct fetch of {commit_hash} refused ({e.detail}), fetching {branch}")
            self._run(["fetch", "--quiet", *extra, "origin", branch], repo, url)
        self._run(["checkout", "--quiet", "-B", branch, commit_hash], repo, url)

    def _ensure_clean(self, repo: Path, url: str) -> None:
        status = self._run(["status", "--porcelain"], repo, url).stdout.strip()
        if status:
            raise CheckoutError(url, f"checkout left a dirty working tree:\n{status}")

    def _run(self, args: list[str], cwd: Path, url: str) -> subprocess.CompletedProcess[str]:
        cmd = [self.git_executable, *args]
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                env=env,
            )
        except FileNotFoundError as e:
            raise CheckoutError(url, f"git executable not found: {self.git_executable}") from e
        except subprocess.TimeoutExpired as e:
            raise CheckoutError(url, f"`{' '.join(cmd)}` timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise classify_git_error(url, result.stderr)
        return result
