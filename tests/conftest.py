"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
import threading
import time
from collections.abc import Callable, Generator, Sequence
from pathlib import Path

import pytest

from gitwire.checkout import Materialized
from gitwire.errors import RemoteUnreachableError
from gitwire.models.entry import CheckoutMethod, ConfigEntry


class DirectoryCheckout:
    """Checkout stub serving "remotes" from local directories.

    Counts materializations per URL so tests can assert how often a remote
    was fetched. ``delay`` widens the window in which parallel workers race.
    """

    def __init__(self, remotes: dict[str, Path], delay: float = 0.0) -> None:
        self.remotes = remotes
        self.delay = delay
        self.calls: list[dict] = []
        self.failing: set[str] = set()
        self._lock = threading.Lock()

    def materialize(
        self,
        source_url: str,
        branch: str,
        commit_hash: str | None,
        destination: Path,
        method: CheckoutMethod = CheckoutMethod.SHALLOW,
        sparse_paths: Sequence[str] = (),
    ) -> Materialized:
        with self._lock:
            self.calls.append(
                {
                    "url": source_url,
                    "branch": branch,
                    "commit": commit_hash,
                    "destination": destination,
                    "method": method,
                    "sparse_paths": tuple(sparse_paths),
                }
            )
        if self.delay:
            time.sleep(self.delay)
        if source_url in self.failing or source_url not in self.remotes:
            raise RemoteUnreachableError(source_url, "could not resolve host")

        source = self.remotes[source_url]
        if sparse_paths:
            destination.mkdir(parents=True)
            for path in sparse_paths:
                if (source / path).is_symlink() or (source / path).is_file():
                    (destination / path).parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(source / path, destination / path, follow_symlinks=False)
                elif (source / path).is_dir():
                    shutil.copytree(source / path, destination / path, symlinks=True)
        else:
            shutil.copytree(source, destination, symlinks=True)
        return Materialized(destination, commit_hash or "a" * 40)

    def count(self, url: str | None = None) -> int:
        with self._lock:
            return len([c for c in self.calls if url is None or c["url"] == url])


def write_tree(base: Path, files: dict[str, str]) -> Path:
    """Create ``files`` (relative path -> content) below ``base``."""
    for rel, content in files.items():
        path = base / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return base


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_tree() -> Callable[[Path, dict[str, str]], Path]:
    return write_tree


@pytest.fixture
def upstream(temp_dir: Path) -> Path:
    """A monorepo-like upstream tree with a few libraries."""
    return write_tree(
        temp_dir / "upstream",
        {
            "README.md": "# upstream\n",
            "libs/alpha/alpha.py": "ALPHA = 1\n",
            "libs/alpha/alpha_test.py": "def test(): pass\n",
            "libs/alpha/docs/guide.md": "guide\n",
            "libs/beta/beta.py": "BETA = 2\n",
            "libs/beta/data/values.json": '{"x": 1}\n',
        },
    )


@pytest.fixture
def worktree(temp_dir: Path) -> Path:
    """The consuming repository's working tree."""
    root = temp_dir / "worktree"
    root.mkdir()
    return root


@pytest.fixture
def checkout(upstream: Path) -> DirectoryCheckout:
    """Stub checkout serving ``upstream`` as https://example.com/mono.git."""
    return DirectoryCheckout({"https://example.com/mono.git": upstream})


@pytest.fixture
def checkout_factory() -> type[DirectoryCheckout]:
    """The stub class itself, for tests needing their own remotes or delay."""
    return DirectoryCheckout


@pytest.fixture
def make_entry() -> Callable[..., ConfigEntry]:
    """Build entries with config-file field names and sensible defaults."""

    def _make(**fields) -> ConfigEntry:
        data = {
            "url": "https://example.com/mono.git",
            "rev": "main",
            "src": "libs/alpha",
            "dst": "vendor/alpha",
        }
        data.update(fields)
        return ConfigEntry.model_validate(data)

    return _make


@pytest.fixture
def garbled_git(temp_dir: Path) -> str:
    """A git stand-in that fails with bytes that are not valid UTF-8."""
    if os.name == "nt":
        pytest.skip("shell script stand-in needs a POSIX shell")
    script = temp_dir / "garbled-git"
    script.write_text("#!/bin/sh\nprintf 'fatal: remote \\377\\376 bad\\n' >&2\nexit 128\n")
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return str(script)
