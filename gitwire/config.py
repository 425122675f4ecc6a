"""Locating, loading and validating the ``.gitwire`` config.

Parsing is done in full before anything touches the network or the working
tree, so a bad config never leaves partial side effects behind.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from gitwire.errors import (
    ConfigDuplicateNameError,
    ConfigMalformedError,
    ConfigNotFoundError,
    ConfigUnreadableError,
    ConfigUnsoundError,
    EntryNotFoundError,
    RepositoryRootError,
)
from gitwire.models.entry import ConfigEntry, split_path
from gitwire.settings import DEFAULT_CONFIG_FILE

logger = logging.getLogger(__name__)

FORBIDDEN_COMPONENTS = frozenset({".", "..", ".git"})

_entries_adapter = TypeAdapter(list[ConfigEntry])


def find_repository_root(cwd: Path | None = None, git_executable: str = "git") -> Path:
    """Return the top level of the git work tree containing ``cwd``."""
    try:
        result = subprocess.run(
            [git_executable, "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise RepositoryRootError(f"could not run {git_executable}: {e}") from e

    if result.returncode != 0:
        raise RepositoryRootError(
            f"not inside a git repository: {result.stderr.strip() or 'git rev-parse failed'}"
        )
    return Path(result.stdout.strip())


def is_sound_path(path: str) -> bool:
    """Check that a config path cannot escape the tree or touch git metadata."""
    # split_path drops empty segments, so a lone "." must be checked on the raw parts
    raw_parts = path.replace("\\", "/").split("/")
    return not any(part in FORBIDDEN_COMPONENTS for part in raw_parts)


def check_soundness(entry: ConfigEntry, index: int = 0) -> None:
    """Raise ConfigUnsoundError if ``src`` or ``dst`` is not allowed."""
    label = entry.label(index)
    for field_name, value in (("src", entry.source_subpath), ("dst", entry.destination_subpath)):
        if not is_sound_path(value):
            raise ConfigUnsoundError(
                f"entry {label}: `{field_name}` must not include '.', '..', or '.git' "
                f"(got {value!r})"
            )
    if not split_path(entry.destination_subpath):
        raise ConfigUnsoundError(
            f"entry {label}: `dst` must name a directory below the repository root"
        )


def check_unique_names(entries: list[ConfigEntry]) -> None:
    """Raise ConfigDuplicateNameError if two entries share a non-empty name."""
    seen: set[str] = set()
    for entry in entries:
        if entry.name is None:
            continue
        if entry.name in seen:
            raise ConfigDuplicateNameError(
                f"entry names must differ from each other: {entry.name!r} is used twice"
            )
        seen.add(entry.name)


def parse_entries(data: Any) -> list[ConfigEntry]:
    """Validate already-deserialized JSON into entries."""
    try:
        entries = _entries_adapter.validate_python(data)
    except ValidationError as e:
        raise ConfigMalformedError(f"config format is wrong: {e}") from e

    for index, entry in enumerate(entries):
        check_soundness(entry, index)
    check_unique_names(entries)
    return entries


def load_config_file(path: Path) -> list[ConfigEntry]:
    """Read and validate a config file."""
    if not path.is_file():
        raise ConfigNotFoundError(f"there is no {path.name} file at {path.parent}")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigUnreadableError(f"cannot read {path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigMalformedError(f"{path.name} is not valid JSON: {e}") from e

    entries = parse_entries(data)
    logger.debug(f"Loaded {len(entries)} entries from {path}")
    return entries


def load_config(
    root: Path | None = None,
    config_file: str = DEFAULT_CONFIG_FILE,
    git_executable: str = "git",
) -> tuple[Path, list[ConfigEntry]]:
    """Load the config of the repository at ``root`` (discovered via git if None).

    Returns the repository root and its entries in file order.
    """
    if root is None:
        root = find_repository_root(git_executable=git_executable)
    return root, load_config_file(root / config_file)


def write_config_file(path: Path, entries: list[ConfigEntry]) -> None:
    """Write entries back in config file format."""
    data = [entry.to_json_dict() for entry in entries]
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def select_entries(entries: list[ConfigEntry], name: str | None) -> list[ConfigEntry]:
    """Return all entries, or only the one called ``name``."""
    if name is None:
        return list(entries)
    selected = [entry for entry in entries if entry.name == name]
    if not selected:
        raise EntryNotFoundError(f"no entry named {name!r} in config")
    return selected
