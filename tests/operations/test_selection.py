"""Tests for file selection shared by sync and check."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitwire.operations.selection import list_files, matches_filters, select_files


class TestMatchesFilters:
    def test_no_filters_selects_everything(self) -> None:
        assert matches_filters("any/path.txt", ())

    @pytest.mark.parametrize(
        ("path", "pattern"),
        [
            ("alpha.py", "*.py"),
            ("docs/guide.md", "*.md"),  # file name glob
            ("docs/guide.md", "docs/*.md"),  # path glob
            ("docs/guide.md", "docs"),  # directory prefix
            ("docs/deep/guide.md", "docs/"),
            ("alpha.py", "alpha.py"),
        ],
    )
    def test_matches(self, path: str, pattern: str) -> None:
        assert matches_filters(path, [pattern])

    @pytest.mark.parametrize(
        ("path", "pattern"),
        [
            ("alpha.py", "*.md"),
            ("docsx/guide.md", "docs"),
            ("other/alpha.py", "docs/*.py"),
        ],
    )
    def test_does_not_match(self, path: str, pattern: str) -> None:
        assert not matches_filters(path, [pattern])

    def test_any_filter_is_enough(self) -> None:
        assert matches_filters("docs/guide.md", ["*.py", "docs"])


class TestListFiles:
    def test_lists_relative_posix_paths(self, temp_dir: Path, make_tree) -> None:
        make_tree(temp_dir, {"b.txt": "b", "a/c.txt": "c", ".git/config": "x"})

        assert list_files(temp_dir) == ["a/c.txt", "b.txt"]

    def test_missing_directory(self, temp_dir: Path) -> None:
        assert list_files(temp_dir / "nope") == []

    def test_single_file(self, temp_dir: Path, make_tree) -> None:
        make_tree(temp_dir, {"one.txt": "1"})

        assert list_files(temp_dir / "one.txt") == ["one.txt"]

    def test_select_files(self, temp_dir: Path, make_tree) -> None:
        make_tree(temp_dir, {"a.py": "", "b.md": "", "sub/c.py": ""})

        assert select_files(temp_dir, ["*.py"]) == ["a.py", "sub/c.py"]
