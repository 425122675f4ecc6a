"""Tests for the config entry model."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gitwire.models.entry import CheckoutMethod, ConfigEntry, split_path


class TestConfigEntry:
    """Tests for parsing and serializing entries."""

    def test_minimal_entry(self) -> None:
        entry = ConfigEntry.model_validate(
            {"url": "https://example.com/a.git", "rev": "main", "src": "lib", "dst": "vendor/lib"}
        )

        assert entry.source_url == "https://example.com/a.git"
        assert entry.branch == "main"
        assert entry.source_subpath == "lib"
        assert entry.destination_subpath == "vendor/lib"
        assert entry.name is None
        assert entry.commit_hash is None
        assert entry.file_filters == ()
        assert entry.checkout_method == CheckoutMethod.SHALLOW
        assert entry.prune is True

    def test_full_entry(self) -> None:
        entry = ConfigEntry.model_validate(
            {
                "name": "alpha",
                "dsc": "alpha library",
                "url": "https://example.com/a.git",
                "rev": "v1.2",
                "commit_hash": "0123abcd",
                "src": "libs/alpha",
                "dst": "vendor/alpha",
                "filters": ["*.py", "docs"],
                "mtd": "partial",
                "prune": False,
            }
        )

        assert entry.name == "alpha"
        assert entry.description == "alpha library"
        assert entry.commit_hash == "0123abcd"
        assert entry.file_filters == ("*.py", "docs")
        assert entry.checkout_method == CheckoutMethod.PARTIAL
        assert entry.prune is False

    def test_attribute_names_accepted(self) -> None:
        entry = ConfigEntry(
            source_url="https://example.com/a.git",
            branch="main",
            source_subpath="lib",
            destination_subpath="vendor/lib",
        )
        assert entry.branch == "main"

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ConfigEntry.model_validate(
                {"url": "u", "rev": "main", "src": "a", "dst": "b", "branch_name": "x"}
            )

    def test_missing_required_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ConfigEntry.model_validate({"url": "u", "src": "a", "dst": "b"})

    def test_unknown_method_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ConfigEntry.model_validate(
                {"url": "u", "rev": "main", "src": "a", "dst": "b", "mtd": "deep"}
            )

    def test_blank_name_and_commit_become_none(self) -> None:
        entry = ConfigEntry.model_validate(
            {"url": "u", "rev": "main", "src": "a", "dst": "b", "name": " ", "commit_hash": ""}
        )
        assert entry.name is None
        assert entry.commit_hash is None

    def test_entries_are_immutable(self) -> None:
        entry = ConfigEntry.model_validate({"url": "u", "rev": "main", "src": "a", "dst": "b"})
        with pytest.raises(ValidationError):
            entry.branch = "dev"

    def test_json_round_trip(self) -> None:
        data = {
            "name": "beta",
            "url": "https://example.com/b.git",
            "rev": "main",
            "src": "libs/beta",
            "dst": "third_party/beta",
            "filters": ["*.py"],
            "mtd": "shallow_no_sparse",
            "prune": True,
        }
        entry = ConfigEntry.model_validate(data)
        dumped = entry.to_json_dict()

        assert dumped == data
        assert ConfigEntry.model_validate(dumped) == entry

    def test_label(self) -> None:
        named = ConfigEntry.model_validate(
            {"name": "x", "url": "u", "rev": "main", "src": "a", "dst": "b"}
        )
        unnamed = ConfigEntry.model_validate({"url": "u", "rev": "main", "src": "a", "dst": "b"})

        assert named.label(3) == "x"
        assert unnamed.label(3) == "#4"

    def test_whole_tree(self) -> None:
        whole = ConfigEntry.model_validate({"url": "u", "rev": "main", "src": "/", "dst": "b"})
        sub = ConfigEntry.model_validate({"url": "u", "rev": "main", "src": "a/b/", "dst": "b"})

        assert whole.is_whole_tree
        assert not sub.is_whole_tree
        assert sub.src_parts == ["a", "b"]


def test_split_path_handles_both_separators() -> None:
    assert split_path("a\\b/c//") == ["a", "b", "c"]
    assert split_path("") == []
