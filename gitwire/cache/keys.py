"""Cache key derivation.

Entries that point at the same ``(url, branch, commit)`` must collapse onto
one key so the remote is fetched once per run. Subpaths, filters and the
destination do not take part in the key.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitwire.models.entry import ConfigEntry

KEY_LENGTH = 32


def _digest(*parts: str) -> str:
    # NUL cannot appear in URLs or ref names, so the join is unambiguous
    hash_input = "\0".join(parts)
    return hashlib.sha256(hash_input.encode()).hexdigest()[:KEY_LENGTH]


class CacheKeyGenerator:
    """Stable keys for cached checkouts."""

    @staticmethod
    def generate_key(entry: ConfigEntry) -> str:
        """Key for an entry's URL, branch and (if pinned) commit."""
        if entry.commit_hash:
            return _digest("commit", entry.source_url, entry.branch, entry.commit_hash)
        return CacheKeyGenerator.generate_url_branch_key(entry.source_url, entry.branch)

    @staticmethod
    def generate_url_branch_key(url: str, branch: str) -> str:
        """Key for a URL and branch, ignoring any commit pin."""
        return _digest("branch", url, branch)
