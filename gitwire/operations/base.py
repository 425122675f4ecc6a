"""Interface shared by the sync and check operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from gitwire.models.cached_repo import CachedRepository
    from gitwire.models.entry import ConfigEntry
    from gitwire.models.result import OperationResult


class Operation(Protocol):
    """Something the sequencer applies to each config entry."""

    name: str

    # False when the operation fetches on its own and must not see the shared cache
    requires_cache: bool

    def apply(
        self, entry: ConfigEntry, label: str, repo: CachedRepository | None
    ) -> OperationResult:
        """Apply to one entry. ``repo`` is None when ``requires_cache`` is False."""
        ...
