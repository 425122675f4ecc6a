"""Data models for gitwire."""

from gitwire.models.cached_repo import CachedRepository
from gitwire.models.entry import CheckoutMethod, ConfigEntry, split_path
from gitwire.models.result import AggregateResult, OperationResult

__all__ = [
    # Config
    "CheckoutMethod",
    "ConfigEntry",
    "split_path",
    # Cache
    "CachedRepository",
    # Results
    "OperationResult",
    "AggregateResult",
]
