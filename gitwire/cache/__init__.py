"""Fetch deduplication: cache keys, per-key locks and the checkout cache."""

from gitwire.cache.keys import CacheKeyGenerator
from gitwire.cache.lock import RepositoryLockManager
from gitwire.cache.manager import CacheManager, KeyPlan, plan_keys

__all__ = [
    "CacheKeyGenerator",
    "CacheManager",
    "KeyPlan",
    "RepositoryLockManager",
    "plan_keys",
]
