"""Content-addressed, tag-invalidated in-memory caching."""

from sensorycompass.cache.fingerprint import canonical_json, create_key, fingerprint
from sensorycompass.cache.store import CacheEntry, CacheStatistics, CacheStore

__all__ = [
    "CacheEntry",
    "CacheStatistics",
    "CacheStore",
    "canonical_json",
    "create_key",
    "fingerprint",
]
