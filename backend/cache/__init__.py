"""
Memory Cache Module
内存缓存模块

Provides in-memory storage for profile lookups:
- MemoryStore: TTL cache of results keyed by username
- InFlightRegistry: coalesces concurrent fetches for the same username
"""

from .memory_store import MemoryStore, CacheEntry, profile_cache
from .inflight import InFlightRegistry, profile_inflight
from .routes import router as cache_router

__all__ = [
    "MemoryStore",
    "CacheEntry",
    "InFlightRegistry",
    "profile_cache",
    "profile_inflight",
    "cache_router",
]
