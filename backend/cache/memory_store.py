"""
Memory Store Implementation
内存存储实现

In-memory storage for profile lookup results, keyed by normalized username.

Features:
- TTL-based expiration, checked lazily on read
- Overwrite-on-set (entries are never updated in place)
- Injectable clock for tests

There is no size bound and no LRU eviction: one entry per distinct key
queried within the TTL window.
"""

import os
import time
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
from dataclasses import dataclass
from threading import Lock
from datetime import datetime

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """
    Cache entry data structure
    缓存条目数据结构
    """
    key: str                 # Normalized key (username)
    value: T                 # Stored result
    fetched_at: float        # Unix timestamp when stored
    ttl: float = DEFAULT_TTL_SECONDS

    def is_expired(self, now: float) -> bool:
        """Entry is stale once strictly more than `ttl` seconds old."""
        return now - self.fetched_at > self.ttl

    @property
    def created_at(self) -> str:
        return datetime.fromtimestamp(self.fetched_at).isoformat()

    @property
    def expires_at(self) -> str:
        return datetime.fromtimestamp(self.fetched_at + self.ttl).isoformat()


class MemoryStore(Generic[T]):
    """
    In-memory TTL store
    内存 TTL 存储

    Usage:
        store = MemoryStore(ttl=86400)
        store.set("someone", result)
        store.get("someone")  # -> result, or None once expired
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            ttl: Time-to-live in seconds (default 24h)
            clock: Returns the current time in seconds; tests pass a fake
        """
        self._store: Dict[str, CacheEntry[T]] = {}
        self._lock = Lock()
        self._ttl = ttl
        self._clock = clock

    def get(self, key: str) -> Optional[T]:
        """
        Get a value by key
        根据 key 获取缓存值

        Returns:
            The stored value if present and not expired, None otherwise.
            Expired entries are removed as a side effect.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._store[key]
                return None
            return entry.value

    def get_entry(self, key: str) -> Optional[CacheEntry[T]]:
        """Same as `get` but returns the entry with its timestamps."""
        with self._lock:
            entry = self._store.get(key)
            if entry and entry.is_expired(self._clock()):
                del self._store[key]
                return None
            return entry

    def set(self, key: str, value: T) -> CacheEntry[T]:
        """
        Store a value, replacing any previous entry for the key
        存储缓存值（整体替换）
        """
        entry = CacheEntry(
            key=key,
            value=value,
            fetched_at=self._clock(),
            ttl=self._ttl,
        )
        with self._lock:
            self._store[key] = entry
        return entry

    def delete(self, key: str) -> bool:
        """
        Delete cache entry
        删除缓存条目

        Returns:
            True if deleted, False if not found
        """
        with self._lock:
            if key in self._store:
                del self._store[key]
                return True
            return False

    def clear(self) -> int:
        """
        Clear all cache entries
        清空所有缓存

        Returns:
            Number of entries deleted
        """
        with self._lock:
            count = len(self._store)
            self._store.clear()
            return count

    def stats(self) -> Dict[str, Any]:
        """
        Get cache statistics
        获取缓存统计信息

        Expired entries that have not been read yet are still counted.
        """
        with self._lock:
            now = self._clock()
            expired = sum(1 for e in self._store.values() if e.is_expired(now))
            return {
                "total_entries": len(self._store),
                "expired_entries": expired,
                "ttl_hours": self._ttl / 3600,
            }

    def keys(self) -> List[str]:
        """Snapshot of stored keys, including not-yet-evicted expired ones."""
        with self._lock:
            return list(self._store)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# Global singleton instance
# 全局单例实例
PROFILE_CACHE_TTL_HOURS = int(os.getenv("PROFILE_CACHE_TTL_HOURS", "24"))
profile_cache: MemoryStore = MemoryStore(ttl=PROFILE_CACHE_TTL_HOURS * 3600)
