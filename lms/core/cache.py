"""
Generic in-memory cache with TTL support.
Thread-safe; backs tenant-resolution lookups so every request does not
walk the domains collection.
"""
import time
from abc import ABC, abstractmethod
from threading import Lock
from typing import Awaitable, Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class CacheInterface(ABC, Generic[T]):
    """Abstract interface for cache implementations."""

    @abstractmethod
    def get(self, key: str) -> Optional[T]:
        """Get value by key, returns None if not found or expired."""
        pass

    @abstractmethod
    def set(self, key: str, value: T, ttl_seconds: Optional[float] = None) -> None:
        """Set value with optional TTL."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key, returns True if existed."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all entries."""
        pass


class CacheEntry(Generic[T]):
    """Single cache entry with expiration tracking."""

    def __init__(self, value: T, expires_at: Optional[float]) -> None:
        self.value = value
        self.expires_at = expires_at

    def is_expired(self) -> bool:
        """Check if entry has expired."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at


class InMemoryCache(CacheInterface[T]):
    """
    Thread-safe in-memory cache with TTL support.

    Usage:
        cache: InMemoryCache[str] = InMemoryCache(default_ttl_seconds=300)
        tenant_id = await cache.get_or_load("acme.example.com", lookup)
    """

    def __init__(self, default_ttl_seconds: Optional[float] = None) -> None:
        self._store: Dict[str, CacheEntry[T]] = {}
        self._default_ttl = default_ttl_seconds
        self._lock = Lock()

    def get(self, key: str) -> Optional[T]:
        """Get value by key, returns None if not found or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                del self._store[key]
                return None
            return entry.value

    def set(self, key: str, value: T, ttl_seconds: Optional[float] = None) -> None:
        """Set value with optional TTL."""
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = time.time() + ttl if ttl else None
        with self._lock:
            self._store[key] = CacheEntry(value, expires_at)

    def delete(self, key: str) -> bool:
        """Delete key, returns True if existed."""
        with self._lock:
            if key in self._store:
                del self._store[key]
                return True
            return False

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            self._store.clear()

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Optional[T]]],
        ttl_seconds: Optional[float] = None,
    ) -> Optional[T]:
        """
        Get value or await the loader and cache its result.

        A loader returning None is not cached, so a lookup miss is retried
        on the next call.
        """
        value = self.get(key)
        if value is not None:
            return value

        # Load outside lock to avoid blocking
        loaded = await loader()
        if loaded is not None:
            self.set(key, loaded, ttl_seconds)
        return loaded

    def size(self) -> int:
        """Return number of entries (including possibly expired)."""
        with self._lock:
            return len(self._store)
