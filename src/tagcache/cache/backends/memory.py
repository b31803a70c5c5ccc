"""
tagcache - Memory Cache Backend

In-process cache implementation with per-key TTL and set primitives.
Suitable for single-process deployments and tests; values pass through the
same codec as the Redis backend so both read back identically.

There is no size cap and no eviction: entries leave only through delete,
expiry or clear.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from ...errors import CacheOperationError
from .. import codec
from ..interface import CacheInterface

logger = logging.getLogger(__name__)

_VALUE = "value"
_SET = "set"


class MemoryCacheBackend(CacheInterface):
    """
    In-memory cache backend.

    Features:
    - Per-key TTL support driven by an injectable clock
    - Set-typed keys for the tag index
    - asyncio.Lock around every mutation
    """

    def __init__(
        self,
        default_ttl: int = 3600,
        namespace: str = "tagcache",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize memory cache backend.

        Args:
            default_ttl: Default TTL in seconds (0 = no expiry)
            namespace: Cache key namespace/prefix
            clock: Returns the current time in seconds
        """
        self.default_ttl = max(0, int(default_ttl))
        self.namespace = namespace
        self._clock = clock

        # Storage: key -> (kind, payload, expiry_time)
        self._store: dict[str, tuple[str, Any, float | None]] = {}

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

        self._lock = asyncio.Lock()

    def _make_key(self, key: str) -> str:
        """Create namespaced cache key."""
        return f"{self.namespace}:{key}"

    def _is_expired(self, expiry: float | None) -> bool:
        """Check if entry is expired."""
        if expiry is None:
            return False
        return self._clock() >= expiry

    def _live(self, cache_key: str) -> tuple[str, Any, float | None] | None:
        """Return the live entry for a namespaced key, dropping it if expired. Caller holds the lock."""
        entry = self._store.get(cache_key)
        if entry is None:
            return None
        if self._is_expired(entry[2]):
            del self._store[cache_key]
            return None
        return entry

    def _set_entry(self, name: str) -> set[str] | None:
        """Return the member set stored at name, or None. Caller holds the lock."""
        entry = self._live(self._make_key(name))
        if entry is None:
            return None
        kind, payload, _ = entry
        if kind != _SET:
            raise CacheOperationError(
                f"Key '{name}' holds a value, not a set",
                details={"key": name, "namespace": self.namespace},
            )
        return payload

    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve value from cache."""
        if not key:
            logger.warning("Attempted to get cache value with empty key")
            return default

        async with self._lock:
            entry = self._live(self._make_key(key))
            if entry is None:
                self._misses += 1
                return default

            kind, payload, _ = entry
            if kind != _VALUE:
                logger.warning(
                    f"Key '{key}' holds a set, not a value",
                    extra={"key": key, "namespace": self.namespace},
                )
                self._misses += 1
                return default

            self._hits += 1

        return codec.decode(payload)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """Store value in cache."""
        if not key:
            logger.warning("Attempted to set cache value with empty key")
            return False

        if ttl is None:
            ttl = self.default_ttl
        expiry = self._clock() + ttl if ttl > 0 else None

        payload = codec.encode(value)
        async with self._lock:
            self._store[self._make_key(key)] = (_VALUE, payload, expiry)
            self._sets += 1

        return True

    async def delete(self, key: str, after: float = 0) -> bool:
        """Delete key from cache, or expire it after the given seconds."""
        if not key:
            logger.warning("Attempted to delete cache value with empty key")
            return False

        async with self._lock:
            cache_key = self._make_key(key)
            entry = self._live(cache_key)
            if entry is None:
                return False

            if after > 0:
                kind, payload, _ = entry
                self._store[cache_key] = (kind, payload, self._clock() + after)
                return True

            del self._store[cache_key]
            self._deletes += 1
            return True

    async def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        if not key:
            return False

        async with self._lock:
            return self._live(self._make_key(key)) is not None

    async def clear(self) -> bool:
        """Clear all entries from cache."""
        async with self._lock:
            size = len(self._store)
            self._store.clear()
        logger.info(f"Cleared {size} entries from memory cache namespace '{self.namespace}'")
        return True

    async def set_add(self, name: str, *members: str) -> int:
        """Add members to a set, creating it if needed."""
        if not members:
            return 0

        async with self._lock:
            target = self._set_entry(name)
            if target is None:
                target = set()
                self._store[self._make_key(name)] = (_SET, target, None)
            before = len(target)
            target.update(members)
            return len(target) - before

    async def set_remove(self, name: str, *members: str) -> int:
        """Remove members from a set. An emptied set is removed, as in Redis."""
        if not members:
            return 0

        async with self._lock:
            target = self._set_entry(name)
            if target is None:
                return 0
            before = len(target)
            target.difference_update(members)
            if not target:
                del self._store[self._make_key(name)]
            return before - len(target)

    async def set_members(self, name: str) -> set[str]:
        """Return a snapshot of the set members."""
        async with self._lock:
            target = self._set_entry(name)
            return set(target) if target else set()

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0
            sets = sum(1 for kind, _, _ in self._store.values() if kind == _SET)

            return {
                "backend": "memory",
                "size": len(self._store),
                "index_sets": sets,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "deletes": self._deletes,
                "namespace": self.namespace,
            }

    async def close(self) -> None:
        """Close cache and release resources."""
        # Nothing to release; data lives in-process
        logger.debug(f"Memory cache backend closed for namespace '{self.namespace}'")
