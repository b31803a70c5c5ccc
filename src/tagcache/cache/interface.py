"""
tagcache - Cache Interface

Defines the abstract value store contract that all cache backends must implement.
Besides plain get/set/delete/clear, backends expose the small set of unordered
set primitives the tag index is built on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any


class CacheInterface(ABC):
    """
    Abstract base class for cache backends.

    All cache implementations must implement this interface to ensure
    consistent behavior across different backends (memory, Redis).

    Keys passed in are logical names; backends apply their own namespace.
    """

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a value from the cache.

        Args:
            key: Cache key
            default: Value returned when the key is absent

        Returns:
            Cached value if found and not expired, otherwise default
        """

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """
        Store a value in the cache.

        Args:
            key: Cache key
            value: Value to cache (JSON encoded, stored raw if that fails)
            ttl: Time-to-live in seconds (None = use default, 0 or less = no expiry)

        Returns:
            True if the backend acknowledged the write, False otherwise
        """

    @abstractmethod
    async def delete(self, key: str, after: float = 0) -> bool:
        """
        Delete a key from the cache, optionally after a delay.

        Args:
            key: Cache key (value or index set)
            after: Seconds until the key expires; 0 or less removes it now

        Returns:
            True if the key was removed (or scheduled), False if it didn't exist
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """
        Check if a key exists in the cache.

        Args:
            key: Cache key to check

        Returns:
            True if key exists and is not expired, False otherwise
        """

    @abstractmethod
    async def clear(self) -> bool:
        """
        Remove every entry in the backend namespace, index sets included.

        Returns:
            True if cache was cleared successfully
        """

    @abstractmethod
    async def set_add(self, name: str, *members: str) -> int:
        """
        Add members to the set stored at name.

        Returns:
            Number of members that were not already present

        Raises:
            CacheOperationError: If the backend rejects the operation
        """

    @abstractmethod
    async def set_remove(self, name: str, *members: str) -> int:
        """
        Remove members from the set stored at name.

        Returns:
            Number of members that were present and removed

        Raises:
            CacheOperationError: If the backend rejects the operation
        """

    @abstractmethod
    async def set_members(self, name: str) -> set[str]:
        """
        Return the members of the set stored at name (empty if absent).

        Raises:
            CacheOperationError: If the backend rejects the operation
        """

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics (hits, misses, size, etc.)
        """

    @abstractmethod
    async def close(self) -> None:
        """
        Close the cache backend and release resources.

        Should be called during graceful shutdown.
        """

    async def set_add_many(self, pairs: Iterable[tuple[str, str]], atomic: bool = False) -> int:
        """
        Apply several set additions.

        Default implementation calls set_add() for each pair; the atomic flag
        is only honoured by backends that support transactions.

        Args:
            pairs: (set name, member) pairs
            atomic: Request all additions land in one transaction

        Returns:
            Total number of members newly added
        """
        count = 0
        for name, member in pairs:
            count += await self.set_add(name, member)
        return count

    async def set_remove_many(self, pairs: Iterable[tuple[str, str]], atomic: bool = False) -> int:
        """
        Apply several set removals.

        Default implementation calls set_remove() for each pair.

        Returns:
            Total number of members removed
        """
        count = 0
        for name, member in pairs:
            count += await self.set_remove(name, member)
        return count

    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        """
        Retrieve multiple values from the cache.

        Default implementation calls get() for each key.
        Backends can override for better performance.

        Args:
            keys: List of cache keys

        Returns:
            Dictionary mapping keys to values (missing keys are omitted)
        """
        missing = object()
        result = {}
        for key in keys:
            value = await self.get(key, missing)
            if value is not missing:
                result[key] = value
        return result

    async def delete_many(self, keys: list[str]) -> int:
        """
        Delete multiple keys from the cache.

        Default implementation calls delete() for each key.
        Backends can override for better performance.

        Args:
            keys: List of cache keys to delete

        Returns:
            Number of keys successfully deleted

        Raises:
            CacheOperationError: If the backend rejects the deletion
        """
        count = 0
        for key in keys:
            if await self.delete(key):
                count += 1
        return count
