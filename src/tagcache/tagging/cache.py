"""
tagcache - Tagged Cache

One object exposing the value store and the tag index together, so callers
get/set/delete plain entries and work with tags through the same handle.

Usage:
    from tagcache import create_tagged_cache

    async with create_tagged_cache() as cache:
        await cache.set_with_tags("post:1", {"title": "hi"}, ttl=0, tags=["blog", "featured"])
        await cache.find("blog")          # {"post:1"}
        await cache.delete_tag("blog")    # post:1 is gone, and no longer under "featured"
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from types import TracebackType
from typing import Any

from ..cache.factory import create_cache
from ..cache.interface import CacheInterface
from ..config import TagCacheConfig, get_config
from .index import TagIndex

logger = logging.getLogger(__name__)


class TaggedCache:
    """Value store plus tag index behind a single cache handle."""

    def __init__(self, backend: CacheInterface, index: TagIndex | None = None) -> None:
        """
        Args:
            backend: Value store
            index: Tag index over the same backend (a default one is built if omitted)
        """
        if index is not None and index.backend is not backend:
            raise ValueError("Tag index must use the same backend as the cache")
        self.backend = backend
        self.index = index or TagIndex(backend)

    # ------------ Plain entries ------------

    async def get(self, key: str, default: Any = None) -> Any:
        return await self.backend.get(key, default)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        return await self.backend.set(key, value, ttl)

    async def delete(self, key: str, after: float = 0) -> bool:
        """Delete (or expire) one entry. Its tag associations are left in place."""
        return await self.backend.delete(key, after)

    async def exists(self, key: str) -> bool:
        return await self.backend.exists(key)

    async def clear(self) -> bool:
        """Remove every entry and every index set in the namespace."""
        return await self.backend.clear()

    # ------------ Tags ------------

    async def set_with_tags(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        tags: Iterable[str] | None = None,
    ) -> bool:
        return await self.index.set_with_tags(key, value, ttl, tags)

    async def find(self, tag: str) -> set[str]:
        return await self.index.find(tag)

    async def find_tags(self, key: str) -> set[str]:
        return await self.index.find_tags(key)

    async def get_tagged(self, tag: str) -> dict[str, Any]:
        return await self.index.get_tagged(tag)

    async def delete_tag(self, tag: str) -> bool:
        return await self.index.delete_tag(tag)

    # ------------ Stats / lifecycle ------------

    async def get_stats(self) -> dict[str, Any]:
        stats = await self.backend.get_stats()
        stats["index"] = self.index.get_stats()
        return stats

    async def close(self) -> None:
        await self.backend.close()

    async def __aenter__(self) -> TaggedCache:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


def create_tagged_cache(config: TagCacheConfig | None = None) -> TaggedCache:
    """
    Build a backend, a tag index and the cache handle wrapping both.

    Every call returns a fresh instance; nothing is registered globally.

    Args:
        config: Full configuration (uses the loaded global config if omitted)

    Raises:
        ConfigurationError: If the backend cannot be created
    """
    if config is None:
        config = get_config()

    backend = create_cache(config.cache)
    index = TagIndex.from_config(backend, config.tags)
    logger.debug(
        "Created tagged cache",
        extra={"backend": str(config.cache.backend), "strict": index.strict, "atomic": index.atomic},
    )
    return TaggedCache(backend, index)
