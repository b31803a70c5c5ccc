"""
tagcache - Tagged Cache Integration Tests

End-to-end behaviour of the cache handle against every available backend.
"""

from collections.abc import AsyncGenerator

import pytest

from tagcache import create_tagged_cache
from tagcache.cache.backends.memory import MemoryCacheBackend
from tagcache.config import CacheBackend, CacheConfig, TagCacheConfig, TagIndexConfig
from tagcache.tagging import TagIndex, TaggedCache

# Check if Redis is available
try:
    import socket

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.settimeout(1)
    redis_available = sock.connect_ex(("localhost", 6379)) == 0
    sock.close()
except OSError:
    redis_available = False


@pytest.fixture(
    params=[
        pytest.param((CacheBackend.MEMORY, False), id="memory"),
        pytest.param(
            (CacheBackend.REDIS, False),
            id="redis",
            marks=pytest.mark.skipif(not redis_available, reason="Redis server not available"),
        ),
        pytest.param(
            (CacheBackend.REDIS, True),
            id="redis-atomic",
            marks=pytest.mark.skipif(not redis_available, reason="Redis server not available"),
        ),
    ]
)
async def cache(request: pytest.FixtureRequest, test_redis_url: str) -> AsyncGenerator[TaggedCache, None]:
    backend, atomic = request.param
    config = TagCacheConfig(
        cache=CacheConfig(
            backend=backend,
            namespace="itest",
            redis_url=test_redis_url if backend == CacheBackend.REDIS else None,
        ),
        tags=TagIndexConfig(atomic=atomic),
    )
    async with create_tagged_cache(config) as tagged:
        await tagged.clear()
        yield tagged
        await tagged.clear()


class TestScenario:
    async def test_blog_post_lifecycle(self, cache: TaggedCache) -> None:
        assert await cache.set_with_tags("post:1", {"title": "hi"}, 0, {"blog", "featured"}) is True

        assert await cache.find("blog") == {"post:1"}
        assert await cache.find("featured") == {"post:1"}
        assert await cache.find_tags("post:1") == {"tag:blog:keys", "tag:featured:keys"}
        assert await cache.get("post:1") == {"title": "hi"}

        assert await cache.delete_tag("blog") is True

        assert await cache.get("post:1") is None
        assert await cache.find("featured") == set()
        assert await cache.find("blog") == set()
        assert await cache.find_tags("post:1") == set()

    async def test_get_tagged(self, cache: TaggedCache) -> None:
        await cache.set_with_tags("post:1", {"title": "one"}, 0, ["blog"])
        await cache.set_with_tags("post:2", {"title": "two"}, 0, ["blog"])
        await cache.set("post:3", {"title": "untagged"})

        assert await cache.get_tagged("blog") == {
            "post:1": {"title": "one"},
            "post:2": {"title": "two"},
        }

    async def test_plain_delete_keeps_index(self, cache: TaggedCache) -> None:
        """Deleting a value leaves its tag associations in place."""
        await cache.set_with_tags("post:1", "v", 0, ["blog"])

        assert await cache.delete("post:1") is True
        assert await cache.exists("post:1") is False
        assert await cache.find("blog") == {"post:1"}
        assert await cache.find_tags("post:1") == {"tag:blog:keys"}

        # The cascade still cleans up the stale entry
        assert await cache.delete_tag("blog") is True
        assert await cache.find_tags("post:1") == set()

    async def test_clear_removes_values_and_index(self, cache: TaggedCache) -> None:
        await cache.set_with_tags("post:1", "v", 0, ["blog"])

        assert await cache.clear() is True

        assert await cache.get("post:1") is None
        assert await cache.find("blog") == set()
        assert await cache.find_tags("post:1") == set()

    async def test_raw_binary_value_through_tags(self, cache: TaggedCache) -> None:
        assert await cache.set_with_tags("blob", b"\xff\xfe", 0, ["bin"]) is True

        assert await cache.get("blob") == b"\xff\xfe"
        assert await cache.get_tagged("bin") == {"blob": b"\xff\xfe"}

    async def test_empty_key_handled_alike(self, cache: TaggedCache) -> None:
        assert await cache.set("", "v") is False
        assert await cache.get("", "fallback") == "fallback"
        assert await cache.exists("") is False
        assert await cache.delete("") is False

    async def test_delete_after_keeps_entry_until_due(self, cache: TaggedCache) -> None:
        await cache.set("post:1", "v", 0)

        assert await cache.delete("post:1", after=0.5) is True
        assert await cache.get("post:1") == "v"

    async def test_stats_include_index(self, cache: TaggedCache) -> None:
        await cache.set_with_tags("post:1", "v", 0, ["blog"])
        await cache.delete_tag("blog")

        stats = await cache.get_stats()
        assert stats["index"]["tagged_writes"] == 1
        assert stats["index"]["tags_deleted"] == 1
        assert stats["index"]["cascaded_keys"] == 1


class TestConstruction:
    def test_default_index_uses_backend(self) -> None:
        backend = MemoryCacheBackend(namespace="test")
        cache = TaggedCache(backend)
        assert cache.index.backend is backend

    def test_index_must_share_backend(self) -> None:
        with pytest.raises(ValueError):
            TaggedCache(MemoryCacheBackend(), TagIndex(MemoryCacheBackend()))

    def test_each_call_builds_a_new_cache(self) -> None:
        config = TagCacheConfig()
        assert create_tagged_cache(config) is not create_tagged_cache(config)

    def test_index_options_from_config(self) -> None:
        config = TagCacheConfig(tags=TagIndexConfig(strict=True, tag_set_pattern="t:{tag}"))
        cache = create_tagged_cache(config)

        assert cache.index.strict is True
        assert cache.index.tag_set_address("a") == "t:a"

    def test_env_config_used_by_default(self, mock_env_memory: None) -> None:
        cache = create_tagged_cache()
        assert isinstance(cache.backend, MemoryCacheBackend)
        assert cache.backend.namespace == "test"
