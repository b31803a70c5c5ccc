"""
tagcache - Redis Cache Backend

Asynchronous Redis cache implementation with:
- JSON serialization for values, raw passthrough for anything JSON can't encode
- Byte-level responses, so raw binary values read back unchanged
- Per-key TTL support (SET EX / PEXPIRE)
- Namespace prefixing for safe multi-tenant usage
- SADD / SREM / SMEMBERS set primitives for the tag index
- Optional MULTI/EXEC transactions for batched index updates

Requires: redis>=5.0 with asyncio support

Example:
    cache = RedisCacheBackend(redis_url="redis://localhost:6379/15", namespace="tagcache", default_ttl=3600)
    await cache.set("greeting", {"msg": "hello"}, ttl=60)
    val = await cache.get("greeting")
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

from ...errors import CacheConnectionError, CacheOperationError
from .. import codec
from ..interface import CacheInterface

logger = logging.getLogger(__name__)

try:
    from redis.asyncio import Redis
    from redis.asyncio.retry import Retry
    from redis.backoff import NoBackoff
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import RedisError
    from redis.exceptions import TimeoutError as RedisTimeoutError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e

_UNAVAILABLE = (RedisConnectionError, RedisTimeoutError, OSError)


class RedisCacheBackend(CacheInterface):
    """
    Redis cache backend with JSON serialization and TTL.

    Notes:
    - Keys and set names are prefixed with the configured namespace.
    - Set members are stored un-prefixed so callers see logical names.
    - TTL is applied via Redis EX seconds (None -> default_ttl, 0 or less -> no expiry).
    - Connectivity failures raise CacheConnectionError; nothing is retried.
    """

    def __init__(
        self,
        redis_url: str,
        namespace: str = "tagcache",
        default_ttl: int = 3600,
        max_connections: int = 10,
        socket_timeout: int = 5,
    ) -> None:
        """
        Initialize Redis cache backend.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/15 or rediss:// for TLS
            namespace: Prefix for all keys (e.g., "tagcache")
            default_ttl: Default TTL in seconds (0 => no expiry)
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
        """
        if not redis_url:
            raise ValueError("redis_url is required")

        self.namespace = namespace.strip() or "tagcache"
        self.default_ttl = max(0, int(default_ttl))
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

        # Lazy connection; connects on first command. Client-side retries are off:
        # a failing server surfaces as CacheConnectionError on the first attempt.
        # Responses stay bytes; the codec decodes values, set members are UTF-8.
        self._client = Redis.from_url(  # type: ignore[call-overload]
            url=redis_url,
            decode_responses=False,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
            retry=Retry(NoBackoff(), 0),
        )

    # ------------ Helpers ------------

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{key}"

    def _ttl_seconds(self, ttl: int | None) -> int | None:
        """
        Normalize TTL:
        - None -> default_ttl
        - 0 or negative -> no expiry (return None)
        - positive -> provided ttl
        """
        if ttl is None:
            ttl = self.default_ttl
        ttl = int(ttl)
        return ttl if ttl > 0 else None

    def _unavailable(self, operation: str, error: Exception) -> CacheConnectionError:
        logger.error(
            f"Redis unavailable during {operation}: {error}",
            extra={"namespace": self.namespace, "operation": operation, "error": str(error)},
        )
        return CacheConnectionError(
            "redis",
            details={"namespace": self.namespace, "operation": operation, "error": str(error)},
        )

    # ------------ Core Interface ------------

    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a value by key."""
        if not key:
            logger.warning("Attempted to get cache value with empty key")
            return default

        try:
            data = await self._client.get(self._make_key(key))
        except _UNAVAILABLE as e:
            raise self._unavailable("get", e) from e
        except RedisError as e:
            logger.error(
                f"Failed to get key '{key}' from Redis: {e}",
                extra={"key": key, "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            self._misses += 1
            return default

        if data is None:
            self._misses += 1
            return default

        self._hits += 1
        return codec.decode(data)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store a value with optional TTL."""
        if not key:
            logger.warning("Attempted to set cache value with empty key")
            return False

        ex = self._ttl_seconds(ttl)
        payload = codec.encode(value)
        try:
            res = await self._client.set(name=self._make_key(key), value=payload, ex=ex)
        except _UNAVAILABLE as e:
            raise self._unavailable("set", e) from e
        except (RedisError, TypeError, ValueError) as e:
            # DataError for raw values the client cannot send
            logger.error(
                f"Failed to set key '{key}' in Redis: {e}",
                extra={"key": key, "namespace": self.namespace, "ttl": ttl, "value_type": type(value).__name__},
                exc_info=True,
            )
            return False

        success = bool(res)
        if success:
            self._sets += 1
        return success

    async def delete(self, key: str, after: float = 0) -> bool:
        """Delete a single key now, or PEXPIRE it after the given seconds."""
        if not key:
            logger.warning("Attempted to delete cache value with empty key")
            return False

        ns_key = self._make_key(key)
        try:
            if after > 0:
                # Millisecond resolution; never rounds a pending delete down to now
                return bool(await self._client.pexpire(ns_key, math.ceil(after * 1000)))
            deleted = await self._client.delete(ns_key)
        except _UNAVAILABLE as e:
            raise self._unavailable("delete", e) from e
        except RedisError as e:
            logger.error(
                f"Failed to delete key '{key}' from Redis: {e}",
                extra={"key": key, "namespace": self.namespace, "after": after, "error": str(e)},
                exc_info=True,
            )
            return False

        if deleted:
            self._deletes += 1
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        """Check if a key exists."""
        if not key:
            return False

        try:
            return bool(await self._client.exists(self._make_key(key)))
        except _UNAVAILABLE as e:
            raise self._unavailable("exists", e) from e
        except RedisError as e:
            logger.error(
                f"Failed to check existence of key '{key}' in Redis: {e}",
                extra={"key": key, "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            return False

    async def clear(self) -> bool:
        """
        Clear all entries under the namespace.

        Implementation: SCAN match "<namespace>:*" and DEL in batches.
        """
        pattern = f"{self.namespace}:*"
        cursor = 0
        total_deleted = 0
        batch_size = 1000

        try:
            while True:
                cursor, keys = await self._client.scan(cursor=cursor, match=pattern, count=batch_size)
                if keys:
                    total_deleted += await self._client.delete(*keys)
                if cursor == 0:
                    break
        except _UNAVAILABLE as e:
            raise self._unavailable("clear", e) from e
        except RedisError as e:
            logger.error(
                f"Failed to clear cache for namespace '{self.namespace}': {e}",
                extra={"namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            return False

        self._deletes += total_deleted
        logger.info(f"Cleared {total_deleted} keys from namespace '{self.namespace}'")
        return True

    # ------------ Set primitives ------------

    async def set_add(self, name: str, *members: str) -> int:
        """SADD members to a set."""
        if not members:
            return 0
        try:
            return int(await self._client.sadd(self._make_key(name), *members))
        except _UNAVAILABLE as e:
            raise self._unavailable("sadd", e) from e
        except RedisError as e:
            raise CacheOperationError(
                f"SADD failed for '{name}': {e}",
                details={"key": name, "namespace": self.namespace, "error": str(e)},
            ) from e

    async def set_remove(self, name: str, *members: str) -> int:
        """SREM members from a set."""
        if not members:
            return 0
        try:
            return int(await self._client.srem(self._make_key(name), *members))
        except _UNAVAILABLE as e:
            raise self._unavailable("srem", e) from e
        except RedisError as e:
            raise CacheOperationError(
                f"SREM failed for '{name}': {e}",
                details={"key": name, "namespace": self.namespace, "error": str(e)},
            ) from e

    async def set_members(self, name: str) -> set[str]:
        """SMEMBERS of a set (empty if absent)."""
        try:
            members = await self._client.smembers(self._make_key(name))
        except _UNAVAILABLE as e:
            raise self._unavailable("smembers", e) from e
        except RedisError as e:
            raise CacheOperationError(
                f"SMEMBERS failed for '{name}': {e}",
                details={"key": name, "namespace": self.namespace, "error": str(e)},
            ) from e

        return {m.decode("utf-8") if isinstance(m, bytes) else m for m in members}

    async def _pipelined(self, command: str, pairs: Iterable[tuple[str, str]], atomic: bool) -> int:
        """Run one SADD/SREM per pair in a pipeline; MULTI/EXEC when atomic."""
        pairs = list(pairs)
        if not pairs:
            return 0

        try:
            async with self._client.pipeline(transaction=atomic) as pipe:
                for name, member in pairs:
                    getattr(pipe, command)(self._make_key(name), member)
                results = await pipe.execute()
        except _UNAVAILABLE as e:
            raise self._unavailable(command, e) from e
        except RedisError as e:
            raise CacheOperationError(
                f"Pipelined {command.upper()} failed: {e}",
                details={"pairs": len(pairs), "namespace": self.namespace, "atomic": atomic, "error": str(e)},
            ) from e

        return sum(int(r) for r in results)

    async def set_add_many(self, pairs: Iterable[tuple[str, str]], atomic: bool = False) -> int:
        """SADD each (set, member) pair in one round-trip."""
        return await self._pipelined("sadd", pairs, atomic)

    async def set_remove_many(self, pairs: Iterable[tuple[str, str]], atomic: bool = False) -> int:
        """SREM each (set, member) pair in one round-trip."""
        return await self._pipelined("srem", pairs, atomic)

    # ------------ Stats / lifecycle ------------

    async def get_stats(self) -> dict[str, Any]:
        """Return cache statistics and basic Redis info."""
        stats: dict[str, Any] = {
            "backend": "redis",
            "namespace": self.namespace,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
            "connected": False,
        }

        total_requests = self._hits + self._misses
        stats["hit_rate"] = round((self._hits / total_requests) * 100, 2) if total_requests else 0.0

        try:
            pong = await self._client.ping()
            stats["connected"] = bool(pong)

            info = await self._client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
            stats["redis_mode"] = info.get("redis_mode")
        except (RedisError, OSError) as e:
            # If INFO is restricted or the server is down, keep minimal stats
            logger.warning(f"Failed to get Redis INFO (restricted or unavailable): {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the Redis client and release resources."""
        try:
            await self._client.aclose()
            logger.info(f"Closed Redis cache backend for namespace '{self.namespace}'")
        except (RedisError, OSError) as e:
            logger.error(
                f"Error closing Redis client: {e}", extra={"namespace": self.namespace, "error": str(e)}, exc_info=True
            )

    # ------------ Batch operations ------------

    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        """
        Retrieve multiple values in one round-trip using MGET.
        Missing keys are omitted from the result.
        """
        if not keys:
            return {}

        try:
            values = await self._client.mget([self._make_key(k) for k in keys])
        except _UNAVAILABLE as e:
            raise self._unavailable("mget", e) from e
        except RedisError as e:
            logger.error(
                f"Failed to get multiple keys from Redis: {e}",
                extra={"key_count": len(keys), "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            return {}

        result: dict[str, Any] = {}
        # mget preserves order
        for k, raw in zip(keys, values, strict=False):
            if raw is None:
                self._misses += 1
                continue
            self._hits += 1
            result[k] = codec.decode(raw)

        return result

    async def delete_many(self, keys: list[str]) -> int:
        """
        Delete multiple keys in chunks of variadic DEL.
        Returns number of keys successfully deleted.

        Raises:
            CacheOperationError: If Redis rejects a DEL; keys in earlier chunks stay deleted
        """
        if not keys:
            return 0

        ns_keys = [self._make_key(k) for k in keys]
        deleted_total = 0
        chunk_size = 1000

        try:
            for i in range(0, len(ns_keys), chunk_size):
                chunk = ns_keys[i : i + chunk_size]
                deleted_total += int(await self._client.delete(*chunk))
        except _UNAVAILABLE as e:
            raise self._unavailable("delete_many", e) from e
        except RedisError as e:
            self._deletes += deleted_total
            raise CacheOperationError(
                f"DEL failed after {deleted_total} key(s): {e}",
                details={
                    "key_count": len(keys),
                    "deleted": deleted_total,
                    "namespace": self.namespace,
                    "error": str(e),
                },
            ) from e

        self._deletes += deleted_total
        return deleted_total
