"""
tagcache - Cache Factory

Builds value store backends from configuration.

Key points:
- Backend selection: CACHE_BACKEND=memory|redis (redis is auto-selected when REDIS_URL is set)
- Every call returns a new backend; callers own its lifecycle and pass it
  explicitly to whatever needs it (no process-wide instance registry)
- All configuration is typed and validated via Pydantic models

Examples:
    from tagcache.cache.factory import create_cache
    from tagcache.config import CacheBackend, CacheConfig

    cache = create_cache()  # env-configured
    mem_cache = create_cache(CacheConfig(backend=CacheBackend.MEMORY, ttl_seconds=600))
"""

from __future__ import annotations

import logging

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import ConfigurationError
from .backends.memory import MemoryCacheBackend
from .interface import CacheInterface

logger = logging.getLogger(__name__)


def _create_memory_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a memory cache backend."""
    return MemoryCacheBackend(
        default_ttl=config.ttl_seconds,
        namespace=config.namespace,
    )


def _create_redis_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a redis cache backend with lazy import."""
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set when CACHE_BACKEND=redis",
            details={"env": "REDIS_URL", "backend": "redis"},
        )

    try:
        from .backends.redis import RedisCacheBackend
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. Install with: pip install 'redis>=5.0.0'.",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
        ) from e

    return RedisCacheBackend(
        redis_url=config.redis_url,
        namespace=config.namespace,
        default_ttl=config.ttl_seconds,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
    )


def create_cache(config: CacheConfig | None = None) -> CacheInterface:
    """
    Create a cache backend instance based on configuration.

    Args:
        config: Cache configuration (uses global config if not provided)

    Returns:
        Configured cache backend instance

    Raises:
        ConfigurationError: If cache configuration is invalid or backend unavailable
    """
    if config is None:
        config = get_config().cache

    logger.info(
        "Creating cache backend: %s",
        config.backend,
        extra={"backend": str(config.backend), "namespace": config.namespace},
    )

    try:
        if config.backend == CacheBackend.MEMORY:
            cache = _create_memory_cache(config)
        elif config.backend == CacheBackend.REDIS:
            cache = _create_redis_cache(config)
        else:
            raise ConfigurationError(
                f"Unknown cache backend: {config.backend}",
                details={
                    "backend": str(config.backend),
                    "supported": ["memory", "redis"],
                },
            )
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error creating cache backend: %s",
            e,
            extra={"backend": str(config.backend), "error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to create cache backend: {e}",
            details={"backend": str(config.backend), "error": str(e)},
        ) from e

    return cache
