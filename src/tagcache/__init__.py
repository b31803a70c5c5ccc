"""
tagcache - Tagged caching on top of a key-value store

Stores values in Redis (or in-process memory) and indexes them by tag so
groups of entries can be listed or invalidated without knowing their keys.
"""

__version__ = "1.0.0"

from .cache import CacheInterface, create_cache
from .config import TagCacheConfig, load_config
from .errors import (
    CacheConnectionError,
    CacheError,
    CacheOperationError,
    ConfigurationError,
    IndexUpdateError,
    TagCacheError,
    ValidationError,
)
from .log import configure_logging
from .tagging import TagIndex, TaggedCache, create_tagged_cache

__all__ = [
    "CacheInterface",
    "create_cache",
    "TagIndex",
    "TaggedCache",
    "create_tagged_cache",
    "TagCacheConfig",
    "load_config",
    "configure_logging",
    # Errors
    "TagCacheError",
    "ConfigurationError",
    "ValidationError",
    "CacheError",
    "CacheConnectionError",
    "CacheOperationError",
    "IndexUpdateError",
]
