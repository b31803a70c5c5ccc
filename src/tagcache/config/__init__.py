"""
tagcache - Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, reset_config
from .schemas import (
    CacheBackend,
    CacheConfig,
    Environment,
    LogLevel,
    TagCacheConfig,
    TagIndexConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    # Main config
    "TagCacheConfig",
    # Enums
    "Environment",
    "CacheBackend",
    "LogLevel",
    # Config sections
    "CacheConfig",
    "TagIndexConfig",
]
