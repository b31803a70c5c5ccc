"""
tagcache - Cache Module

Value store adapters with pluggable backends.

- factory.py: builds a backend from configuration
- interface.py: abstract contract all backends implement
- codec.py: JSON encoding with raw fallback
- backends/: memory and Redis implementations

Usage:
    from tagcache.cache import create_cache

    cache = create_cache()
    await cache.set("key", "value", ttl=3600)
    value = await cache.get("key")
"""

from .factory import create_cache
from .interface import CacheInterface

__all__ = [
    "create_cache",
    "CacheInterface",
]
