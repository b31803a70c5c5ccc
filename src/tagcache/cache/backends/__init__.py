"""
tagcache - Cache Backends

Exports available cache backend implementations.

Redis backend is lazy-loaded via factory.py to avoid a hard dependency on the client at import time.
"""

from .memory import MemoryCacheBackend

__all__ = [
    "MemoryCacheBackend",
]
