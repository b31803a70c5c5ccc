"""
tagcache - Tagging Module

Tag index over a value store backend, and the cache handle combining both.
"""

from .cache import TaggedCache, create_tagged_cache
from .index import DEFAULT_REVERSE_SET_PATTERN, DEFAULT_TAG_SET_PATTERN, TagIndex

__all__ = [
    "TagIndex",
    "TaggedCache",
    "create_tagged_cache",
    "DEFAULT_TAG_SET_PATTERN",
    "DEFAULT_REVERSE_SET_PATTERN",
]
