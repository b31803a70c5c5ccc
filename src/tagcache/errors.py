"""
tagcache - Core Error Types

Defines the exception hierarchy for the tagged cache.
All exceptions inherit from TagCacheError for consistent error handling.

Error taxonomy:
- CacheConnectionError: backend unavailable (raised at construction or first use, never retried)
- CacheOperationError: a backend primitive failed (set add/remove/members, wrong key type)
- IndexUpdateError: a tag index mutation failed while strict indexing is enabled
- ValidationError: caller supplied an unusable key or tag
- ConfigurationError: configuration is invalid or incomplete
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes for structured error reporting.

    Used by callers that translate tagcache errors into their own responses.
    """

    # Input validation errors
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_KEY = "INVALID_KEY"
    INVALID_TAG = "INVALID_TAG"

    # Backend errors
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    CACHE_FAILURE = "CACHE_FAILURE"
    INDEX_FAILURE = "INDEX_FAILURE"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TagCacheError(Exception):
    """Base exception for all tagcache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logging or API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(TagCacheError):
    """Raised when configuration is invalid or missing."""


class ValidationError(TagCacheError):
    """Raised when a key or tag supplied by the caller is unusable."""


class CacheError(TagCacheError):
    """Base exception for cache-related errors."""


class CacheConnectionError(CacheError):
    """Raised when the cache backend cannot be reached."""

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to cache backend: {backend}"
        super().__init__(message, details)
        self.backend = backend


class CacheOperationError(CacheError):
    """Raised when a cache backend primitive fails."""


class IndexUpdateError(CacheError):
    """Raised when a tag index mutation fails and strict indexing is enabled."""

    def __init__(self, operation: str, key: str, details: dict[str, Any] | None = None):
        message = f"Tag index {operation} failed for key '{key}'"
        error_details = details or {}
        error_details.update({"operation": operation, "key": key})
        super().__init__(message, error_details)
        self.operation = operation
        self.key = key


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, CacheConnectionError):
        return ErrorCode.BACKEND_UNAVAILABLE

    if isinstance(error, IndexUpdateError):
        return ErrorCode.INDEX_FAILURE

    if isinstance(error, CacheError):
        return ErrorCode.CACHE_FAILURE

    if isinstance(error, ValidationError):
        return ErrorCode.INVALID_INPUT

    if isinstance(error, ConfigurationError):
        return ErrorCode.CONFIGURATION_ERROR

    return ErrorCode.INTERNAL_ERROR
