"""
tagcache - Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration must be defined here and validated at startup.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class CacheBackend(str, Enum):
    """Supported cache backends."""

    MEMORY = "memory"
    REDIS = "redis"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Value store configuration."""

    backend: CacheBackend = Field(default=CacheBackend.MEMORY, description="Cache backend to use")
    ttl_seconds: int = Field(default=3600, ge=0, description="Default TTL in seconds (0 = no expiry)")
    namespace: str = Field(default="tagcache", min_length=1, description="Cache key namespace/prefix")

    # Redis-specific settings (only used when backend=redis)
    redis_url: str | None = Field(
        default=None, validate_default=True, description="Redis connection URL (single server)"
    )
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: int = Field(default=5, ge=1, description="Redis socket timeout in seconds")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure exactly one redis_url is provided when backend is redis."""
        backend = info.data.get("backend")
        if backend == CacheBackend.REDIS and not v:
            raise ValueError("redis_url is required when cache backend is 'redis'")
        if v and "," in v:
            # Only one server is ever live; refuse lists instead of keeping the last entry
            raise ValueError("redis_url must name a single server; multi-server routing is not supported")
        return v


class TagIndexConfig(BaseModel):
    """Tag index configuration."""

    tag_set_pattern: str = Field(default="tag:{tag}:keys", description="Address pattern for tag -> keys sets")
    reverse_set_pattern: str = Field(default="{key}:tags", description="Address pattern for key -> tags sets")
    strict: bool = Field(default=False, description="Raise IndexUpdateError when an index mutation fails")
    atomic: bool = Field(default=False, description="Group index mutations in a single backend transaction")

    @field_validator("tag_set_pattern")
    @classmethod
    def validate_tag_set_pattern(cls, v: str) -> str:
        """Tag set pattern must embed the tag exactly once."""
        if v.count("{tag}") != 1:
            raise ValueError("tag_set_pattern must contain '{tag}' exactly once")
        return v

    @field_validator("reverse_set_pattern")
    @classmethod
    def validate_reverse_set_pattern(cls, v: str) -> str:
        """Reverse set pattern must embed the key exactly once."""
        if v.count("{key}") != 1:
            raise ValueError("reverse_set_pattern must contain '{key}' exactly once")
        return v


class TagCacheConfig(BaseModel):
    """Root configuration for tagcache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)
    tags: TagIndexConfig = Field(default_factory=TagIndexConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
