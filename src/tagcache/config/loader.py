"""
tagcache - Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a cached configuration instance for callers that do not build their own.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import TagCacheConfig

logger = logging.getLogger(__name__)

_config_instance: TagCacheConfig | None = None


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> TagCacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated TagCacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Auto-detect cache backend: Redis if REDIS_URL is set, else memory
    redis_url = os.getenv("REDIS_URL")
    cache_backend = "redis" if redis_url else "memory"

    try:
        config_dict = {
            "environment": os.getenv("ENVIRONMENT", "development"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "cache": {
                "backend": os.getenv("CACHE_BACKEND", cache_backend),
                "ttl_seconds": int(os.getenv("CACHE_TTL_SECONDS", "3600")),
                "namespace": os.getenv("CACHE_NAMESPACE", "tagcache"),
                "redis_url": redis_url,
                "redis_max_connections": int(os.getenv("REDIS_MAX_CONNECTIONS", "10")),
                "redis_socket_timeout": int(os.getenv("REDIS_SOCKET_TIMEOUT", "5")),
            },
            "tags": {
                "tag_set_pattern": os.getenv("TAG_SET_PATTERN", "tag:{tag}:keys"),
                "reverse_set_pattern": os.getenv("TAG_REVERSE_SET_PATTERN", "{key}:tags"),
                "strict": _env_flag("TAG_INDEX_STRICT"),
                "atomic": _env_flag("TAG_INDEX_ATOMIC"),
            },
        }
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid numeric configuration value: {e}",
            details={"error": str(e)},
        ) from e

    try:
        _config_instance = TagCacheConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={"environment": _config_instance.environment, "cache_backend": _config_instance.cache.backend},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> TagCacheConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current TagCacheConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> TagCacheConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded TagCacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """Drop the cached configuration instance. Intended for tests."""
    global _config_instance
    _config_instance = None
