"""
tagcache - Configuration Tests
"""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from tagcache.config import (
    CacheBackend,
    CacheConfig,
    Environment,
    TagCacheConfig,
    TagIndexConfig,
    get_config,
    load_config,
    reload_config,
)
from tagcache.errors import ConfigurationError


class TestSchemas:
    def test_defaults(self) -> None:
        config = TagCacheConfig()

        assert config.cache.backend == CacheBackend.MEMORY
        assert config.cache.ttl_seconds == 3600
        assert config.cache.namespace == "tagcache"
        assert config.tags.tag_set_pattern == "tag:{tag}:keys"
        assert config.tags.reverse_set_pattern == "{key}:tags"
        assert config.tags.strict is False
        assert config.tags.atomic is False

    def test_redis_requires_url(self) -> None:
        with pytest.raises(PydanticValidationError):
            CacheConfig(backend=CacheBackend.REDIS, redis_url=None)
        with pytest.raises(PydanticValidationError):
            CacheConfig(backend=CacheBackend.REDIS)

    def test_multiple_servers_rejected(self) -> None:
        with pytest.raises(PydanticValidationError, match="single server"):
            CacheConfig(
                backend=CacheBackend.REDIS,
                redis_url="redis://a:6379/0,redis://b:6379/0",
            )

    def test_negative_ttl_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            CacheConfig(ttl_seconds=-1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"tag_set_pattern": "tag:keys"},
            {"tag_set_pattern": "{tag}{tag}"},
            {"reverse_set_pattern": "tags"},
        ],
    )
    def test_bad_patterns_rejected(self, kwargs: dict[str, str]) -> None:
        with pytest.raises(PydanticValidationError):
            TagIndexConfig(**kwargs)


class TestLoader:
    def test_memory_from_env(self, mock_env_memory: None) -> None:
        config = load_config(reload=True)

        assert config.environment == Environment.TEST.value
        assert config.cache.backend == CacheBackend.MEMORY
        assert config.cache.namespace == "test"

    def test_redis_auto_detected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CACHE_BACKEND", raising=False)
        monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/15")

        config = load_config(reload=True)

        assert config.cache.backend == CacheBackend.REDIS
        assert config.cache.redis_url == "redis://localhost:6379/15"

    def test_tag_settings_from_env(self, mock_env_memory: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TAG_SET_PATTERN", "tags/{tag}")
        monkeypatch.setenv("TAG_REVERSE_SET_PATTERN", "keys/{key}")
        monkeypatch.setenv("TAG_INDEX_STRICT", "true")
        monkeypatch.setenv("TAG_INDEX_ATOMIC", "1")

        config = load_config(reload=True)

        assert config.tags.tag_set_pattern == "tags/{tag}"
        assert config.tags.reverse_set_pattern == "keys/{key}"
        assert config.tags.strict is True
        assert config.tags.atomic is True

    def test_env_file(self, mock_env_memory: None, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.delenv("CACHE_NAMESPACE", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("CACHE_NAMESPACE=from_file\nCACHE_TTL_SECONDS=60\n")

        config = load_config(env_file=str(env_file), reload=True)

        assert config.cache.namespace == "from_file"
        assert config.cache.ttl_seconds == 60

    def test_invalid_values_raise_configuration_error(
        self, mock_env_memory: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CACHE_BACKEND", "memcached")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(reload=True)
        assert "validation_errors" in exc_info.value.details

    def test_non_numeric_ttl(self, mock_env_memory: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHE_TTL_SECONDS", "soon")
        with pytest.raises(ConfigurationError):
            load_config(reload=True)

    def test_config_is_cached(self, mock_env_memory: None) -> None:
        first = get_config()
        assert get_config() is first
        assert reload_config() is not first
