"""
tagcache - Tag Index

Maintains the two families of index sets that make tags work:

    tag set      tag:<tag>:keys   -> {keys carrying the tag}
    reverse set  <key>:tags       -> {tag set addresses the key belongs to}

Both directions are updated together on a tagged write and torn down together
by a cascading tag delete. The index keeps no state of its own; everything
lives in the injected backend, so any number of TagIndex objects can share one
store.

Consistency model:
- The value write and the index update are two separate steps. Index sets are
  only touched after the backend acknowledged the value write.
- Each set mutation is an independent backend call unless ``atomic`` is set.
  Then the additions of one write go out as a single transaction, and so do
  the removals of one member from its other tags. Deleting the member's value
  and reverse set is a separate DEL that always runs first; if it fails the
  cascade stops before any set is changed.
- delete_tag works on a snapshot of the tag's members. Keys tagged after the
  snapshot are not visited, and a write racing the final delete can leave a
  reverse entry whose tag set is gone.
- Value expiry does not prune index sets; find() may list keys whose values
  have already expired.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..cache.interface import CacheInterface
from ..config import TagIndexConfig
from ..errors import CacheOperationError, IndexUpdateError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TAG_SET_PATTERN = "tag:{tag}:keys"
DEFAULT_REVERSE_SET_PATTERN = "{key}:tags"


class TagIndex:
    """
    Bidirectional key <-> tag index on top of a CacheInterface backend.

    Index mutation failures are logged and skipped by default, matching the
    behaviour of a plain fire-and-forget SADD/SREM sequence. With
    ``strict=True`` they raise IndexUpdateError instead. Connectivity failures
    always propagate as CacheConnectionError.
    """

    def __init__(
        self,
        backend: CacheInterface,
        tag_set_pattern: str = DEFAULT_TAG_SET_PATTERN,
        reverse_set_pattern: str = DEFAULT_REVERSE_SET_PATTERN,
        strict: bool = False,
        atomic: bool = False,
    ) -> None:
        """
        Initialize the tag index.

        Args:
            backend: Value store holding both the values and the index sets
            tag_set_pattern: Address pattern for tag sets, must contain "{tag}"
            reverse_set_pattern: Address pattern for reverse sets, must contain "{key}"
            strict: Raise IndexUpdateError when an index mutation fails
            atomic: Group the index mutations of one operation in a transaction
        """
        if tag_set_pattern.count("{tag}") != 1:
            raise ValueError("tag_set_pattern must contain '{tag}' exactly once")
        if reverse_set_pattern.count("{key}") != 1:
            raise ValueError("reverse_set_pattern must contain '{key}' exactly once")

        self.backend = backend
        self.tag_set_pattern = tag_set_pattern
        self.reverse_set_pattern = reverse_set_pattern
        self.strict = strict
        self.atomic = atomic

        self._tag_prefix, self._tag_suffix = tag_set_pattern.split("{tag}")

        # Stats
        self._tagged_writes = 0
        self._tags_deleted = 0
        self._cascaded_keys = 0
        self._index_failures = 0

    @classmethod
    def from_config(cls, backend: CacheInterface, config: TagIndexConfig) -> TagIndex:
        """Build an index from a validated TagIndexConfig."""
        return cls(
            backend,
            tag_set_pattern=config.tag_set_pattern,
            reverse_set_pattern=config.reverse_set_pattern,
            strict=config.strict,
            atomic=config.atomic,
        )

    # ------------ Addresses ------------

    def tag_set_address(self, tag: str) -> str:
        """Address of the set holding the keys tagged with ``tag``."""
        if not tag:
            raise ValidationError("Tag must be a non-empty string", details={"tag": tag})
        return self.tag_set_pattern.replace("{tag}", tag)

    def reverse_set_address(self, key: str) -> str:
        """Address of the set holding the tag set addresses ``key`` belongs to."""
        if not key:
            raise ValidationError("Key must be a non-empty string", details={"key": key})
        return self.reverse_set_pattern.replace("{key}", key)

    def tag_from_address(self, address: str) -> str | None:
        """Recover the tag name from a tag set address, or None if it doesn't match the pattern."""
        prefix, suffix = self._tag_prefix, self._tag_suffix
        if len(address) <= len(prefix) + len(suffix):
            return None
        if not address.startswith(prefix) or not address.endswith(suffix):
            return None
        return address[len(prefix) : len(address) - len(suffix)]

    @staticmethod
    def _normalize_tags(tags: Iterable[str] | None) -> list[str]:
        """Deduplicate tags, keeping first-seen order. A bare string counts as one tag."""
        if tags is None:
            return []
        if isinstance(tags, str):
            tags = [tags]
        normalized = list(dict.fromkeys(tags))
        for tag in normalized:
            if not isinstance(tag, str) or not tag:
                raise ValidationError("Tags must be non-empty strings", details={"tag": tag})
        return normalized

    def _index_failed(self, operation: str, key: str, error: CacheOperationError) -> None:
        self._index_failures += 1
        if self.strict:
            raise IndexUpdateError(operation, key, details={"error": error.message}) from error
        logger.warning(
            f"Tag index {operation} failed for key '{key}', continuing: {error.message}",
            extra={"operation": operation, "key": key, "error": error.message},
        )

    # ------------ Write path ------------

    async def attach(self, key: str, tags: Iterable[str]) -> None:
        """
        Record ``key`` under every tag, in both directions.

        Adding an already-present association is a no-op.
        """
        reverse = self.reverse_set_address(key)
        pairs: list[tuple[str, str]] = []
        for tag in self._normalize_tags(tags):
            address = self.tag_set_address(tag)
            pairs.append((address, key))
            pairs.append((reverse, address))

        if not pairs:
            return

        try:
            await self.backend.set_add_many(pairs, atomic=self.atomic)
        except CacheOperationError as e:
            self._index_failed("attach", key, e)
            return

        logger.debug(
            f"Tagged key '{key}' with {len(pairs) // 2} tag(s)",
            extra={"key": key, "tag_count": len(pairs) // 2},
        )

    async def set_with_tags(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        tags: Iterable[str] | None = None,
    ) -> bool:
        """
        Store a value and tag it.

        The index is only updated when the backend acknowledged the value
        write, so a failed write never leaves index entries behind.

        Args:
            key: Cache key
            value: Value to store
            ttl: Time-to-live in seconds (None = backend default, 0 = no expiry)
            tags: Tags to attach to the key

        Returns:
            The backend's write result
        """
        if not key:
            raise ValidationError("Key must be a non-empty string", details={"key": key})
        tag_list = self._normalize_tags(tags)

        result = await self.backend.set(key, value, ttl)
        if not result:
            logger.warning(
                f"Write for key '{key}' was not acknowledged; tag index left untouched",
                extra={"key": key, "tags": tag_list},
            )
            return result

        if tag_list:
            await self.attach(key, tag_list)
            self._tagged_writes += 1

        return result

    # ------------ Queries ------------

    async def find(self, tag: str) -> set[str]:
        """Keys currently tagged with ``tag`` (empty if the tag has no members)."""
        return await self.backend.set_members(self.tag_set_address(tag))

    async def find_tags(self, key: str) -> set[str]:
        """Tag set addresses ``key`` currently participates in (empty if none)."""
        return await self.backend.set_members(self.reverse_set_address(key))

    async def tag_names(self, key: str) -> set[str]:
        """Tag names (rather than addresses) ``key`` currently carries."""
        names = set()
        for address in await self.find_tags(key):
            name = self.tag_from_address(address)
            if name is not None:
                names.add(name)
        return names

    async def get_tagged(self, tag: str) -> dict[str, Any]:
        """
        Values of every key tagged with ``tag``.

        Keys whose values have expired or been deleted outside the index are
        omitted.
        """
        members = await self.find(tag)
        if not members:
            return {}
        return await self.backend.get_many(sorted(members))

    # ------------ Cascading delete ------------

    async def _detach(self, key: str, address: str) -> None:
        """Delete one member of the tag at ``address`` together with all its index references."""
        try:
            tag_addresses = await self.find_tags(key)
            await self.backend.delete_many([key, self.reverse_set_address(key)])
            others = [(other, key) for other in sorted(tag_addresses) if other != address]
            if others:
                await self.backend.set_remove_many(others, atomic=self.atomic)
        except CacheOperationError as e:
            self._index_failed("cascade", key, e)
            return

        self._cascaded_keys += 1

    async def delete_tag(self, tag: str) -> bool:
        """
        Delete a tag and every entry carrying it.

        For each member of the tag (snapshot taken now): its value and its
        reverse set are deleted and it is removed from every other tag it
        carried. The tag's own set is deleted last.

        Returns:
            Whether the tag set itself was deleted (False if the tag had no members)
        """
        address = self.tag_set_address(tag)
        members = await self.find(tag)

        for member in sorted(members):
            await self._detach(member, address)

        try:
            deleted = await self.backend.delete_many([address]) > 0
        except CacheOperationError as e:
            self._index_failed("delete_tag", address, e)
            return False

        if deleted:
            self._tags_deleted += 1

        logger.info(
            f"Deleted tag '{tag}' with {len(members)} member(s)",
            extra={"tag": tag, "members": len(members), "deleted": deleted},
        )
        return deleted

    def get_stats(self) -> dict[str, Any]:
        """Index counters for this instance."""
        return {
            "tagged_writes": self._tagged_writes,
            "tags_deleted": self._tags_deleted,
            "cascaded_keys": self._cascaded_keys,
            "index_failures": self._index_failures,
            "strict": self.strict,
            "atomic": self.atomic,
        }
