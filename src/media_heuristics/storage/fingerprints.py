"""Content fingerprint stores for syndication duplicate detection.

The detector only sees the FingerprintStore protocol:
- InMemoryFingerprintStore: bounded LRU owned by one process
- RedisFingerprintStore: shared store with per-key TTL

Ordering within a batch is the caller's job. Stores only keep entries.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import orjson
from pydantic import ValidationError
from redis.exceptions import RedisError

from media_heuristics.config import Settings, get_settings
from media_heuristics.core.constants import (
    DEFAULT_FINGERPRINT_CAPACITY,
    DEFAULT_FINGERPRINT_TTL_SECONDS,
    FINGERPRINT_REDIS_PREFIX,
)
from media_heuristics.core.exceptions import FingerprintStoreError
from media_heuristics.core.logging import get_logger
from media_heuristics.models import ContentFingerprint

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)


@runtime_checkable
class FingerprintStore(Protocol):
    """Protocol for fingerprint persistence keyed by ``ContentFingerprint.key``."""

    async def get(self, key: str) -> ContentFingerprint | None:
        """Return the fingerprint stored under key, or None."""
        ...

    async def put(self, fingerprint: ContentFingerprint) -> None:
        """Insert or replace a fingerprint under its own key."""
        ...

    async def values(self) -> list[ContentFingerprint]:
        """Return every stored fingerprint."""
        ...

    async def size(self) -> int:
        ...

    async def clear(self) -> None:
        ...


class InMemoryFingerprintStore:
    """Bounded LRU store. The least recently used entry is evicted when full."""

    def __init__(self, capacity: int = DEFAULT_FINGERPRINT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._entries: OrderedDict[str, ContentFingerprint] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    async def get(self, key: str) -> ContentFingerprint | None:
        fingerprint = self._entries.get(key)
        if fingerprint is not None:
            self._entries.move_to_end(key)
        return fingerprint

    async def put(self, fingerprint: ContentFingerprint) -> None:
        key = fingerprint.key
        self._entries[key] = fingerprint
        self._entries.move_to_end(key)
        while len(self._entries) > self._capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Fingerprint evicted", key=evicted, capacity=self._capacity)

    async def values(self) -> list[ContentFingerprint]:
        return list(self._entries.values())

    async def size(self) -> int:
        return len(self._entries)

    async def clear(self) -> None:
        self._entries.clear()


class RedisFingerprintStore:
    """Redis-backed store. Entries expire ``ttl_seconds`` after their last write."""

    def __init__(
        self,
        redis: Redis,
        ttl_seconds: int = DEFAULT_FINGERPRINT_TTL_SECONDS,
        key_prefix: str = FINGERPRINT_REDIS_PREFIX,
    ) -> None:
        self._redis = redis
        self._ttl_seconds = ttl_seconds
        self._prefix = key_prefix

    def _make_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    @staticmethod
    def _decode(data: bytes) -> ContentFingerprint:
        try:
            return ContentFingerprint.model_validate(orjson.loads(data))
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise FingerprintStoreError(f"Corrupted fingerprint data: {e}") from e

    async def get(self, key: str) -> ContentFingerprint | None:
        try:
            data = await self._redis.get(self._make_key(key))
        except RedisError as e:
            raise FingerprintStoreError(f"Fingerprint read failed: {e}") from e
        if data is None:
            return None
        return self._decode(data)

    async def put(self, fingerprint: ContentFingerprint) -> None:
        payload = orjson.dumps(fingerprint.model_dump(mode="json"))
        try:
            await self._redis.set(self._make_key(fingerprint.key), payload, ex=self._ttl_seconds)
        except RedisError as e:
            raise FingerprintStoreError(f"Fingerprint write failed: {e}") from e

    async def values(self) -> list[ContentFingerprint]:
        fingerprints: list[ContentFingerprint] = []
        try:
            async for key in self._redis.scan_iter(match=f"{self._prefix}*", count=100):
                data = await self._redis.get(key)
                # Key may expire between SCAN and GET
                if data is not None:
                    fingerprints.append(self._decode(data))
        except RedisError as e:
            raise FingerprintStoreError(f"Fingerprint scan failed: {e}") from e
        return fingerprints

    async def size(self) -> int:
        count = 0
        try:
            async for _ in self._redis.scan_iter(match=f"{self._prefix}*", count=100):
                count += 1
        except RedisError as e:
            raise FingerprintStoreError(f"Fingerprint scan failed: {e}") from e
        return count

    async def clear(self) -> None:
        try:
            keys = [key async for key in self._redis.scan_iter(match=f"{self._prefix}*", count=100)]
            if keys:
                await self._redis.delete(*keys)
        except RedisError as e:
            raise FingerprintStoreError(f"Fingerprint clear failed: {e}") from e
        logger.debug("Fingerprints cleared", deleted=len(keys))


def create_fingerprint_store(
    settings: Settings | None = None,
    redis: Redis | None = None,
) -> FingerprintStore:
    """Create the fingerprint store selected by settings.

    Args:
        settings: Settings to read (uses get_settings() if not provided)
        redis: Redis client for the redis backend (uses the global client if not provided)

    Returns:
        FingerprintStore implementation based on settings.fingerprint_backend
    """
    settings = settings or get_settings()

    if settings.fingerprint_backend == "redis":
        from media_heuristics.storage.redis import get_redis

        logger.debug("Creating RedisFingerprintStore", ttl_seconds=settings.fingerprint_ttl_seconds)
        return RedisFingerprintStore(
            redis if redis is not None else get_redis(),
            ttl_seconds=settings.fingerprint_ttl_seconds,
        )

    logger.debug("Creating InMemoryFingerprintStore", capacity=settings.fingerprint_capacity)
    return InMemoryFingerprintStore(capacity=settings.fingerprint_capacity)
