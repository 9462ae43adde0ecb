"""Tests for fingerprint stores."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnError

from media_heuristics.config import Settings
from media_heuristics.core.exceptions import FingerprintStoreError
from media_heuristics.models import ContentFingerprint, DateRange
from media_heuristics.storage.fingerprints import (
    FingerprintStore,
    InMemoryFingerprintStore,
    RedisFingerprintStore,
    create_fingerprint_store,
)

PUBLISHED = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


def create_fingerprint(title_hash: str, url: str = "https://example.com/a") -> ContentFingerprint:
    """Create a single-sighting fingerprint."""
    return ContentFingerprint(
        title_hash=title_hash,
        author_hash="auth",
        publish_date_range=DateRange(earliest=PUBLISHED, latest=PUBLISHED),
        urls=[url],
        domains=["example.com"],
        published_dates=[PUBLISHED],
    )


def mock_scan(keys: list[bytes]) -> MagicMock:
    """scan_iter replacement yielding the given keys."""

    async def _scan(**kwargs: object) -> AsyncIterator[bytes]:
        for key in keys:
            yield key

    return MagicMock(side_effect=lambda **kwargs: _scan(**kwargs))


class TestContentFingerprint:
    """Tests for ContentFingerprint helpers."""

    def test_key_combines_title_and_author(self) -> None:
        assert create_fingerprint("abc").key == "abc-auth"

    def test_record_widens_date_range(self) -> None:
        fingerprint = create_fingerprint("abc")
        earlier = datetime(2026, 1, 10, tzinfo=UTC)

        fingerprint.record("https://other.com/a", "other.com", earlier)

        assert fingerprint.urls == ["https://example.com/a", "https://other.com/a"]
        assert fingerprint.domains == ["example.com", "other.com"]
        assert fingerprint.publish_date_range.earliest == earlier
        assert fingerprint.publish_date_range.latest == PUBLISHED


class TestInMemoryFingerprintStore:
    """Tests for the bounded LRU store."""

    def test_implements_protocol(self) -> None:
        assert isinstance(InMemoryFingerprintStore(), FingerprintStore)

    def test_rejects_zero_capacity(self) -> None:
        with pytest.raises(ValueError, match="capacity"):
            InMemoryFingerprintStore(capacity=0)

    @pytest.mark.asyncio
    async def test_put_and_get(self) -> None:
        store = InMemoryFingerprintStore()
        fingerprint = create_fingerprint("abc")

        await store.put(fingerprint)

        assert await store.get("abc-auth") is fingerprint
        assert await store.get("missing") is None
        assert await store.size() == 1

    @pytest.mark.asyncio
    async def test_evicts_least_recently_used(self) -> None:
        """Reading an entry protects it from eviction."""
        store = InMemoryFingerprintStore(capacity=2)
        await store.put(create_fingerprint("a"))
        await store.put(create_fingerprint("b"))
        await store.get("a-auth")

        await store.put(create_fingerprint("c"))

        assert await store.get("b-auth") is None
        assert await store.get("a-auth") is not None
        assert await store.get("c-auth") is not None
        assert await store.size() == 2

    @pytest.mark.asyncio
    async def test_clear(self) -> None:
        store = InMemoryFingerprintStore()
        await store.put(create_fingerprint("a"))

        await store.clear()

        assert await store.values() == []


class TestRedisFingerprintStore:
    """Tests for the Redis-backed store with a mocked client."""

    @pytest.mark.asyncio
    async def test_put_sets_json_with_ttl(self) -> None:
        redis = MagicMock()
        redis.set = AsyncMock()
        store = RedisFingerprintStore(redis, ttl_seconds=60, key_prefix="fp:")

        await store.put(create_fingerprint("abc"))

        redis.set.assert_called_once()
        args, kwargs = redis.set.call_args
        assert args[0] == "fp:abc-auth"
        assert orjson.loads(args[1])["title_hash"] == "abc"
        assert kwargs == {"ex": 60}

    @pytest.mark.asyncio
    async def test_get_round_trips_model(self) -> None:
        fingerprint = create_fingerprint("abc")
        redis = MagicMock()
        redis.get = AsyncMock(return_value=orjson.dumps(fingerprint.model_dump(mode="json")))
        store = RedisFingerprintStore(redis, key_prefix="fp:")

        result = await store.get("abc-auth")

        redis.get.assert_called_once_with("fp:abc-auth")
        assert result == fingerprint

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(return_value=None)

        assert await RedisFingerprintStore(redis).get("nope") is None

    @pytest.mark.asyncio
    async def test_corrupted_payload_raises(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(return_value=b"not json")

        with pytest.raises(FingerprintStoreError, match="Corrupted"):
            await RedisFingerprintStore(redis).get("abc-auth")

    @pytest.mark.asyncio
    async def test_redis_error_is_wrapped(self) -> None:
        redis = MagicMock()
        redis.set = AsyncMock(side_effect=RedisConnError("down"))

        with pytest.raises(FingerprintStoreError, match="write failed"):
            await RedisFingerprintStore(redis).put(create_fingerprint("abc"))

    @pytest.mark.asyncio
    async def test_values_skips_expired_keys(self) -> None:
        fingerprint = create_fingerprint("abc")
        redis = MagicMock()
        redis.scan_iter = mock_scan([b"fp:abc-auth", b"fp:gone-auth"])
        redis.get = AsyncMock(
            side_effect=[orjson.dumps(fingerprint.model_dump(mode="json")), None]
        )
        store = RedisFingerprintStore(redis, key_prefix="fp:")

        values = await store.values()

        assert values == [fingerprint]
        redis.scan_iter.assert_called_once_with(match="fp:*", count=100)

    @pytest.mark.asyncio
    async def test_size_and_clear(self) -> None:
        redis = MagicMock()
        redis.scan_iter = mock_scan([b"fp:a", b"fp:b"])
        redis.delete = AsyncMock()
        store = RedisFingerprintStore(redis, key_prefix="fp:")

        assert await store.size() == 2
        await store.clear()

        redis.delete.assert_called_once_with(b"fp:a", b"fp:b")


class TestCreateFingerprintStore:
    """Tests for the settings-driven factory."""

    def test_memory_backend(self, settings: Settings) -> None:
        settings.fingerprint_capacity = 5

        store = create_fingerprint_store(settings)

        assert isinstance(store, InMemoryFingerprintStore)
        assert store.capacity == 5

    def test_redis_backend_uses_given_client(self, settings: Settings) -> None:
        settings.fingerprint_backend = "redis"
        redis = MagicMock()

        store = create_fingerprint_store(settings, redis=redis)

        assert isinstance(store, RedisFingerprintStore)

    def test_redis_backend_requires_initialized_client(self, settings: Settings) -> None:
        import media_heuristics.storage.redis as redis_module

        redis_module._redis = None
        settings.fingerprint_backend = "redis"

        with pytest.raises(RuntimeError, match="not initialized"):
            create_fingerprint_store(settings)
