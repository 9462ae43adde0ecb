"""Tests for the shared Redis client used by the fingerprint store."""

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnError
from redis.exceptions import TimeoutError as RedisTimeoutError

import media_heuristics.storage.redis as redis_module
from media_heuristics.config import Settings
from media_heuristics.core.exceptions import RedisConnectionError, StorageError
from media_heuristics.storage.fingerprints import RedisFingerprintStore, create_fingerprint_store
from media_heuristics.storage.redis import close_redis, get_redis, init_redis

REDIS_URL = "redis://cache:6379/3"


def create_client(ping: AsyncMock | None = None) -> MagicMock:
    """Create a mock client whose ping() and aclose() are awaitable."""
    client = MagicMock()
    client.ping = ping or AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


@pytest.fixture(autouse=True)
def no_global_client() -> Iterator[None]:
    redis_module._redis = None
    yield
    redis_module._redis = None


class TestInitRedis:
    @pytest.mark.anyio
    async def test_connects_without_decoding(self) -> None:
        client = create_client()

        with patch("media_heuristics.storage.redis.Redis") as redis_cls:
            redis_cls.from_url.return_value = client
            result = await init_redis(REDIS_URL)

        # Fingerprints are stored as orjson bytes
        redis_cls.from_url.assert_called_once_with(REDIS_URL, decode_responses=False)
        client.ping.assert_awaited_once()
        assert result is client
        assert get_redis() is client

    @pytest.mark.anyio
    @pytest.mark.parametrize("error", [RedisConnError("refused"), RedisTimeoutError("timed out")])
    async def test_failed_ping_is_wrapped_and_closed(self, error: Exception) -> None:
        client = create_client(ping=AsyncMock(side_effect=error))

        with patch("media_heuristics.storage.redis.Redis") as redis_cls:
            redis_cls.from_url.return_value = client
            with pytest.raises(RedisConnectionError, match="Cannot connect to Redis") as exc_info:
                await init_redis(REDIS_URL)

        assert exc_info.value.__cause__ is error
        assert isinstance(exc_info.value, StorageError)
        client.aclose.assert_awaited_once()
        assert redis_module._redis is None

    @pytest.mark.anyio
    async def test_failed_ping_keeps_previous_client(self) -> None:
        previous = create_client()
        redis_module._redis = previous
        client = create_client(ping=AsyncMock(side_effect=RedisConnError("refused")))

        with patch("media_heuristics.storage.redis.Redis") as redis_cls:
            redis_cls.from_url.return_value = client
            with pytest.raises(RedisConnectionError):
                await init_redis(REDIS_URL)

        assert get_redis() is previous


class TestGlobalClientLifecycle:
    def test_get_before_init(self) -> None:
        with pytest.raises(RuntimeError, match="not initialized"):
            get_redis()

    @pytest.mark.anyio
    async def test_redis_backend_uses_global_client(self) -> None:
        client = create_client()
        settings = Settings(
            _env_file=None, fingerprint_backend="redis", fingerprint_ttl_seconds=600
        )

        with patch("media_heuristics.storage.redis.Redis") as redis_cls:
            redis_cls.from_url.return_value = client
            await init_redis(REDIS_URL)

        store = create_fingerprint_store(settings)

        assert isinstance(store, RedisFingerprintStore)
        assert store._redis is client
        assert store._ttl_seconds == 600

    @pytest.mark.anyio
    async def test_close_releases_client(self) -> None:
        client = create_client()
        redis_module._redis = client

        await close_redis()
        await close_redis()

        client.aclose.assert_awaited_once()
        with pytest.raises(RuntimeError):
            get_redis()
