"""Storage: Redis client lifecycle and fingerprint stores."""

from media_heuristics.storage.fingerprints import (
    FingerprintStore,
    InMemoryFingerprintStore,
    RedisFingerprintStore,
    create_fingerprint_store,
)
from media_heuristics.storage.redis import close_redis, get_redis, init_redis

__all__ = [
    "FingerprintStore",
    "InMemoryFingerprintStore",
    "RedisFingerprintStore",
    "close_redis",
    "create_fingerprint_store",
    "get_redis",
    "init_redis",
]
