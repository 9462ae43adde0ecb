"""Core utilities: logging, exceptions, constants."""

from media_heuristics.core.exceptions import (
    AnalysisError,
    ConfigurationError,
    FingerprintStoreError,
    MediaHeuristicsError,
    RedisConnectionError,
    RulesError,
    StorageError,
)
from media_heuristics.core.logging import get_logger, setup_logging

__all__ = [
    "AnalysisError",
    "ConfigurationError",
    "FingerprintStoreError",
    "MediaHeuristicsError",
    "RedisConnectionError",
    "RulesError",
    "StorageError",
    "get_logger",
    "setup_logging",
]
