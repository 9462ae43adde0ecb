"""Custom exceptions for media-heuristics."""


class MediaHeuristicsError(Exception):
    """Base exception for all media-heuristics errors."""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


# Configuration errors
class ConfigurationError(MediaHeuristicsError):
    """Base error for configuration problems."""


class RulesError(ConfigurationError):
    """Rule set file is missing, unreadable or invalid."""


# Analysis errors
class AnalysisError(MediaHeuristicsError):
    """Base error for the analysis layer."""

    def __init__(self, message: str, *args: object, item_id: str | None = None) -> None:
        self.item_id = item_id
        super().__init__(message, *args)


# Storage errors
class StorageError(MediaHeuristicsError):
    """Base error for storage layer."""


class RedisConnectionError(StorageError):
    """Failed to connect to Redis."""


class FingerprintStoreError(StorageError):
    """Fingerprint store read or write failed."""
