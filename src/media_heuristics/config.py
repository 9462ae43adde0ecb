"""Application configuration via pydantic-settings."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from media_heuristics.core.constants import (
    ANALYSIS_VERSION,
    DEFAULT_FINGERPRINT_CAPACITY,
    DEFAULT_FINGERPRINT_TTL_SECONDS,
    DEFAULT_SYNDICATION_FILTER_THRESHOLD,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Core
    env: Literal["development", "staging", "production"] = Field(
        default="development", alias="MEDIA_HEURISTICS_ENV"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="MEDIA_HEURISTICS_LOG_LEVEL"
    )

    # Rules
    rules_path: Path | None = Field(
        default=None,
        alias="MEDIA_HEURISTICS_RULES_PATH",
        description="JSON rule set overriding the built-in classification tables",
    )
    extra_primary_source_domains: list[str] = Field(
        default_factory=list,
        description="Domains treated as original publishers on top of the built-in list",
    )

    @field_validator("extra_primary_source_domains", mode="before")
    @classmethod
    def parse_domains(cls, v: str | list[str] | None) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                v = json.loads(v)
            else:
                v = [d.strip() for d in v.split(",") if d.strip()]
        return [d.lower().removeprefix("www.") for d in v]

    # Fingerprint store
    fingerprint_backend: Literal["memory", "redis"] = Field(default="memory")
    fingerprint_capacity: int = Field(
        default=DEFAULT_FINGERPRINT_CAPACITY,
        ge=1,
        description="Max fingerprints kept by the in-memory store before LRU eviction",
    )
    fingerprint_ttl_seconds: int = Field(
        default=DEFAULT_FINGERPRINT_TTL_SECONDS,
        ge=1,
        description="Expiry of fingerprints stored in Redis",
    )

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Analysis
    syndication_filter_threshold: float = Field(
        default=DEFAULT_SYNDICATION_FILTER_THRESHOLD, ge=0.0, le=1.0
    )
    analysis_version: str = Field(default=ANALYSIS_VERSION)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
