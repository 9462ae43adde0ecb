"""Unit tests for Settings validators and env-var loading in config.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from media_heuristics.config import Settings, get_settings
from media_heuristics.core.constants import (
    ANALYSIS_VERSION,
    DEFAULT_FINGERPRINT_CAPACITY,
    DEFAULT_SYNDICATION_FILTER_THRESHOLD,
)

# ─────────────────────────────────────────────────────────────
# Validator tests
# ─────────────────────────────────────────────────────────────


class TestParseDomains:
    """Tests for parse_domains validator."""

    def test_none_returns_empty_list(self) -> None:
        assert Settings.parse_domains(None) == []

    def test_csv_string(self) -> None:
        assert Settings.parse_domains("ft.com, economist.com") == ["ft.com", "economist.com"]

    def test_json_array_string(self) -> None:
        assert Settings.parse_domains('["ft.com", "economist.com"]') == [
            "ft.com",
            "economist.com",
        ]

    def test_normalizes_case_and_www(self) -> None:
        assert Settings.parse_domains("www.FT.com") == ["ft.com"]

    def test_list_passthrough(self) -> None:
        assert Settings.parse_domains(["a.com", "b.com"]) == ["a.com", "b.com"]


# ─────────────────────────────────────────────────────────────
# Defaults and environment
# ─────────────────────────────────────────────────────────────


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults(self, settings: Settings) -> None:
        assert settings.env == "development"
        assert settings.fingerprint_backend == "memory"
        assert settings.fingerprint_capacity == DEFAULT_FINGERPRINT_CAPACITY
        assert settings.syndication_filter_threshold == DEFAULT_SYNDICATION_FILTER_THRESHOLD
        assert settings.analysis_version == ANALYSIS_VERSION
        assert settings.rules_path is None


class TestSettingsFromEnv:
    """Tests for environment variable loading."""

    def test_env_aliases(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MEDIA_HEURISTICS_ENV", "production")
        monkeypatch.setenv("MEDIA_HEURISTICS_LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.env == "production"
        assert settings.log_level == "DEBUG"

    def test_fingerprint_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FINGERPRINT_BACKEND", "redis")
        monkeypatch.setenv("FINGERPRINT_TTL_SECONDS", "3600")
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/2")

        settings = Settings(_env_file=None)

        assert settings.fingerprint_backend == "redis"
        assert settings.fingerprint_ttl_seconds == 3600
        assert settings.redis_url == "redis://cache:6379/2"

    def test_rules_path(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("MEDIA_HEURISTICS_RULES_PATH", str(tmp_path / "rules.json"))

        settings = Settings(_env_file=None)

        assert settings.rules_path == tmp_path / "rules.json"

    def test_invalid_backend_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FINGERPRINT_BACKEND", "memcached")

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()
