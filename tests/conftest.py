"""Pytest fixtures and configuration."""

from datetime import UTC, datetime, timedelta

import pytest

from media_heuristics.config import Settings
from media_heuristics.models import ContentInput

# Fixed reference time shared by date-sensitive tests
REFERENCE_TIME = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests by default unless -m integration is specified."""
    # Check if user explicitly requested integration tests
    markexpr = config.getoption("-m", default="")
    if "integration" in markexpr:
        # User wants integration tests, don't skip
        return

    # Skip integration tests by default
    skip_integration = pytest.mark.skip(reason="Integration test - run with: pytest -m integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def now() -> datetime:
    return REFERENCE_TIME


@pytest.fixture
def wire_story() -> ContentInput:
    """Original wire story as published by the agency."""
    return ContentInput(
        url="https://apnews.com/article/senate-budget",
        title="Senate Passes Budget Bill",
        byline="By Lisa Mascaro",
        content="The Senate passed the budget bill on Tuesday.",
        domain="apnews.com",
        published_at=REFERENCE_TIME - timedelta(hours=2),
    )


@pytest.fixture
def local_copy() -> ContentInput:
    """The same story republished by a local paper."""
    return ContentInput(
        url="https://localpaper.com/news/senate-budget",
        title="SENATE PASSES BUDGET BILL ",
        byline="By Lisa Mascaro",
        content="The Senate passed the budget bill on Tuesday.",
        domain="localpaper.com",
        published_at=REFERENCE_TIME,
    )
