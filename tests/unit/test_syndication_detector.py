"""Tests for syndication detection."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from media_heuristics.heuristics.rules import SyndicationRules, SyndicationScoring
from media_heuristics.heuristics.syndication_detector import (
    SyndicationDetector,
    extract_domain,
    rolling_hash,
)
from media_heuristics.models import (
    AnalyzedContent,
    ContentInput,
    SyndicationAction,
    SyndicationAnalysis,
)
from media_heuristics.storage.fingerprints import InMemoryFingerprintStore

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)

WIRE_TEXT = "MIAMI (AP) - A storm hit the coast. Copyright 2026 The Associated Press."


def create_content(
    url: str = "https://localpaper.com/weather/storm",
    domain: str = "localpaper.com",
    title: str = "Storm hits coast",
    content: str | None = None,
    byline: str | None = None,
    published_at: datetime = NOW,
    canonical_url: str | None = None,
    meta_tags: dict[str, str] | None = None,
) -> ContentInput:
    """Create a ContentInput with neutral defaults."""
    return ContentInput(
        url=url,
        domain=domain,
        title=title,
        content=content,
        byline=byline,
        published_at=published_at,
        canonical_url=canonical_url,
        meta_tags=meta_tags or {},
    )


def analyzed(content: ContentInput, is_syndicated: bool, confidence: float) -> AnalyzedContent:
    return AnalyzedContent(
        content=content,
        analysis=SyndicationAnalysis(is_syndicated=is_syndicated, confidence=confidence),
    )


@pytest.fixture
def detector() -> SyndicationDetector:
    return SyndicationDetector()


# ─────────────────────────────────────────────────────────────
# Module helpers
# ─────────────────────────────────────────────────────────────


class TestRollingHash:
    """rolling_hash() must match the 32-bit h * 31 + c string hash."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("", "0"),
            ("a", "2p"),
            ("ab", "2e9"),
            ("😀", "11zz7"),
            ("polygenelubricants", "-zik0zk"),
        ],
    )
    def test_known_values(self, text: str, expected: str) -> None:
        assert rolling_hash(text) == expected

    def test_deterministic(self) -> None:
        assert rolling_hash("Senate Passes Budget Bill") == rolling_hash("Senate Passes Budget Bill")


class TestExtractDomain:
    """Tests for extract_domain()."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.Reuters.com/world/story", "reuters.com"),
            ("https://apnews.com/article/x", "apnews.com"),
            ("http://news.example.org:8080/a", "news.example.org"),
            ("not a url", ""),
            ("http://[::1", ""),
        ],
    )
    def test_extract(self, url: str, expected: str) -> None:
        assert extract_domain(url) == expected


# ─────────────────────────────────────────────────────────────
# Duplicate detection
# ─────────────────────────────────────────────────────────────


class TestDuplicateDetection:
    """Fingerprint-based duplicate detection across calls."""

    @pytest.mark.asyncio
    async def test_first_sighting_is_not_duplicate(
        self, detector: SyndicationDetector, wire_story: ContentInput
    ) -> None:
        result = await detector.analyze_syndication(wire_story)

        assert not result.has_duplicates
        assert not result.is_syndicated
        assert result.syndication_network == "Associated Press"
        assert result.confidence == pytest.approx(0.21)
        assert result.original_source is None

    @pytest.mark.asyncio
    async def test_republished_copy_is_syndicated(
        self,
        detector: SyndicationDetector,
        wire_story: ContentInput,
        local_copy: ContentInput,
    ) -> None:
        await detector.analyze_syndication(wire_story)

        result = await detector.analyze_syndication(local_copy)

        assert result.has_duplicates
        assert result.duplicate_urls == [wire_story.url]
        assert result.is_syndicated
        assert result.confidence == pytest.approx(0.9)
        assert result.original_source is not None
        assert result.original_source.domain == "apnews.com"
        assert result.original_source.outlet_name == "Associated Press"
        assert result.original_source.is_original_source
        assert result.original_source.published_at == wire_story.published_at
        assert "Found 1 duplicate URLs" in result.reasoning
        assert result.recommendations[-1].type == SyndicationAction.check_canonical

    @pytest.mark.asyncio
    async def test_reanalysed_url_is_not_a_duplicate(
        self, detector: SyndicationDetector, local_copy: ContentInput
    ) -> None:
        await detector.analyze_syndication(local_copy)

        result = await detector.analyze_syndication(local_copy)

        assert not result.has_duplicates
        assert not result.is_syndicated
        assert result.duplicate_urls == []
        assert result.original_source is None
        (fingerprint,) = await detector.store.values()
        assert fingerprint.urls == [local_copy.url]

    @pytest.mark.asyncio
    async def test_reanalysed_copy_still_syndicated(
        self,
        detector: SyndicationDetector,
        wire_story: ContentInput,
        local_copy: ContentInput,
    ) -> None:
        await detector.analyze_syndication(wire_story)
        await detector.analyze_syndication(local_copy)

        result = await detector.analyze_syndication(local_copy)

        assert result.is_syndicated
        assert result.duplicate_urls == [wire_story.url]
        (fingerprint,) = await detector.store.values()
        assert fingerprint.urls == [wire_story.url, local_copy.url]

    @pytest.mark.asyncio
    async def test_original_publisher_not_flagged(
        self,
        detector: SyndicationDetector,
        wire_story: ContentInput,
        local_copy: ContentInput,
    ) -> None:
        """The agency's own copy stays original even when seen second."""
        await detector.analyze_syndication(local_copy)

        result = await detector.analyze_syndication(wire_story)

        assert result.has_duplicates
        assert not result.is_syndicated
        assert result.confidence == pytest.approx(0.48)

    @pytest.mark.asyncio
    async def test_clear_resets_state(
        self,
        detector: SyndicationDetector,
        wire_story: ContentInput,
        local_copy: ContentInput,
    ) -> None:
        await detector.analyze_syndication(wire_story)
        await detector.clear_fingerprints()

        result = await detector.analyze_syndication(local_copy)

        assert not result.has_duplicates
        assert not result.is_syndicated

    @pytest.mark.asyncio
    async def test_fallback_to_earliest_sighting(self, detector: SyndicationDetector) -> None:
        later = create_content("https://first.com/a", "first.com", byline="By Ann")
        earlier = create_content(
            "https://second.com/a",
            "second.com",
            byline="By Ann",
            published_at=NOW - timedelta(hours=3),
        )
        await detector.analyze_syndication(later)

        result = await detector.analyze_syndication(earlier)

        assert result.original_source is not None
        assert result.original_source.domain == "second.com"
        assert not result.original_source.is_original_source
        assert result.original_source.confidence == 0.6
        assert result.is_syndicated

    @pytest.mark.asyncio
    async def test_extra_primary_sources(self) -> None:
        detector = SyndicationDetector(extra_primary_sources=["WWW.Second.com"])
        await detector.analyze_syndication(
            create_content("https://first.com/a", "first.com", byline="By Ann")
        )

        result = await detector.analyze_syndication(
            create_content("https://second.com/a", "second.com", byline="By Ann")
        )

        assert result.original_source is not None
        assert result.original_source.domain == "second.com"
        assert result.original_source.is_original_source
        assert not result.is_syndicated

    @pytest.mark.asyncio
    async def test_concurrent_sightings_recorded_once_each(self) -> None:
        store = InMemoryFingerprintStore()
        detector = SyndicationDetector(store=store)
        items = [
            create_content(f"https://site{i}.com/a", f"site{i}.com", byline="By Ann")
            for i in range(3)
        ]

        results = await asyncio.gather(*(detector.analyze_syndication(c) for c in items))

        assert sum(not r.has_duplicates for r in results) == 1
        (fingerprint,) = await store.values()
        assert len(fingerprint.urls) == 3

    @pytest.mark.asyncio
    async def test_duplicates_not_decisive_when_disabled(
        self, wire_story: ContentInput, local_copy: ContentInput
    ) -> None:
        rules = SyndicationRules(scoring=SyndicationScoring(decisive_duplicates=False))
        detector = SyndicationDetector(rules=rules)
        await detector.analyze_syndication(wire_story)

        result = await detector.analyze_syndication(local_copy)

        assert result.has_duplicates
        assert not result.is_syndicated
        assert result.confidence == pytest.approx(0.27)


# ─────────────────────────────────────────────────────────────
# Canonical, network, pattern and domain signals
# ─────────────────────────────────────────────────────────────


class TestCanonicalSignal:
    """A canonical link to another domain."""

    @pytest.mark.asyncio
    async def test_known_network_canonical(self, detector: SyndicationDetector) -> None:
        result = await detector.analyze_syndication(
            create_content(canonical_url="https://www.reuters.com/world/storm")
        )

        assert result.is_syndicated
        assert result.confidence >= 0.95
        assert result.canonical_url == "https://reuters.com"
        assert result.recommendations[0].type == SyndicationAction.use_original
        assert result.recommendations[0].action == "Contact authors at reuters.com instead"

    @pytest.mark.asyncio
    async def test_other_canonical(self, detector: SyndicationDetector) -> None:
        result = await detector.analyze_syndication(
            create_content(canonical_url="https://example.org/storm")
        )

        assert result.is_syndicated
        assert result.confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_meta_tag_canonical(self, detector: SyndicationDetector) -> None:
        result = await detector.analyze_syndication(
            create_content(meta_tags={"canonical": "https://reuters.com/world/storm"})
        )

        assert result.is_syndicated
        assert result.canonical_url == "https://reuters.com"

    @pytest.mark.asyncio
    async def test_same_domain_canonical(self, detector: SyndicationDetector) -> None:
        result = await detector.analyze_syndication(
            create_content(canonical_url="https://www.localpaper.com/weather/storm")
        )

        assert not result.is_syndicated
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_unparseable_canonical_is_ignored(self, detector: SyndicationDetector) -> None:
        result = await detector.analyze_syndication(create_content(canonical_url="http://[::1"))

        assert not result.is_syndicated
        assert result.canonical_url == "http://[::1"


class TestWireCopySignals:
    """Network, pattern and domain signals together."""

    @pytest.mark.asyncio
    async def test_wire_copy_on_aggregator(self, detector: SyndicationDetector) -> None:
        result = await detector.analyze_syndication(
            create_content("https://yahoo.com/news/storm", "yahoo.com", content=WIRE_TEXT)
        )

        assert result.syndication_network == "Associated Press"
        assert result.is_syndicated
        assert result.confidence == pytest.approx(0.58)
        assert [r.type for r in result.recommendations] == [
            SyndicationAction.skip_duplicate,
            SyndicationAction.verify_author,
            SyndicationAction.check_canonical,
        ]
        assert "Detected syndication network: Associated Press" in result.reasoning
        assert "Domain yahoo.com is known for heavy syndication" in result.reasoning

    @pytest.mark.asyncio
    async def test_wire_copy_on_regular_domain_stays_below_threshold(
        self, detector: SyndicationDetector
    ) -> None:
        result = await detector.analyze_syndication(create_content(content=WIRE_TEXT))

        assert result.confidence == pytest.approx(0.5)
        assert not result.is_syndicated
        assert "Syndication patterns found" in result.reasoning

    @pytest.mark.asyncio
    async def test_clean_content(self, detector: SyndicationDetector) -> None:
        result = await detector.analyze_syndication(
            create_content(content="Residents cleaned up after the storm.")
        )

        assert not result.is_syndicated
        assert result.confidence == 0.0
        assert result.recommendations == []
        assert result.reasoning == ""


# ─────────────────────────────────────────────────────────────
# Batch, filtering and stats
# ─────────────────────────────────────────────────────────────


class TestBatchAndFilter:
    """Tests for batch analysis and the sync helpers."""

    @pytest.mark.asyncio
    async def test_batch_is_sequential(
        self,
        detector: SyndicationDetector,
        wire_story: ContentInput,
        local_copy: ContentInput,
    ) -> None:
        first, second = await detector.batch_analyze_syndication([wire_story, local_copy])

        assert not first.has_duplicates
        assert second.has_duplicates

    def test_filter_keeps_low_confidence(self, detector: SyndicationDetector) -> None:
        keep = analyzed(create_content(url="https://a.com/1"), False, 0.9)
        weak = analyzed(create_content(url="https://a.com/2"), True, 0.6)
        drop = analyzed(create_content(url="https://a.com/3"), True, 0.9)

        assert detector.filter_syndicated_content([keep, weak, drop]) == [keep, weak]
        assert detector.filter_syndicated_content([keep, weak, drop], threshold=0.5) == [keep]

    def test_filter_uses_configured_threshold(self) -> None:
        detector = SyndicationDetector(filter_threshold=0.95)
        weak = analyzed(create_content(url="https://a.com/2"), True, 0.6)
        strong = analyzed(create_content(url="https://a.com/3"), True, 0.9)

        assert detector.filter_syndicated_content([weak, strong]) == [weak, strong]
        assert detector.filter_syndicated_content([weak, strong], threshold=0.5) == []

    @pytest.mark.asyncio
    async def test_original_sources_deduplicated(
        self,
        detector: SyndicationDetector,
        wire_story: ContentInput,
        local_copy: ContentInput,
    ) -> None:
        another = local_copy.model_copy(
            update={"url": "https://otherpaper.com/senate", "domain": "otherpaper.com"}
        )
        items = [wire_story, local_copy, another]
        analyses = await detector.batch_analyze_syndication(items)

        sources = detector.get_original_sources(
            [AnalyzedContent(content=c, analysis=a) for c, a in zip(items, analyses)]
        )

        assert [s.domain for s in sources] == ["apnews.com"]

    @pytest.mark.asyncio
    async def test_stats(
        self,
        detector: SyndicationDetector,
        wire_story: ContentInput,
        local_copy: ContentInput,
    ) -> None:
        await detector.batch_analyze_syndication(
            [wire_story, local_copy, create_content(content="Unrelated")]
        )

        stats = await detector.get_syndication_stats()

        assert stats.total_fingerprints == 2
        assert stats.duplicate_groups == 1
        assert [(t.domain, t.count) for t in stats.top_syndicators] == [
            ("apnews.com", 1),
            ("localpaper.com", 1),
        ]
