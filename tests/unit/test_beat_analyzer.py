"""Tests for beat detection."""

import pytest

from media_heuristics.heuristics.beat_analyzer import BeatAnalyzer
from media_heuristics.heuristics.rules import BeatRules
from media_heuristics.models import BeatAnalysis, BeatInput, BeatSources


@pytest.fixture
def analyzer() -> BeatAnalyzer:
    return BeatAnalyzer()


def create_beat_analysis(
    primary: list[str],
    secondary: list[str] | None = None,
    confidence: float = 0.8,
    section_based: list[str] | None = None,
) -> BeatAnalysis:
    """Create a BeatAnalysis with the given beats."""
    return BeatAnalysis(
        primary_beats=primary,
        secondary_beats=secondary or [],
        confidence=confidence,
        sources=BeatSources(section_based=section_based or []),
        reasoning="test",
    )


class TestSectionSignals:
    """Section paths are the strongest signal."""

    def test_exact_section(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(BeatInput(section_path="/politics/"))

        assert result.primary_beats == ["politics"]
        assert result.secondary_beats == []
        assert result.sources.section_based == ["politics", "politics"]
        assert result.confidence == pytest.approx(0.73)
        assert result.reasoning.startswith(
            'Primary beat "politics" determined by: section-based evidence'
        )

    def test_url_used_without_section_path(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(BeatInput(url="https://example.com/politics/story"))

        assert "politics" in result.primary_beats

    def test_section_outranks_keywords(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(
            BeatInput(section_path="/sports/", title="Bitcoin price surges")
        )

        assert result.primary_beats == ["sports"]
        assert result.secondary_beats == ["cryptocurrency"]
        assert result.sources.keyword_based == ["cryptocurrency"]
        assert "Secondary beats include: cryptocurrency" in result.reasoning

    def test_partial_segment_match(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(BeatInput(section_path="/tech/"))

        # "tech" is also contained in fintech and biotech
        assert result.primary_beats == ["technology", "fintech", "finance"]
        assert result.secondary_beats == ["biotechnology", "healthcare"]


class TestKeywordAndContextSignals:
    """Signals derived from title and body text."""

    def test_keyword_only_is_secondary(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(BeatInput(title="Ransomware attack disrupts shipping"))

        assert result.primary_beats == []
        assert "cybersecurity" in result.secondary_beats
        assert "supply chain" in result.secondary_beats
        assert result.reasoning.startswith('Primary beat "cybersecurity" determined by: keyword')

    def test_context_needs_two_indicators(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(
            BeatInput(content="The startup raised funding with a new software platform")
        )

        assert result.primary_beats == []
        assert result.secondary_beats == ["technology"]
        assert result.sources.context_based == ["technology"]
        assert result.confidence == pytest.approx(0.21)
        assert "context analysis" in result.reasoning

    def test_single_indicator_is_ignored(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(BeatInput(content="A new startup opened downtown"))

        assert result.sources.context_based == []

    def test_byline_mention(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(BeatInput(byline="Tech reporter"))

        assert result.secondary_beats == ["technology"]
        assert result.primary_beats == []


class TestEmptyInput:
    """Tests for inputs with no signals."""

    def test_no_signals(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(BeatInput())

        assert result.primary_beats == []
        assert result.secondary_beats == []
        assert result.confidence == 0.0
        assert result.reasoning == "No clear beat indicators found in content."

    def test_confidence_bounded(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.analyze_beat(
            BeatInput(
                section_path="/technology/ai/startups",
                title="AI startup raises funding",
                content="The startup's software platform uses machine learning and automation.",
                byline="Technology reporter",
            )
        )

        assert 0.0 <= result.confidence <= 1.0
        assert len(result.primary_beats) <= 3
        assert len(result.secondary_beats) <= 5
        assert result.primary_beats[0] == "technology"


class TestCustomRules:
    """Beat tables are swappable."""

    def test_custom_section_mapping(self) -> None:
        analyzer = BeatAnalyzer(BeatRules(section_mappings={"hoops": ["basketball"]}))

        result = analyzer.analyze_beat(BeatInput(section_path="/hoops"))

        assert result.primary_beats == ["basketball"]


class TestMergeAndCompare:
    """Tests for merge_beat_analyses() and compare_beat_analyses()."""

    def test_merge_empty(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.merge_beat_analyses([])

        assert result.primary_beats == []
        assert result.confidence == 0.0
        assert result.reasoning == "No analyses to merge"

    def test_merge_single_returns_it(self, analyzer: BeatAnalyzer) -> None:
        analysis = create_beat_analysis(["politics"])

        assert analyzer.merge_beat_analyses([analysis]) is analysis

    def test_merge_reinforces_shared_beats(self, analyzer: BeatAnalyzer) -> None:
        result = analyzer.merge_beat_analyses(
            [
                create_beat_analysis(["politics"], confidence=0.8),
                create_beat_analysis(["politics"], ["economy"], confidence=0.6),
            ]
        )

        assert result.primary_beats == ["politics"]
        assert "economy" not in result.secondary_beats
        assert 0.0 < result.confidence <= 1.0

    def test_compare_prefers_section_evidence(self, analyzer: BeatAnalyzer) -> None:
        sectioned = create_beat_analysis(["sports"], confidence=0.4, section_based=["sports"])
        keyword = create_beat_analysis(["politics"], confidence=0.9)

        assert analyzer.compare_beat_analyses(keyword, sectioned) is sectioned

    def test_compare_falls_back_to_confidence(self, analyzer: BeatAnalyzer) -> None:
        low = create_beat_analysis(["sports"], confidence=0.4)
        high = create_beat_analysis(["politics"], confidence=0.9)

        assert analyzer.compare_beat_analyses(low, high) is high
