"""Beat (coverage area) detection.

Signals, strongest first:
- section: URL / section path segments mapped to beats
- keyword: topic regex families over title and body
- context: two or more indicator words for a broad beat
- byline: beat names mentioned in the byline

Each signal becomes a BeatSource with a confidence and a weight. A beat's
score is the sum of confidence x weight over its sources.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from media_heuristics.core.logging import get_logger
from media_heuristics.heuristics.rules import BeatRules, default_rules
from media_heuristics.models import (
    BeatAnalysis,
    BeatInput,
    BeatSource,
    BeatSourceKind,
    BeatSources,
)

logger = get_logger(__name__)


@dataclass(slots=True)
class _BeatScore:
    total: float = 0.0
    sources: list[BeatSource] = field(default_factory=list)


class BeatAnalyzer:
    """Classifies content into beats with section > keyword > context priority."""

    def __init__(self, rules: BeatRules | None = None) -> None:
        self._rules = rules if rules is not None else default_rules().beat

    def analyze_beat(self, content: BeatInput) -> BeatAnalysis:
        """Detect beats for one piece of content."""
        sources: list[BeatSource] = []

        path = content.section_path or content.url
        if path:
            sources.extend(self._section_beats(path))
        sources.extend(self._keyword_beats(content.title, content.content))
        sources.extend(self._context_beats(content.title, content.content))
        if content.byline:
            sources.extend(self._byline_beats(content.byline))

        analysis = self._synthesize(sources)
        logger.debug(
            "Beats analyzed",
            primary_beats=analysis.primary_beats,
            confidence=round(analysis.confidence, 3),
            source_count=len(sources),
        )
        return analysis

    def compare_beat_analyses(self, first: BeatAnalysis, second: BeatAnalysis) -> BeatAnalysis:
        """Return the more reliable analysis: more section evidence, then confidence."""
        first_sections = len(first.sources.section_based)
        second_sections = len(second.sources.section_based)
        if first_sections != second_sections:
            return first if first_sections > second_sections else second
        return first if first.confidence > second.confidence else second

    def merge_beat_analyses(self, analyses: Sequence[BeatAnalysis]) -> BeatAnalysis:
        """Combine several analyses, weighting each by its own confidence."""
        if not analyses:
            return BeatAnalysis(reasoning="No analyses to merge")
        if len(analyses) == 1:
            return analyses[0]

        scoring = self._rules.scoring
        merged: list[BeatSource] = []
        for analysis in analyses:
            weight = analysis.confidence
            # Primary beats are re-read as section evidence, secondary as keyword
            merged.extend(
                BeatSource(
                    beat=beat,
                    source=BeatSourceKind.section,
                    confidence=analysis.confidence,
                    evidence="Merged from analysis",
                    weight=scoring.merge_primary_weight * weight,
                )
                for beat in analysis.primary_beats
            )
            merged.extend(
                BeatSource(
                    beat=beat,
                    source=BeatSourceKind.keyword,
                    confidence=analysis.confidence * scoring.merge_secondary_discount,
                    evidence="Merged from analysis",
                    weight=scoring.merge_secondary_weight * weight,
                )
                for beat in analysis.secondary_beats
            )
        return self._synthesize(merged)

    # -------------------------------------------------------------------------
    # Signal extraction
    # -------------------------------------------------------------------------

    def _section_beats(self, path: str) -> list[BeatSource]:
        scoring = self._rules.scoring
        mappings = self._rules.section_mappings
        sources: list[BeatSource] = []

        for segment in (s for s in path.lower().split("/") if s):
            for beat in mappings.get(segment, []):
                sources.append(
                    BeatSource(
                        beat=beat,
                        source=BeatSourceKind.section,
                        confidence=scoring.section_exact_confidence,
                        evidence=f"Section path: /{segment}",
                        weight=scoring.section_exact_weight,
                    )
                )
            for key, beats in mappings.items():
                if key in segment or segment in key:
                    sources.extend(
                        BeatSource(
                            beat=beat,
                            source=BeatSourceKind.section,
                            confidence=scoring.section_partial_confidence,
                            evidence=f"Section path contains: {key}",
                            weight=scoring.section_partial_weight,
                        )
                        for beat in beats
                    )
        return sources

    def _keyword_beats(self, title: str | None, body: str | None) -> list[BeatSource]:
        scoring = self._rules.scoring
        text = f"{title or ''} {body or ''}".lower()
        sources: list[BeatSource] = []

        for beat, patterns in self._rules.keyword_patterns.items():
            for pattern in patterns:
                match = pattern.search(text)
                if match:
                    sources.append(
                        BeatSource(
                            beat=beat,
                            source=BeatSourceKind.keyword,
                            confidence=scoring.keyword_confidence,
                            evidence=f'Keyword match: "{match.group(0)}"',
                            weight=scoring.keyword_weight,
                        )
                    )
        return sources

    def _context_beats(self, title: str | None, body: str | None) -> list[BeatSource]:
        scoring = self._rules.scoring
        text = f"{title or ''} {body or ''}".lower()
        sources: list[BeatSource] = []

        for beat, indicators in self._rules.context_indicators.items():
            matched = [word for word in indicators if word.lower() in text]
            if len(matched) >= scoring.context_min_hits:
                sources.append(
                    BeatSource(
                        beat=beat,
                        source=BeatSourceKind.context,
                        confidence=scoring.context_base_confidence
                        + len(matched) * scoring.context_hit_confidence,
                        evidence=f"Context indicators: {', '.join(matched)}",
                        weight=scoring.context_weight,
                    )
                )
        return sources

    def _byline_beats(self, byline: str) -> list[BeatSource]:
        scoring = self._rules.scoring
        return [
            BeatSource(
                beat=entry.beat,
                source=BeatSourceKind.byline,
                confidence=scoring.byline_confidence,
                evidence=f'Byline mention: "{byline}"',
                weight=scoring.byline_weight,
            )
            for entry in self._rules.byline_patterns
            if entry.pattern.search(byline)
        ]

    # -------------------------------------------------------------------------
    # Synthesis
    # -------------------------------------------------------------------------

    def _synthesize(self, sources: list[BeatSource]) -> BeatAnalysis:
        scoring = self._rules.scoring

        scores: dict[str, _BeatScore] = {}
        for source in sources:
            entry = scores.setdefault(source.beat, _BeatScore())
            entry.total += source.confidence * source.weight
            entry.sources.append(source)

        # Stable sort keeps first-seen order among equal scores
        ranked = sorted(scores.items(), key=lambda item: item[1].total, reverse=True)

        primary = [beat for beat, s in ranked if s.total >= scoring.primary_threshold][
            : scoring.max_primary
        ]
        secondary = [
            beat
            for beat, s in ranked
            if beat not in primary and s.total >= scoring.secondary_threshold
        ][: scoring.max_secondary]

        total = sum(s.total for _, s in ranked)
        max_possible = len(sources) * scoring.max_source_weight
        confidence = min(total / max(max_possible, 1), 1.0)

        return BeatAnalysis(
            primary_beats=primary,
            secondary_beats=secondary,
            confidence=confidence,
            sources=BeatSources(
                section_based=[s.beat for s in sources if s.source == BeatSourceKind.section],
                keyword_based=[s.beat for s in sources if s.source == BeatSourceKind.keyword],
                context_based=[s.beat for s in sources if s.source == BeatSourceKind.context],
            ),
            reasoning=self._reasoning(ranked[:3]),
        )

    @staticmethod
    def _reasoning(top: list[tuple[str, _BeatScore]]) -> str:
        if not top:
            return "No clear beat indicators found in content."

        beat, score = top[0]
        section = [s for s in score.sources if s.source == BeatSourceKind.section]
        keyword = [s for s in score.sources if s.source == BeatSourceKind.keyword]

        reasoning = f'Primary beat "{beat}" determined by: '
        if section:
            reasoning += f"section-based evidence ({section[0].evidence})"
            if keyword:
                reasoning += " reinforced by keyword patterns"
        elif keyword:
            reasoning += f"keyword patterns ({keyword[0].evidence})"
        else:
            reasoning += "context analysis"

        if len(top) > 1:
            reasoning += f". Secondary beats include: {', '.join(b for b, _ in top[1:])}"
        return reasoning
