"""Orchestrator combining the four analyzers.

MediaHeuristics turns a contact (or a piece of content) into one aggregate
result with recommendations, warnings and an overall score:

    contact ─┬─ BeatAnalyzer (per byline, merged)
             ├─ EmailAnalyzer
             └─ FreelancerAnalyzer (only with outlet history)

    content ─┬─ BeatAnalyzer
             └─ SyndicationDetector (stateful, sequential)

Batch operations never fail as a whole: per-item exceptions are collected as
ItemFailure records next to the successful results.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from urllib.parse import urlsplit

from media_heuristics.config import Settings, get_settings
from media_heuristics.core.logging import get_logger
from media_heuristics.heuristics.beat_analyzer import BeatAnalyzer
from media_heuristics.heuristics.email_analyzer import EmailAnalyzer
from media_heuristics.heuristics.freelancer_analyzer import FreelancerAnalyzer
from media_heuristics.heuristics.rules import HeuristicRules, OverallScoring, load_rules
from media_heuristics.heuristics.syndication_detector import SyndicationDetector
from media_heuristics.models import (
    AnalysisMetadata,
    BeatAnalysis,
    BeatInput,
    BeatStatistics,
    ContactBatchResult,
    ContactInput,
    ContentAnalysis,
    ContentAnalysisEntry,
    ContentBatchResult,
    ContentInput,
    EmailAnalysis,
    EmailContext,
    EmailStatistics,
    EmailType,
    FreelancerProfile,
    FreelancerStatistics,
    HeuristicsStatistics,
    ItemFailure,
    MediaHeuristicsAnalysis,
    MediaRecommendation,
    PitchApproach,
    Priority,
    RecommendationType,
    SyndicationAnalysis,
    SyndicationStats,
)
from media_heuristics.storage.fingerprints import create_fingerprint_store

logger = get_logger(__name__)


# =============================================================================
# Analyzer protocols
# =============================================================================


@runtime_checkable
class EmailAnalyzerProtocol(Protocol):
    def analyze_email(
        self,
        email: str,
        domain: str | None = None,
        context: EmailContext | None = None,
    ) -> EmailAnalysis: ...

    def calculate_email_score(self, analysis: EmailAnalysis) -> float: ...


@runtime_checkable
class BeatAnalyzerProtocol(Protocol):
    def analyze_beat(self, content: BeatInput) -> BeatAnalysis: ...

    def merge_beat_analyses(self, analyses: Sequence[BeatAnalysis]) -> BeatAnalysis: ...


@runtime_checkable
class FreelancerAnalyzerProtocol(Protocol):
    def analyze_freelancer(self, contact: ContactInput) -> FreelancerProfile: ...


@runtime_checkable
class SyndicationDetectorProtocol(Protocol):
    async def analyze_syndication(self, content: ContentInput) -> SyndicationAnalysis: ...

    async def clear_fingerprints(self) -> None: ...

    async def get_syndication_stats(self) -> SyndicationStats: ...


# =============================================================================
# Running statistics
# =============================================================================


@dataclass(slots=True)
class _Counters:
    total_analyses: int = 0
    beat_analyses: int = 0
    beat_confidence_sum: float = 0.0
    section_based: int = 0
    keyword_based: int = 0
    personal_emails: int = 0
    alias_emails: int = 0
    generic_emails: int = 0
    freelancers: int = 0
    staff: int = 0
    multi_outlet: int = 0

    def record_beat(self, analysis: BeatAnalysis) -> None:
        self.beat_analyses += 1
        self.beat_confidence_sum += analysis.confidence
        if analysis.sources.section_based:
            self.section_based += 1
        if analysis.sources.keyword_based:
            self.keyword_based += 1

    def record_email(self, analysis: EmailAnalysis) -> None:
        if analysis.email_type == EmailType.personal:
            self.personal_emails += 1
        elif analysis.email_type == EmailType.alias:
            self.alias_emails += 1
        elif analysis.email_type == EmailType.generic:
            self.generic_emails += 1

    def record_profile(self, profile: FreelancerProfile) -> None:
        if profile.is_freelancer:
            self.freelancers += 1
        else:
            self.staff += 1
        if len(profile.outlets) > 1:
            self.multi_outlet += 1


class MediaHeuristics:
    """Aggregates email, beat, freelancer and syndication analysis."""

    def __init__(
        self,
        email_analyzer: EmailAnalyzerProtocol | None = None,
        beat_analyzer: BeatAnalyzerProtocol | None = None,
        freelancer_analyzer: FreelancerAnalyzerProtocol | None = None,
        syndication_detector: SyndicationDetectorProtocol | None = None,
        rules: HeuristicRules | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Analyzers that are not injected are built from ``rules``. When no rule
        set is given, the file named by ``settings.rules_path`` is loaded, or
        the built-in tables are used.

        Args:
            email_analyzer: Email classifier.
            beat_analyzer: Beat classifier.
            freelancer_analyzer: Staff/freelancer classifier.
            syndication_detector: Syndication detector. The default one uses
                the fingerprint store selected by settings.
            rules: Rule set for default analyzers and overall scoring.
            settings: Settings (uses get_settings() if not provided).
        """
        self._settings = settings or get_settings()
        self._rules = rules if rules is not None else load_rules(self._settings.rules_path)

        self.email_analyzer = email_analyzer or EmailAnalyzer(self._rules.email)
        self.beat_analyzer = beat_analyzer or BeatAnalyzer(self._rules.beat)
        self.freelancer_analyzer = freelancer_analyzer or FreelancerAnalyzer(self._rules.freelancer)
        self.syndication_detector = syndication_detector or SyndicationDetector(
            self._rules.syndication,
            store=create_fingerprint_store(self._settings),
            extra_primary_sources=self._settings.extra_primary_source_domains,
            filter_threshold=self._settings.syndication_filter_threshold,
        )
        self._counters = _Counters()

    @property
    def scoring(self) -> OverallScoring:
        return self._rules.overall

    # -------------------------------------------------------------------------
    # Contacts
    # -------------------------------------------------------------------------

    async def analyze_contact(self, contact: ContactInput) -> MediaHeuristicsAnalysis:
        """Run beat, email and freelancer analysis for one contact."""
        started = time.perf_counter()

        beat_analysis = self._contact_beats(contact)
        email_analysis = self.email_analyzer.analyze_email(
            contact.email,
            None,
            EmailContext(contact_name=contact.name, title=contact.title),
        )
        freelancer_profile = (
            self.freelancer_analyzer.analyze_freelancer(contact) if contact.outlets else None
        )

        recommendations, warnings = self._contact_recommendations(
            beat_analysis, email_analysis, freelancer_profile
        )
        overall_score = self._overall_score(beat_analysis, email_analysis, freelancer_profile)

        self._counters.total_analyses += 1
        self._counters.record_beat(beat_analysis)
        self._counters.record_email(email_analysis)
        if freelancer_profile is not None:
            self._counters.record_profile(freelancer_profile)

        return MediaHeuristicsAnalysis(
            contact_id=contact.id,
            beat_analysis=beat_analysis,
            email_analysis=email_analysis,
            freelancer_profile=freelancer_profile,
            overall_score=overall_score,
            recommendations=recommendations,
            warnings=warnings,
            metadata=self._metadata(started),
        )

    async def batch_analyze_contacts(self, contacts: Sequence[ContactInput]) -> ContactBatchResult:
        """Analyze contacts concurrently, then cross-reference shared outlets."""
        results = await asyncio.gather(
            *[self.analyze_contact(contact) for contact in contacts],
            return_exceptions=True,
        )

        batch = ContactBatchResult()
        for index, (contact, result) in enumerate(zip(contacts, results, strict=True)):
            if isinstance(result, MediaHeuristicsAnalysis):
                batch.successes.append(result)
                continue
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                "Contact analysis failed",
                index=index,
                contact_id=contact.id,
                error=str(result),
                error_type=type(result).__name__,
            )
            batch.failures.append(
                ItemFailure(
                    index=index,
                    item_id=contact.id,
                    error_type=type(result).__name__,
                    message=str(result),
                )
            )

        self._cross_reference(batch.successes)
        logger.info(
            "Contact batch analyzed",
            total=len(contacts),
            succeeded=len(batch.successes),
            failed=len(batch.failures),
        )
        return batch

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    async def analyze_content(self, content: ContentInput) -> ContentAnalysis:
        """Run beat and syndication analysis for one content item."""
        beat_analysis = self.beat_analyzer.analyze_beat(
            BeatInput(
                section_path=content.section_path,
                title=content.title,
                content=content.content,
                byline=content.byline,
                url=content.url,
            )
        )
        syndication = await self.syndication_detector.analyze_syndication(content)

        recommendations: list[MediaRecommendation] = []
        if syndication.is_syndicated:
            recommendations.extend(
                MediaRecommendation(
                    type=RecommendationType.content_verification,
                    priority=rec.priority,
                    title=rec.description,
                    description=rec.action,
                    action=rec.action,
                    confidence=syndication.confidence,
                )
                for rec in syndication.recommendations
            )
        if beat_analysis.sources.section_based:
            recommendations.append(
                MediaRecommendation(
                    type=RecommendationType.beat_assignment,
                    priority=Priority.high,
                    title="Section-Based Beat Detection",
                    description="Beats determined from URL section (high confidence)",
                    action="Prioritize section-based beats over keyword detection",
                    confidence=beat_analysis.confidence,
                )
            )

        self._counters.total_analyses += 1
        self._counters.record_beat(beat_analysis)

        return ContentAnalysis(
            beat_analysis=beat_analysis,
            syndication_analysis=syndication,
            recommendations=recommendations,
            should_skip=(
                syndication.is_syndicated and syndication.confidence > self._skip_threshold
            ),
        )

    async def batch_analyze_content(self, contents: Sequence[ContentInput]) -> ContentBatchResult:
        """Analyze content items one at a time, in order, and split off syndicated ones."""
        batch = ContentBatchResult()

        for index, content in enumerate(contents):
            try:
                analysis = await self.analyze_content(content)
            except Exception as e:
                logger.warning(
                    "Content analysis failed",
                    index=index,
                    url=content.url,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                batch.failures.append(
                    ItemFailure(
                        index=index,
                        item_id=content.url,
                        error_type=type(e).__name__,
                        message=str(e),
                    )
                )
                continue

            entry = ContentAnalysisEntry(content=content, analysis=analysis)
            if analysis.should_skip:
                batch.syndicated_content.append(entry)
            else:
                batch.original_content.append(entry)

        if batch.syndicated_content:
            batch.recommendations.append(
                MediaRecommendation(
                    type=RecommendationType.content_verification,
                    priority=Priority.high,
                    title="Syndicated Content Detected",
                    description=f"Found {len(batch.syndicated_content)} pieces of syndicated content",
                    action="Use original sources for contact discovery",
                    confidence=self.scoring.syndicated_batch_confidence,
                )
            )

        logger.info(
            "Content batch analyzed",
            total=len(contents),
            original=len(batch.original_content),
            syndicated=len(batch.syndicated_content),
            failed=len(batch.failures),
        )
        return batch

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    async def get_statistics(self) -> HeuristicsStatistics:
        """Counters over analyses run by this instance plus fingerprint statistics."""
        counters = self._counters
        return HeuristicsStatistics(
            total_analyses=counters.total_analyses,
            beat_analysis_stats=BeatStatistics(
                section_based_count=counters.section_based,
                keyword_based_count=counters.keyword_based,
                average_confidence=(
                    counters.beat_confidence_sum / counters.beat_analyses
                    if counters.beat_analyses
                    else 0.0
                ),
            ),
            email_analysis_stats=EmailStatistics(
                personal_emails=counters.personal_emails,
                alias_emails=counters.alias_emails,
                generic_emails=counters.generic_emails,
            ),
            freelancer_stats=FreelancerStatistics(
                freelancer_count=counters.freelancers,
                staff_count=counters.staff,
                multi_outlet_count=counters.multi_outlet,
            ),
            syndication_stats=await self.syndication_detector.get_syndication_stats(),
        )

    async def reset(self) -> None:
        """Clear stored fingerprints and statistics counters."""
        await self.syndication_detector.clear_fingerprints()
        self._counters = _Counters()
        logger.info("Heuristics state reset")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @property
    def _skip_threshold(self) -> float:
        return self._rules.syndication.scoring.skip_threshold

    def _metadata(self, started: float) -> AnalysisMetadata:
        return AnalysisMetadata(
            analysis_version=self._settings.analysis_version,
            processing_time_ms=(time.perf_counter() - started) * 1000,
        )

    def _contact_beats(self, contact: ContactInput) -> BeatAnalysis:
        bylines = [byline for outlet in contact.outlets for byline in outlet.bylines]
        if not bylines:
            return self.beat_analyzer.analyze_beat(
                BeatInput(title=contact.title, content=contact.bio)
            )

        analyses = [
            self.beat_analyzer.analyze_beat(
                BeatInput(
                    section_path=_url_path(byline.url),
                    title=byline.title,
                    content=byline.content,
                    url=byline.url,
                )
            )
            for byline in bylines
        ]
        return self.beat_analyzer.merge_beat_analyses(analyses)

    def _contact_recommendations(
        self,
        beat: BeatAnalysis,
        email: EmailAnalysis,
        profile: FreelancerProfile | None,
    ) -> tuple[list[MediaRecommendation], list[str]]:
        scoring = self.scoring
        recommendations: list[MediaRecommendation] = []
        warnings: list[str] = []

        if beat.confidence < scoring.low_beat_confidence:
            warnings.append("Low confidence in beat assignment - verify manually")
            recommendations.append(
                MediaRecommendation(
                    type=RecommendationType.beat_assignment,
                    priority=Priority.medium,
                    title="Verify Beat Assignment",
                    description="Beat analysis has low confidence",
                    action="Review recent articles to confirm beat coverage",
                    confidence=1 - beat.confidence,
                )
            )

        if beat.sources.section_based:
            recommendations.append(
                MediaRecommendation(
                    type=RecommendationType.beat_assignment,
                    priority=Priority.high,
                    title="Section-Based Beats Detected",
                    description="Beats determined from section analysis (high confidence)",
                    action="Use section-based beats for targeting",
                    confidence=scoring.section_beat_confidence,
                )
            )

        if email.email_type == EmailType.alias:
            alias = email.alias_type.value if email.alias_type else "an"
            warnings.append(f"Email is {alias} alias - may have lower response rates")
            suggestions = email.suggestions
            recommendations.append(
                MediaRecommendation(
                    type=RecommendationType.email_preference,
                    priority=Priority.medium,
                    title="Alias Email Detected",
                    description=(suggestions.contact_method if suggestions else None)
                    or "Consider finding direct contact",
                    action=(suggestions.notes if suggestions else None)
                    or "Look for personal email address",
                    confidence=email.confidence,
                )
            )
        elif email.email_type == EmailType.personal and email.priority == Priority.high:
            recommendations.append(
                MediaRecommendation(
                    type=RecommendationType.email_preference,
                    priority=Priority.high,
                    title="Direct Personal Contact",
                    description="High-quality personal email address",
                    action="Prioritize this contact for outreach",
                    confidence=email.confidence,
                )
            )

        if profile is not None:
            if profile.is_freelancer:
                strategy = profile.contact_strategy
                recommendations.append(
                    MediaRecommendation(
                        type=RecommendationType.contact_strategy,
                        priority=Priority.high,
                        title="Freelancer Contact Strategy",
                        description=(
                            "Pitch to personal brand/expertise"
                            if strategy.pitch_approach == PitchApproach.personal_brand
                            else "Use outlet-specific approach"
                        ),
                        action="; ".join(strategy.notes),
                        confidence=profile.confidence,
                    )
                )
                warnings.extend(strategy.warnings)

                if profile.primary_outlet is not None:
                    recommendations.append(
                        MediaRecommendation(
                            type=RecommendationType.contact_strategy,
                            priority=Priority.medium,
                            title="Primary Outlet Identified",
                            description=f"Most active at {profile.primary_outlet.outlet_name}",
                            action="Consider outlet-specific pitches for this publication",
                            confidence=profile.primary_outlet.confidence,
                        )
                    )
            else:
                recommendations.append(
                    MediaRecommendation(
                        type=RecommendationType.contact_strategy,
                        priority=Priority.medium,
                        title="Staff Writer Strategy",
                        description="Contact appears to be staff writer",
                        action="Use outlet-specific pitches and follow outlet guidelines",
                        confidence=profile.confidence,
                    )
                )

        return recommendations, warnings

    def _overall_score(
        self,
        beat: BeatAnalysis,
        email: EmailAnalysis,
        profile: FreelancerProfile | None,
    ) -> float:
        scoring = self.scoring
        score = beat.confidence * scoring.beat_weight
        total_weight = scoring.beat_weight

        email_score = self.email_analyzer.calculate_email_score(email)
        score += (email_score / 100) * scoring.email_weight
        total_weight += scoring.email_weight

        if profile is not None:
            quality = (
                profile.recent_activity.primary_outlet_score
                if profile.is_freelancer
                else profile.confidence
            )
            score += quality * scoring.freelancer_weight
            total_weight += scoring.freelancer_weight

            recency = (
                scoring.active_recency
                if profile.recent_activity.active_outlets > 0
                else scoring.inactive_recency
            )
            score += recency * scoring.recency_weight
        else:
            score += scoring.default_recency * scoring.recency_weight
        total_weight += scoring.recency_weight

        return min(score / total_weight, 1.0)

    def _cross_reference(self, analyses: Sequence[MediaHeuristicsAnalysis]) -> None:
        """Flag contacts that share an outlet with another contact in the batch."""
        groups: dict[str, list[MediaHeuristicsAnalysis]] = {}
        for analysis in analyses:
            if analysis.freelancer_profile is None:
                continue
            names = dict.fromkeys(o.outlet_name for o in analysis.freelancer_profile.outlets)
            for name in names:
                groups.setdefault(name, []).append(analysis)

        for outlet_name, members in groups.items():
            if len(members) < 2:
                continue
            for analysis in members:
                analysis.recommendations.append(
                    MediaRecommendation(
                        type=RecommendationType.contact_strategy,
                        priority=Priority.low,
                        title="Multiple Contacts at Outlet",
                        description=f"Found {len(members)} contacts at {outlet_name}",
                        action="Consider coordinating outreach to avoid overlap",
                        confidence=self.scoring.multiple_contacts_confidence,
                    )
                )


def _url_path(url: str) -> str | None:
    try:
        return urlsplit(url).path or None
    except ValueError:
        return None
