"""Heuristics helpers for the contact import pipeline.

HeuristicsIntegration wraps a MediaHeuristics instance and speaks the
pipeline's shapes: raw research results in, enhanced contacts out.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from media_heuristics.core.exceptions import AnalysisError
from media_heuristics.core.logging import get_logger
from media_heuristics.heuristics.media_heuristics import MediaHeuristics
from media_heuristics.models import (
    ContactInput,
    ContentInput,
    DuplicateCandidate,
    DuplicateDetectionResult,
    DuplicateGroup,
    EmailType,
    EnhancedContact,
    EnhancedResearchResult,
    EnhancedSuggestion,
    EnrichmentContactData,
    EnrichmentResult,
    EnrichmentSuggestion,
    HeuristicsStats,
    ItemFailure,
    MediaHeuristicsAnalysis,
    Priority,
    ResearchResultInput,
    SyndicationFilterResult,
)

logger = get_logger(__name__)

# Suggestion boosts
SECTION_BEAT_BOOST = 1.3
ALIAS_EMAIL_BOOST = 1.2
PRIMARY_OUTLET_BOOST = 1.2

FREELANCER_GROUP_CONFIDENCE = 0.8
DUPLICATE_GROUP_CONFIDENCE = 0.9

_NON_NAME_CHARS = re.compile(r"[^a-z\s]")


def _to_enhanced(contact: ContactInput, analysis: MediaHeuristicsAnalysis) -> EnhancedContact:
    profile = analysis.freelancer_profile
    return EnhancedContact(
        id=analysis.contact_id,
        name=contact.name,
        email=contact.email,
        title=contact.title,
        bio=contact.bio,
        beats=analysis.beat_analysis.primary_beats,
        outlets=[o.outlet_name for o in profile.outlets] if profile else [],
        score=analysis.overall_score,
        heuristics_analysis=analysis,
        recommendations=[r.description for r in analysis.recommendations],
        warnings=analysis.warnings,
    )


def _percent(count: int, total: int) -> str:
    return f"{count / total * 100:.0f}" if total else "0"


def overall_recommendations(stats: HeuristicsStats) -> list[str]:
    """Summarize a research run as human-readable recommendations."""
    total = stats.total_analyzed
    recommendations: list[str] = []

    if stats.syndicated_filtered > 0:
        recommendations.append(
            f"Filtered out {stats.syndicated_filtered} syndicated content pieces "
            f"({_percent(stats.syndicated_filtered, total)}% of total). "
            "Focus on original sources for better contact quality."
        )
    if stats.freelancers_detected > 0:
        recommendations.append(
            f"Detected {stats.freelancers_detected} freelancers "
            f"({_percent(stats.freelancers_detected, total)}% of contacts). "
            "Use personal brand pitches and monitor their primary outlets."
        )
    if stats.alias_emails_detected > 0:
        recommendations.append(
            f"Found {stats.alias_emails_detected} alias emails "
            f"({_percent(stats.alias_emails_detected, total)}% of contacts). "
            "Consider finding direct personal emails for better response rates."
        )
    if stats.section_beats_detected > 0:
        recommendations.append(
            f"Identified section-based beats for {stats.section_beats_detected} contacts "
            f"({_percent(stats.section_beats_detected, total)}%). "
            "These beat assignments have higher confidence than keyword-based detection."
        )

    if not recommendations:
        recommendations.append("All contacts passed heuristic analysis with good quality scores.")
    return recommendations


class HeuristicsIntegration:
    """Applies media heuristics to research, enrichment and dedup workflows."""

    def __init__(self, heuristics: MediaHeuristics | None = None) -> None:
        self.heuristics = heuristics or MediaHeuristics()

    async def enhance_research_results(
        self, raw_results: Sequence[ResearchResultInput]
    ) -> EnhancedResearchResult:
        """Drop contacts found in syndicated content and analyze the rest.

        Args:
            raw_results: Contacts from a research run, each optionally with the
                content they were discovered in.

        Returns:
            Enhanced contacts sorted by score, run statistics and summary
            recommendations.
        """
        stats = HeuristicsStats(total_analyzed=len(raw_results))

        # First pass: syndication over each distinct source URL, in result order
        contents: dict[str, ContentInput] = {}
        for result in raw_results:
            if result.source_content is not None:
                contents.setdefault(result.source_content.url, result.source_content)
        syndicated: list[ContentInput] = []
        failures: list[ItemFailure] = []
        if contents:
            content_batch = await self.heuristics.batch_analyze_content(list(contents.values()))
            syndicated = [entry.content for entry in content_batch.syndicated_content]
            failures.extend(content_batch.failures)
            stats.syndicated_filtered = len(syndicated)

        syndicated_urls = {content.url for content in syndicated}
        contacts = [
            r.to_contact()
            for r in raw_results
            if r.source_content is None or r.source_content.url not in syndicated_urls
        ]

        # Second pass: contacts from original sources
        contact_batch = await self.heuristics.batch_analyze_contacts(contacts)
        failures.extend(contact_batch.failures)

        by_id = {contact.id: contact for contact in contacts}
        enhanced: list[EnhancedContact] = []
        for analysis in contact_batch.successes:
            contact = by_id.get(analysis.contact_id)
            if contact is None:
                continue
            if analysis.freelancer_profile is not None and analysis.freelancer_profile.is_freelancer:
                stats.freelancers_detected += 1
            if analysis.email_analysis.email_type == EmailType.alias:
                stats.alias_emails_detected += 1
            if analysis.beat_analysis.sources.section_based:
                stats.section_beats_detected += 1
            enhanced.append(_to_enhanced(contact, analysis))

        enhanced.sort(key=lambda c: c.score, reverse=True)

        logger.info(
            "Research results enhanced",
            total=stats.total_analyzed,
            kept=len(enhanced),
            syndicated_filtered=stats.syndicated_filtered,
            failed=len(failures),
        )

        return EnhancedResearchResult(
            original_results=list(raw_results),
            filtered_results=enhanced,
            syndicated_content=syndicated,
            heuristics_stats=stats,
            recommendations=overall_recommendations(stats),
            failures=failures,
        )

    async def enhance_contact(self, contact: ContactInput) -> EnhancedContact:
        """Analyze one contact.

        Raises:
            AnalysisError: If any analyzer fails for this contact.
        """
        try:
            analysis = await self.heuristics.analyze_contact(contact)
        except Exception as e:
            raise AnalysisError(f"Contact analysis failed: {e}", item_id=contact.id) from e
        return _to_enhanced(contact, analysis)

    async def filter_syndicated_content(
        self, contents: Sequence[ContentInput]
    ) -> SyndicationFilterResult:
        """Split content into original and syndicated items."""
        batch = await self.heuristics.batch_analyze_content(contents)
        return SyndicationFilterResult(
            original_content=[entry.content for entry in batch.original_content],
            syndicated_content=[entry.content for entry in batch.syndicated_content],
            recommendations=[r.description for r in batch.recommendations],
        )

    async def enhance_enrichment_suggestions(
        self,
        contact_id: str,
        current_data: EnrichmentContactData,
        suggestions: Sequence[EnrichmentSuggestion],
    ) -> EnrichmentResult:
        """Re-score enrichment suggestions using the contact's heuristics analysis."""
        analysis = await self.heuristics.analyze_contact(
            ContactInput(
                id=contact_id,
                name=current_data.name,
                email=current_data.email,
                title=current_data.title,
                bio=current_data.bio,
            )
        )

        section_beats = set(analysis.beat_analysis.sources.section_based)
        is_alias = analysis.email_analysis.email_type == EmailType.alias
        profile = analysis.freelancer_profile
        primary_outlet = (
            profile.primary_outlet.outlet_name
            if profile is not None and profile.is_freelancer and profile.primary_outlet
            else None
        )

        enhanced: list[EnhancedSuggestion] = []
        for suggestion in suggestions:
            score = suggestion.confidence
            priority = Priority.medium

            if suggestion.field == "beats" and any(
                beat in section_beats for beat in _as_list(suggestion.suggested_value)
            ):
                score *= SECTION_BEAT_BOOST
                priority = Priority.high

            if suggestion.field == "email" and is_alias:
                score *= ALIAS_EMAIL_BOOST
                priority = Priority.high

            if (
                suggestion.field == "outlets"
                and primary_outlet is not None
                and _mentions(suggestion.suggested_value, primary_outlet)
            ):
                score *= PRIMARY_OUTLET_BOOST
                priority = Priority.high

            enhanced.append(
                EnhancedSuggestion(
                    **suggestion.model_dump(),
                    heuristic_score=min(score, 1.0),
                    priority=priority,
                )
            )

        enhanced.sort(key=lambda s: s.heuristic_score, reverse=True)
        return EnrichmentResult(
            enhanced_suggestions=enhanced,
            heuristic_recommendations=[r.description for r in analysis.recommendations],
        )

    def enhance_duplicate_detection(
        self, contacts: Sequence[DuplicateCandidate]
    ) -> DuplicateDetectionResult:
        """Group contacts by normalized name, separating freelancers from duplicates."""
        name_groups: dict[str, list[DuplicateCandidate]] = {}
        for contact in contacts:
            normalized = _NON_NAME_CHARS.sub("", contact.name.lower())
            name_groups.setdefault(normalized, []).append(contact)

        result = DuplicateDetectionResult()
        for members in name_groups.values():
            if len(members) < 2:
                continue
            ids = [member.id for member in members]
            outlets = dict.fromkeys(outlet for member in members for outlet in member.outlets)

            if len(outlets) > 1:
                result.duplicate_groups.append(
                    DuplicateGroup(
                        contacts=ids,
                        reason="Same person writing for multiple outlets (freelancer)",
                        confidence=FREELANCER_GROUP_CONFIDENCE,
                        is_freelancer_group=True,
                    )
                )
                result.freelancer_contacts.extend(ids)
                result.recommendations.append(
                    f'Contact "{members[0].name}" appears to be a freelancer writing for '
                    f"{len(outlets)} outlets. Consider consolidating into single contact "
                    "with multiple outlet associations."
                )
            else:
                result.duplicate_groups.append(
                    DuplicateGroup(
                        contacts=ids,
                        reason="Same name, likely duplicate entries",
                        confidence=DUPLICATE_GROUP_CONFIDENCE,
                        is_freelancer_group=False,
                    )
                )
        return result


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list | tuple | set):
        return list(value)
    return [value]


def _mentions(value: Any, name: str) -> bool:
    if isinstance(value, str):
        return name in value
    if isinstance(value, list | tuple | set):
        return name in value
    return False
