"""Staff vs freelancer detection from cross-outlet byline history.

The analysis runs in five steps:
1. Freelancer status from bio, title, email, outlet count, publishing gaps
   and social profiles
2. Relationship with each outlet (email domain, byline frequency, title)
3. Recency score per outlet (30-day exponential decay with boosts/penalties)
4. Primary outlet and activity summary (Shannon diversity, recency pattern)
5. Contact strategy (timing, pitch approach, notes, warnings)
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from media_heuristics.core.constants import (
    RECENT_WINDOW_DAYS,
    SHORT_WINDOW_DAYS,
    STALE_AFTER_DAYS,
    VERY_RECENT_DAYS,
    YEAR_WINDOW_DAYS,
)
from media_heuristics.core.logging import get_logger
from media_heuristics.heuristics.rules import FreelancerRules, default_rules
from media_heuristics.models import (
    ActivityLevel,
    ActivitySummary,
    BylineInput,
    ContactInput,
    ContactStrategy,
    ContactTiming,
    Evidence,
    EvidenceType,
    FreelancerProfile,
    OutletAssociation,
    OutletInput,
    OutletRelationship,
    PitchApproach,
    RecencyPattern,
)

logger = get_logger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _days_between(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / _SECONDS_PER_DAY


@dataclass(frozen=True, slots=True)
class _BylineStats:
    total: int
    recent: int  # Last 90 days
    last_byline: datetime | None
    frequency: float  # Articles per month over the last year
    is_regular: bool
    beats: list[str]
    frequency_score: float


@dataclass(frozen=True, slots=True)
class _Status:
    is_freelancer: bool
    confidence: float
    reasoning: str


class FreelancerAnalyzer:
    """Builds FreelancerProfile records from contact byline history."""

    def __init__(
        self,
        rules: FreelancerRules | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the analyzer.

        Args:
            rules: Override the built-in freelancer tables and weights.
            clock: Returns the reference time for recency windows.
        """
        self._rules = rules if rules is not None else default_rules().freelancer
        self._clock = clock

    def analyze_freelancer(self, contact: ContactInput) -> FreelancerProfile:
        """Classify a contact and score their outlet relationships."""
        now = self._clock()

        status = self._detect_status(contact)
        associations = [self._outlet_association(contact, outlet, now) for outlet in contact.outlets]
        outlets = self._score_recency(associations, now)
        primary = self._primary_outlet(outlets)
        activity = self._activity_summary(outlets, now)
        strategy = self._contact_strategy(status.is_freelancer, outlets, primary, activity)

        logger.debug(
            "Freelancer analysis complete",
            contact_id=contact.id,
            is_freelancer=status.is_freelancer,
            confidence=round(status.confidence, 3),
            outlets=len(outlets),
        )

        return FreelancerProfile(
            contact_id=contact.id,
            name=contact.name,
            email=contact.email,
            is_freelancer=status.is_freelancer,
            confidence=status.confidence,
            outlets=outlets,
            primary_outlet=primary,
            recent_activity=activity,
            contact_strategy=strategy,
            reasoning=status.reasoning,
        )

    def analyze_freelancers(self, contacts: Iterable[ContactInput]) -> list[FreelancerProfile]:
        return [self.analyze_freelancer(contact) for contact in contacts]

    def update_freelancer_profile(
        self,
        profile: FreelancerProfile,
        new_bylines: Mapping[str, Sequence[BylineInput]],
    ) -> FreelancerProfile:
        """Refresh outlet statistics, scores and strategy from new byline data.

        Args:
            profile: Profile to refresh. It is not modified.
            new_bylines: Outlet id -> that outlet's current byline list. Outlets
                not present keep their existing statistics.

        Returns:
            A new profile. Freelancer status and confidence are kept.
        """
        now = self._clock()
        updated: list[OutletAssociation] = []
        for outlet in profile.outlets:
            bylines = new_bylines.get(outlet.outlet_id)
            if bylines is None:
                updated.append(outlet)
                continue
            stats = self._byline_stats(bylines, now)
            updated.append(
                outlet.model_copy(
                    update={
                        "last_byline": stats.last_byline,
                        "total_bylines": stats.total,
                        "recent_bylines": stats.recent,
                        "average_frequency": stats.frequency,
                        "beats": stats.beats,
                        "activity_level": self._activity_level(stats),
                    }
                )
            )

        outlets = self._score_recency(updated, now)
        primary = self._primary_outlet(outlets)
        activity = self._activity_summary(outlets, now)
        strategy = self._contact_strategy(profile.is_freelancer, outlets, primary, activity)

        return profile.model_copy(
            update={
                "outlets": outlets,
                "primary_outlet": primary,
                "recent_activity": activity,
                "contact_strategy": strategy,
            }
        )

    # -------------------------------------------------------------------------
    # Freelancer status
    # -------------------------------------------------------------------------

    def _detect_status(self, contact: ContactInput) -> _Status:
        rules = self._rules
        scoring = rules.scoring
        score = 0.0
        indicators: list[str] = []

        if contact.bio:
            for pattern in rules.bio_patterns:
                if pattern.search(contact.bio):
                    score += scoring.bio_hit
                    indicators.append(f"Bio contains freelancer indicator: {pattern.pattern}")

        if contact.title:
            for pattern in rules.title_patterns:
                if pattern.search(contact.title):
                    score += scoring.title_hit
                    indicators.append(f"Title indicates freelancer: {contact.title}")

        email_domain = contact.email.partition("@")[2].lower()
        has_outlet_email = any(o.domain.lower() == email_domain for o in contact.outlets)
        if not has_outlet_email and any(p.search(contact.email) for p in rules.email_patterns):
            score += scoring.personal_email
            indicators.append("Uses personal email domain")

        outlet_count = len(contact.outlets)
        if outlet_count > 1:
            score += scoring.multi_outlet_base + (outlet_count - 1) * scoring.multi_outlet_step
            indicators.append(f"Writes for {outlet_count} outlets")

        if self._has_irregular_gaps(contact.outlets):
            score += scoring.irregular_publishing
            indicators.append("Irregular publishing pattern across outlets")

        if contact.social_profiles is not None:
            social_text = " ".join(
                v
                for v in (contact.social_profiles.twitter, contact.social_profiles.linkedin)
                if v
            )
            if any(p.search(social_text) for p in rules.social_patterns):
                score += scoring.social_hit
                indicators.append("Social media indicates freelancer status")

        confidence = min(score, 1.0)
        is_freelancer = confidence > scoring.freelancer_threshold
        if is_freelancer:
            reasoning = (
                f"Likely freelancer ({confidence * 100:.0f}% confidence): {', '.join(indicators)}"
            )
        else:
            reasoning = f"Likely staff writer ({(1 - confidence) * 100:.0f}% confidence)"
        return _Status(is_freelancer=is_freelancer, confidence=confidence, reasoning=reasoning)

    def _has_irregular_gaps(self, outlets: Sequence[OutletInput]) -> bool:
        scoring = self._rules.scoring
        for outlet in outlets:
            dates = sorted((b.published_at for b in outlet.bylines), reverse=True)
            for newer, older in zip(dates, dates[1:]):
                gap = _days_between(newer, older)
                if gap > scoring.irregular_max_gap_days or gap < scoring.irregular_min_gap_days:
                    return True
        return False

    # -------------------------------------------------------------------------
    # Outlet relationships
    # -------------------------------------------------------------------------

    def _outlet_association(
        self, contact: ContactInput, outlet: OutletInput, now: datetime
    ) -> OutletAssociation:
        scoring = self._rules.scoring
        evidence: list[Evidence] = []
        relationship_score = 0.0
        relationship = OutletRelationship.unknown

        email_domain = contact.email.partition("@")[2].lower()
        email_matches = bool(email_domain) and outlet.domain.lower() == email_domain
        if email_matches:
            relationship_score += scoring.email_domain_match
            relationship = OutletRelationship.staff
            evidence.append(
                Evidence(
                    type=EvidenceType.email,
                    source="Email domain analysis",
                    content=f"Email domain matches outlet domain: {email_domain}",
                    timestamp=now,
                    confidence=scoring.email_domain_evidence_confidence,
                )
            )

        stats = self._byline_stats(outlet.bylines, now)
        relationship_score += stats.frequency_score

        if stats.is_regular and stats.frequency > scoring.regular_frequency:
            relationship = OutletRelationship.staff if email_matches else OutletRelationship.freelancer
        elif stats.frequency > 0:
            relationship = OutletRelationship.contributor

        if contact.title and outlet.name.lower() in contact.title.lower():
            relationship_score += scoring.title_mention
            evidence.append(
                Evidence(
                    type=EvidenceType.bio,
                    source="Title analysis",
                    content=f"Title mentions outlet: {contact.title}",
                    timestamp=now,
                    confidence=scoring.title_mention_evidence_confidence,
                )
            )

        return OutletAssociation(
            outlet_id=outlet.id,
            outlet_name=outlet.name,
            outlet_domain=outlet.domain,
            relationship=relationship,
            confidence=min(relationship_score, 1.0),
            activity_level=self._activity_level(stats),
            last_byline=stats.last_byline,
            total_bylines=stats.total,
            recent_bylines=stats.recent,
            average_frequency=stats.frequency,
            beats=stats.beats,
            evidence=evidence,
        )

    def _byline_stats(self, bylines: Sequence[BylineInput], now: datetime) -> _BylineStats:
        recent_cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)
        year_cutoff = now - timedelta(days=YEAR_WINDOW_DAYS)

        recent = sum(1 for b in bylines if b.published_at > recent_cutoff)
        year = sum(1 for b in bylines if b.published_at > year_cutoff)
        last = max((b.published_at for b in bylines), default=None)
        frequency = year / 12

        # dict preserves first-seen order
        beats = list(dict.fromkeys(beat for b in bylines for beat in b.beats))

        frequency_score = 0.0
        for tier in self._rules.scoring.frequency_tiers:
            if frequency > tier.above:
                frequency_score = tier.score
                break

        return _BylineStats(
            total=len(bylines),
            recent=recent,
            last_byline=last,
            frequency=frequency,
            is_regular=frequency > 1 and recent > 0,
            beats=beats,
            frequency_score=frequency_score,
        )

    def _activity_level(self, stats: _BylineStats) -> ActivityLevel:
        scoring = self._rules.scoring
        if stats.frequency > scoring.high_activity_frequency and stats.recent > scoring.high_activity_recent:
            return ActivityLevel.high
        if stats.frequency > scoring.medium_activity_frequency and stats.recent > 0:
            return ActivityLevel.medium
        return ActivityLevel.low

    # -------------------------------------------------------------------------
    # Recency, primary outlet, summary
    # -------------------------------------------------------------------------

    def _score_recency(
        self, outlets: Sequence[OutletAssociation], now: datetime
    ) -> list[OutletAssociation]:
        scoring = self._rules.scoring
        scored: list[OutletAssociation] = []

        for outlet in outlets:
            recency = 0.0
            if outlet.last_byline is not None:
                days = _days_between(now, outlet.last_byline)
                recency = math.exp(-days / scoring.decay_days)
                if days <= VERY_RECENT_DAYS:
                    recency *= scoring.very_recent_boost
                if outlet.recent_bylines > scoring.consistent_recent_bylines:
                    recency *= scoring.consistent_boost
                if days > STALE_AFTER_DAYS:
                    recency *= scoring.stale_penalty

            recency *= outlet.confidence
            recency *= scoring.activity_multipliers.get(outlet.activity_level.value, 1.0)
            scored.append(outlet.model_copy(update={"recency_score": min(recency, 1.0)}))

        return scored

    def _primary_outlet(self, outlets: Sequence[OutletAssociation]) -> OutletAssociation | None:
        if not outlets:
            return None
        scoring = self._rules.scoring

        def combined(outlet: OutletAssociation) -> float:
            return (
                outlet.recency_score * scoring.primary_recency_weight
                + outlet.confidence * scoring.primary_confidence_weight
            )

        best = max(outlets, key=combined)
        return best if combined(best) > scoring.primary_threshold else None

    def _activity_summary(
        self, outlets: Sequence[OutletAssociation], now: datetime
    ) -> ActivitySummary:
        recent_cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)
        active = [o for o in outlets if o.last_byline is not None and o.last_byline > recent_cutoff]
        last_activity = max(
            (o.last_byline for o in outlets if o.last_byline is not None), default=None
        )

        return ActivitySummary(
            total_outlets=len(outlets),
            active_outlets=len(active),
            primary_outlet_score=max((o.recency_score for o in outlets), default=0.0),
            diversity_index=self._diversity_index(outlets),
            recency_pattern=self._recency_pattern(outlets, now),
            last_activity=last_activity,
        )

    @staticmethod
    def _diversity_index(outlets: Sequence[OutletAssociation]) -> float:
        """Shannon diversity of bylines across outlets, normalised to [0, 1]."""
        if len(outlets) <= 1:
            return 0.0
        total = sum(o.total_bylines for o in outlets)
        if total == 0:
            return 0.0

        diversity = 0.0
        for outlet in outlets:
            if outlet.total_bylines > 0:
                proportion = outlet.total_bylines / total
                diversity -= proportion * math.log2(proportion)

        return min(diversity / math.log2(len(outlets)), 1.0)

    def _recency_pattern(
        self, outlets: Sequence[OutletAssociation], now: datetime
    ) -> RecencyPattern:
        scoring = self._rules.scoring
        short_cutoff = now - timedelta(days=SHORT_WINDOW_DAYS)
        recent_cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)

        last_month = sum(1 for o in outlets if o.last_byline is not None and o.last_byline > short_cutoff)
        last_quarter = sum(
            1 for o in outlets if o.last_byline is not None and o.last_byline > recent_cutoff
        )
        with_bylines = sum(1 for o in outlets if o.total_bylines > 0)

        if last_month > last_quarter * scoring.increasing_ratio:
            return RecencyPattern.increasing
        if last_month == 0 and last_quarter > 0:
            return RecencyPattern.declining
        if last_quarter < with_bylines * scoring.sporadic_ratio:
            return RecencyPattern.sporadic
        return RecencyPattern.consistent

    # -------------------------------------------------------------------------
    # Strategy
    # -------------------------------------------------------------------------

    def _contact_strategy(
        self,
        is_freelancer: bool,
        outlets: Sequence[OutletAssociation],
        primary: OutletAssociation | None,
        activity: ActivitySummary,
    ) -> ContactStrategy:
        scoring = self._rules.scoring
        notes: list[str] = []
        warnings: list[str] = []
        timing = ContactTiming.immediate
        approach = PitchApproach.outlet_specific

        if is_freelancer:
            approach = PitchApproach.personal_brand
            notes.append("Contact writes for multiple outlets - pitch to their personal brand/expertise")

            if activity.diversity_index > scoring.diversified_threshold:
                notes.append("Highly diversified across outlets - consider broad, expertise-based pitches")

            if primary is not None and primary.recency_score > scoring.focused_recency_threshold:
                notes.append(f"Most active at {primary.outlet_name} - consider outlet-specific angle")
                approach = PitchApproach.outlet_specific

            if activity.active_outlets == 0:
                timing = ContactTiming.monitor
                warnings.append("No recent activity - may be inactive or between assignments")
            elif activity.active_outlets == 1:
                notes.append("Currently focused on one outlet - good timing for pitches")
        else:
            notes.append("Staff writer - use outlet-specific pitches and follow outlet guidelines")
            if activity.recency_pattern == RecencyPattern.declining:
                timing = ContactTiming.monitor
                warnings.append("Activity appears to be declining - verify current status")

        if activity.recency_pattern == RecencyPattern.sporadic:
            timing = ContactTiming.monitor
            notes.append("Sporadic publishing pattern - monitor for active periods")

        if len(outlets) > scoring.well_connected_outlets:
            notes.append(f"Writes for {len(outlets)} outlets - very well-connected freelancer")
            approach = PitchApproach.multi_outlet

        return ContactStrategy(
            preferred_outlet=primary.outlet_name if primary is not None else "Unknown",
            contact_timing=timing,
            pitch_approach=approach,
            notes=notes,
            warnings=warnings,
        )
