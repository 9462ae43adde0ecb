"""Syndicated content detection.

Five independent signals are combined into one verdict:

| Signal            | Weight | Source                                        |
|-------------------|--------|-----------------------------------------------|
| canonical URL     | 0.4    | canonical link points at another domain       |
| wire network      | 0.3    | AP / Reuters / Bloomberg / ... indicators     |
| content patterns  | 0.2    | "(AP)", "originally published", ©, /wire/     |
| domain reputation | 0.1    | aggregator domains and wire subdomains        |
| duplicate         | 0.3    | same (title, author) fingerprint seen before  |

A canonical mismatch and a repeated fingerprint are each decisive on their
own; the weighted sum decides everything else.

Duplicate detection is stateful: fingerprints live in a FingerprintStore and
an item can only be a duplicate of something analyzed before it. Batches are
therefore processed sequentially.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from media_heuristics.core.constants import (
    DEFAULT_SYNDICATION_FILTER_THRESHOLD,
    FINGERPRINT_CONTENT_PREFIX_CHARS,
    TOP_SYNDICATORS_LIMIT,
)
from media_heuristics.core.logging import get_logger
from media_heuristics.heuristics.rules import SyndicationRules, default_rules
from media_heuristics.models import (
    AnalyzedContent,
    ContentFingerprint,
    ContentInput,
    DateRange,
    Priority,
    SourceInfo,
    SyndicationAction,
    SyndicationAnalysis,
    SyndicationRecommendation,
    SyndicationStats,
    TopSyndicator,
)
from media_heuristics.storage.fingerprints import FingerprintStore, InMemoryFingerprintStore

logger = get_logger(__name__)

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def rolling_hash(text: str) -> str:
    """32-bit signed rolling hash (h = h * 31 + c) over UTF-16 code units, base 36."""
    h = 0
    encoded = text.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        h = ((h << 5) - h + (encoded[i] | encoded[i + 1] << 8)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(h)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return sign + "".join(reversed(digits))


def extract_domain(url: str) -> str:
    """Host name of a URL without a leading ``www.``; empty string if unparseable."""
    try:
        hostname = urlsplit(url.strip()).hostname
    except ValueError:
        return ""
    if not hostname:
        return ""
    return hostname.removeprefix("www.")


def _normalize_domain(domain: str) -> str:
    return domain.strip().lower().removeprefix("www.")


# =============================================================================
# Signal results
# =============================================================================


@dataclass(frozen=True, slots=True)
class _CanonicalSignal:
    is_syndicated: bool
    confidence: float
    reasoning: str
    original_domain: str | None = None


@dataclass(frozen=True, slots=True)
class _NetworkSignal:
    network: str | None
    confidence: float
    indicators: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _PatternSignal:
    has_patterns: bool
    confidence: float
    patterns: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _DomainSignal:
    is_heavy: bool
    confidence: float
    reasoning: str


@dataclass(frozen=True, slots=True)
class _DuplicateSignal:
    has_duplicates: bool
    confidence: float
    duplicate_urls: list[str] = field(default_factory=list)
    original_source: SourceInfo | None = None


class SyndicationDetector:
    """Detects wire copy and republished content before contacts are extracted."""

    def __init__(
        self,
        rules: SyndicationRules | None = None,
        store: FingerprintStore | None = None,
        extra_primary_sources: Iterable[str] = (),
        filter_threshold: float = DEFAULT_SYNDICATION_FILTER_THRESHOLD,
    ) -> None:
        """Initialize the detector.

        Args:
            rules: Override the built-in syndication tables and weights.
            store: Fingerprint store. A private in-memory LRU is used if omitted.
            extra_primary_sources: Domains trusted as original publishers in
                addition to the rule set's list.
            filter_threshold: Default confidence at or above which
                filter_syndicated_content() drops a syndicated item.
        """
        self._rules = rules if rules is not None else default_rules().syndication
        self._filter_threshold = filter_threshold
        self._store = store if store is not None else InMemoryFingerprintStore()
        self._primary_sources = [
            *self._rules.primary_source_domains,
            *(_normalize_domain(d) for d in extra_primary_sources),
        ]
        self._known_canonical = {
            domain for network in self._rules.networks for domain in network.canonical_domains
        }
        # Serializes the read-modify-write on fingerprint entries
        self._lock = asyncio.Lock()

    @property
    def store(self) -> FingerprintStore:
        return self._store

    async def analyze_syndication(self, content: ContentInput) -> SyndicationAnalysis:
        """Evaluate one content item. Records its fingerprint as a side effect."""
        domain = _normalize_domain(content.domain)

        canonical = self._canonical_signal(content, domain)
        network = self._network_signal(content, domain)
        patterns = self._pattern_signal(content)
        reputation = self._domain_signal(domain)
        duplicate = await self._duplicate_signal(content, domain)

        analysis = self._synthesize(content, domain, canonical, network, patterns, reputation, duplicate)
        logger.debug(
            "Syndication analyzed",
            url=content.url,
            is_syndicated=analysis.is_syndicated,
            confidence=round(analysis.confidence, 3),
            network=analysis.syndication_network,
            has_duplicates=analysis.has_duplicates,
        )
        return analysis

    async def batch_analyze_syndication(
        self, contents: Sequence[ContentInput]
    ) -> list[SyndicationAnalysis]:
        """Analyze items one after another, in order."""
        results: list[SyndicationAnalysis] = []
        for content in contents:
            results.append(await self.analyze_syndication(content))
        return results

    def filter_syndicated_content(
        self,
        analyses: Sequence[AnalyzedContent],
        threshold: float | None = None,
    ) -> list[AnalyzedContent]:
        """Keep items that are not syndicated or whose confidence is below threshold."""
        if threshold is None:
            threshold = self._filter_threshold
        return [
            item
            for item in analyses
            if not item.analysis.is_syndicated or item.analysis.confidence < threshold
        ]

    def get_original_sources(self, analyses: Sequence[AnalyzedContent]) -> list[SourceInfo]:
        """Original sources of syndicated items, first occurrence per domain."""
        seen: set[str] = set()
        sources: list[SourceInfo] = []
        for item in analyses:
            source = item.analysis.original_source
            if not item.analysis.is_syndicated or source is None or source.domain in seen:
                continue
            seen.add(source.domain)
            sources.append(source)
        return sources

    async def clear_fingerprints(self) -> None:
        async with self._lock:
            await self._store.clear()
        logger.debug("Fingerprint store cleared")

    async def get_syndication_stats(self) -> SyndicationStats:
        """Fingerprint totals, duplicate groups and the domains most often in them."""
        fingerprints = await self._store.values()
        domain_counts: Counter[str] = Counter()
        duplicate_groups = 0

        for fingerprint in fingerprints:
            if len(fingerprint.urls) > 1:
                duplicate_groups += 1
                domain_counts.update(fingerprint.domains)

        return SyndicationStats(
            total_fingerprints=len(fingerprints),
            duplicate_groups=duplicate_groups,
            top_syndicators=[
                TopSyndicator(domain=domain, count=count)
                for domain, count in domain_counts.most_common(TOP_SYNDICATORS_LIMIT)
            ],
        )

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    def _canonical_signal(self, content: ContentInput, domain: str) -> _CanonicalSignal:
        scoring = self._rules.scoring
        canonical_url = content.canonical_url or content.meta_tags.get("canonical")
        if not canonical_url:
            return _CanonicalSignal(False, 0.0, "No canonical URL found")

        canonical_domain = extract_domain(canonical_url)
        if not canonical_domain:
            return _CanonicalSignal(False, 0.0, "Canonical URL could not be parsed")

        if canonical_domain != domain:
            confidence = (
                scoring.canonical_known_confidence
                if canonical_domain in self._known_canonical
                else scoring.canonical_other_confidence
            )
            return _CanonicalSignal(
                True,
                confidence,
                f"Canonical URL points to different domain: {canonical_domain}",
                original_domain=canonical_domain,
            )

        return _CanonicalSignal(
            False, scoring.canonical_match_confidence, "Canonical URL matches current domain"
        )

    def _network_signal(self, content: ContentInput, domain: str) -> _NetworkSignal:
        scoring = self._rules.scoring
        text = f"{content.title} {content.byline or ''} {content.content or ''}"
        indicators: list[str] = []
        best_name: str | None = None
        best_score = 0.0

        for network in self._rules.networks:
            score = 0.0
            for pattern in network.patterns:
                if pattern.search(text):
                    score += scoring.network_pattern_score
                    indicators.append(f"Pattern match: {pattern.pattern}")
            for indicator in network.indicators:
                if indicator in text:
                    score += scoring.network_indicator_score
                    indicators.append(f"Indicator found: {indicator}")
            if domain in network.canonical_domains:
                score += scoring.network_domain_score
                indicators.append(f"Domain match: {domain}")

            if score > best_score:
                best_name, best_score = network.name, score

        return _NetworkSignal(best_name, min(best_score, 1.0), indicators)

    def _pattern_signal(self, content: ContentInput) -> _PatternSignal:
        scoring = self._rules.scoring
        indicators = self._rules.indicators
        text = f"{content.title} {content.byline or ''} {content.content or ''}"
        found: list[str] = []
        score = 0.0

        groups = (
            ("Byline pattern", indicators.byline_patterns, scoring.byline_pattern_score, text),
            ("Content pattern", indicators.content_patterns, scoring.content_pattern_score, text),
            ("Copyright pattern", indicators.copyright_patterns, scoring.copyright_pattern_score, text),
            ("URL pattern", indicators.url_patterns, scoring.url_pattern_score, content.url),
        )
        for label, patterns, weight, haystack in groups:
            for pattern in patterns:
                if pattern.search(haystack):
                    score += weight
                    found.append(f"{label}: {pattern.pattern}")

        return _PatternSignal(score > scoring.pattern_presence_threshold, min(score, 1.0), found)

    def _domain_signal(self, domain: str) -> _DomainSignal:
        scoring = self._rules.scoring
        if domain in self._rules.heavy_domains:
            return _DomainSignal(
                True, scoring.heavy_domain_confidence, f"Domain {domain} is known for heavy syndication"
            )
        for pattern in self._rules.subdomain_patterns:
            if pattern.search(domain):
                return _DomainSignal(
                    True,
                    scoring.subdomain_confidence,
                    f"Subdomain pattern suggests syndication: {domain}",
                )
        return _DomainSignal(
            False, scoring.not_heavy_confidence, "Domain does not show syndication patterns"
        )

    async def _duplicate_signal(self, content: ContentInput, domain: str) -> _DuplicateSignal:
        scoring = self._rules.scoring
        fingerprint = self._fingerprint(content, domain)

        async with self._lock:
            existing = await self._store.get(fingerprint.key)
            if existing is None:
                await self._store.put(fingerprint)
                return _DuplicateSignal(False, scoring.first_sighting_confidence)

            # Re-analysing a recorded URL adds no sighting
            if content.url not in existing.urls:
                existing.record(content.url, domain, content.published_at)
                await self._store.put(existing)

        duplicate_urls = [url for url in existing.urls if url != content.url]
        if not duplicate_urls:
            return _DuplicateSignal(False, scoring.first_sighting_confidence)

        return _DuplicateSignal(
            True,
            scoring.duplicate_confidence,
            duplicate_urls=duplicate_urls,
            original_source=self._original_source(existing),
        )

    @staticmethod
    def _fingerprint(content: ContentInput, domain: str) -> ContentFingerprint:
        body = content.content[:FINGERPRINT_CONTENT_PREFIX_CHARS] if content.content else ""
        return ContentFingerprint(
            title_hash=rolling_hash(content.title.lower().strip()),
            content_hash=rolling_hash(body) if body else "",
            author_hash=rolling_hash(content.byline.lower().strip()) if content.byline else "",
            publish_date_range=DateRange(earliest=content.published_at, latest=content.published_at),
            urls=[content.url],
            domains=[domain],
            published_dates=[content.published_at],
        )

    def _original_source(self, fingerprint: ContentFingerprint) -> SourceInfo:
        scoring = self._rules.scoring

        primary = next((d for d in fingerprint.domains if d in self._primary_sources), None)
        if primary is not None:
            return SourceInfo(
                domain=primary,
                outlet_name=self._outlet_name(primary),
                published_at=fingerprint.publish_date_range.earliest,
                is_original_source=True,
                confidence=scoring.primary_source_confidence,
            )

        # Earliest-dated sighting; ties go to the first one recorded
        index = 0
        if len(fingerprint.published_dates) == len(fingerprint.domains):
            index = min(
                range(len(fingerprint.domains)), key=lambda i: fingerprint.published_dates[i]
            )
        domain = fingerprint.domains[index]
        return SourceInfo(
            domain=domain,
            outlet_name=self._outlet_name(domain),
            published_at=fingerprint.publish_date_range.earliest,
            is_original_source=False,
            confidence=scoring.fallback_source_confidence,
        )

    def _outlet_name(self, domain: str) -> str:
        return self._rules.outlet_names.get(domain, domain)

    # -------------------------------------------------------------------------
    # Verdict
    # -------------------------------------------------------------------------

    def _synthesize(
        self,
        content: ContentInput,
        domain: str,
        canonical: _CanonicalSignal,
        network: _NetworkSignal,
        patterns: _PatternSignal,
        reputation: _DomainSignal,
        duplicate: _DuplicateSignal,
    ) -> SyndicationAnalysis:
        scoring = self._rules.scoring
        score = 0.0
        reasons: list[str] = []
        recommendations: list[SyndicationRecommendation] = []

        if canonical.is_syndicated:
            score += canonical.confidence * scoring.canonical_weight
            reasons.append(canonical.reasoning)
            recommendations.append(
                SyndicationRecommendation(
                    type=SyndicationAction.use_original,
                    priority=Priority.high,
                    description="Use canonical URL as original source",
                    action=f"Contact authors at {canonical.original_domain} instead",
                )
            )

        if network.network:
            score += network.confidence * scoring.network_weight
            reasons.append(f"Detected syndication network: {network.network}")
            recommendations.append(
                SyndicationRecommendation(
                    type=SyndicationAction.skip_duplicate,
                    priority=Priority.high,
                    description="Content from syndication network",
                    action="Skip this source and find original reporting",
                )
            )

        if patterns.has_patterns:
            score += patterns.confidence * scoring.pattern_weight
            reasons.append(f"Syndication patterns found: {', '.join(patterns.patterns)}")

        if reputation.is_heavy:
            score += reputation.confidence * scoring.domain_weight
            reasons.append(reputation.reasoning)
            recommendations.append(
                SyndicationRecommendation(
                    type=SyndicationAction.verify_author,
                    priority=Priority.medium,
                    description="Domain known for syndication",
                    action="Verify if author is staff or freelancer",
                )
            )

        if duplicate.has_duplicates:
            score += duplicate.confidence * scoring.duplicate_weight
            reasons.append(f"Found {len(duplicate.duplicate_urls)} duplicate URLs")
            recommendations.append(
                SyndicationRecommendation(
                    type=SyndicationAction.use_original,
                    priority=Priority.high,
                    description="Duplicate content detected",
                    action="Use original source for contact discovery",
                )
            )

        is_syndicated = score > scoring.verdict_threshold
        confidence = min(score, 1.0)

        if canonical.is_syndicated and scoring.decisive_canonical:
            is_syndicated = True
            confidence = max(confidence, canonical.confidence)

        # The trusted original itself is never flagged as a copy of its own story
        is_original = (
            duplicate.original_source is not None
            and duplicate.original_source.is_original_source
            and duplicate.original_source.domain == domain
        )
        if duplicate.has_duplicates and scoring.decisive_duplicates and not is_original:
            is_syndicated = True
            confidence = max(confidence, duplicate.confidence)

        if is_syndicated:
            recommendations.append(
                SyndicationRecommendation(
                    type=SyndicationAction.check_canonical,
                    priority=Priority.medium,
                    description="Always check canonical URLs",
                    action="Verify original source before adding contacts",
                )
            )

        return SyndicationAnalysis(
            is_syndicated=is_syndicated,
            confidence=confidence,
            has_duplicates=duplicate.has_duplicates,
            original_source=duplicate.original_source,
            syndication_network=network.network,
            canonical_url=(
                f"https://{canonical.original_domain}"
                if canonical.original_domain
                else content.canonical_url
            ),
            duplicate_urls=duplicate.duplicate_urls,
            reasoning="; ".join(reasons),
            recommendations=recommendations,
        )
