"""Data models for the media heuristics pipeline.

These models define the data structures exchanged between the analyzers:
- Contact and content inputs from the discovery pipeline
- Email, beat, freelancer and syndication analysis results
- Orchestrator output, recommendations and batch envelopes

Every model is JSON-serializable via ``model_dump(mode="json")``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


def _ensure_aware(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# =============================================================================
# Shared enums
# =============================================================================


class Priority(str, Enum):
    """Outreach / action priority."""

    high = "high"
    medium = "medium"
    low = "low"


class EmailType(str, Enum):
    """Mutually exclusive email classification."""

    personal = "personal"  # firstname.lastname@, f.lastname@
    alias = "alias"  # tips@, press@, newsdesk@
    generic = "generic"  # admin@, support@, noreply@
    department = "department"  # business@, sports@
    unknown = "unknown"


class AliasType(str, Enum):
    """Subtype of an alias inbox."""

    tips = "tips"
    newsdesk = "newsdesk"
    editorial = "editorial"
    press = "press"
    contact = "contact"
    info = "info"
    hello = "hello"


class BeatSourceKind(str, Enum):
    """Where a beat signal came from (section > keyword > byline > context)."""

    section = "section"
    keyword = "keyword"
    context = "context"
    byline = "byline"


class OutletRelationship(str, Enum):
    staff = "staff"
    freelancer = "freelancer"
    contributor = "contributor"
    stringer = "stringer"
    unknown = "unknown"


class ActivityLevel(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class RecencyPattern(str, Enum):
    consistent = "consistent"
    sporadic = "sporadic"
    declining = "declining"
    increasing = "increasing"


class ContactTiming(str, Enum):
    immediate = "immediate"
    monitor = "monitor"
    seasonal = "seasonal"


class PitchApproach(str, Enum):
    outlet_specific = "outlet_specific"
    multi_outlet = "multi_outlet"
    personal_brand = "personal_brand"


class EvidenceType(str, Enum):
    byline = "byline"
    bio = "bio"
    social = "social"
    email = "email"
    masthead = "masthead"


class SyndicationAction(str, Enum):
    """Typed action attached to a syndication recommendation."""

    skip_duplicate = "skip_duplicate"
    use_original = "use_original"
    verify_author = "verify_author"
    check_canonical = "check_canonical"


class RecommendationType(str, Enum):
    contact_strategy = "contact_strategy"
    beat_assignment = "beat_assignment"
    email_preference = "email_preference"
    content_verification = "content_verification"


# =============================================================================
# Inputs
# =============================================================================


class BylineInput(BaseModel):
    """A single published piece attributed to a contact."""

    title: str
    url: str
    published_at: datetime
    beats: list[str] = Field(default_factory=list)
    content: str | None = None

    _aware = field_validator("published_at")(_ensure_aware)


class OutletInput(BaseModel):
    """An outlet the contact has written for, with their bylines there."""

    id: str
    name: str
    domain: str
    bylines: list[BylineInput] = Field(default_factory=list)


class SocialProfiles(BaseModel):
    twitter: str | None = None
    linkedin: str | None = None


class ContactInput(BaseModel):
    """Candidate contact handed over by the discovery pipeline."""

    id: str
    name: str
    email: str
    title: str | None = None
    bio: str | None = None
    outlets: list[OutletInput] = Field(default_factory=list)
    social_profiles: SocialProfiles | None = None


class ContentInput(BaseModel):
    """A piece of web content considered as a contact source."""

    url: str
    title: str
    content: str | None = None
    byline: str | None = None
    published_at: datetime
    domain: str
    section_path: str | None = None
    canonical_url: str | None = None
    meta_tags: dict[str, str] = Field(default_factory=dict)

    _aware = field_validator("published_at")(_ensure_aware)


class BeatInput(BaseModel):
    """Text signals available for beat classification."""

    section_path: str | None = None
    title: str | None = None
    content: str | None = None
    byline: str | None = None
    url: str | None = None


class EmailContext(BaseModel):
    """Optional context that sharpens email suggestions."""

    outlet_name: str | None = None
    contact_name: str | None = None
    title: str | None = None


class EmailRequest(BaseModel):
    """One entry of a batch email analysis."""

    email: str
    domain: str | None = None
    context: EmailContext | None = None


# =============================================================================
# Email analysis
# =============================================================================


class EmailSuggestions(BaseModel):
    alternative_emails: list[str] = Field(default_factory=list)
    contact_method: str | None = None
    notes: str | None = None


class EmailAnalysis(BaseModel):
    """Classification of one email address."""

    email_type: EmailType
    alias_type: AliasType | None = None  # Only set when email_type is alias
    confidence: float = Field(ge=0.0, le=1.0)
    is_direct_contact: bool
    priority: Priority
    reasoning: str
    suggestions: EmailSuggestions | None = None


class EmailValidation(BaseModel):
    is_valid: bool
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class RankedEmail(BaseModel):
    email: str
    analysis: EmailAnalysis
    score: float


# =============================================================================
# Beat analysis
# =============================================================================


class BeatSource(BaseModel):
    """One piece of evidence for a beat."""

    beat: str
    source: BeatSourceKind
    confidence: float
    evidence: str
    weight: float


class BeatSources(BaseModel):
    section_based: list[str] = Field(default_factory=list)
    keyword_based: list[str] = Field(default_factory=list)
    context_based: list[str] = Field(default_factory=list)


class BeatAnalysis(BaseModel):
    primary_beats: list[str] = Field(default_factory=list)
    secondary_beats: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    sources: BeatSources = Field(default_factory=BeatSources)
    reasoning: str = ""


# =============================================================================
# Freelancer analysis
# =============================================================================


class Evidence(BaseModel):
    type: EvidenceType
    source: str
    content: str
    timestamp: datetime
    confidence: float


class OutletAssociation(BaseModel):
    """A contact's relationship with one outlet."""

    outlet_id: str
    outlet_name: str
    outlet_domain: str
    relationship: OutletRelationship = OutletRelationship.unknown
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    recency_score: float = Field(default=0.0, ge=0.0, le=1.0)
    activity_level: ActivityLevel = ActivityLevel.low
    last_byline: datetime | None = None
    total_bylines: int = 0
    recent_bylines: int = 0  # Last 90 days
    average_frequency: float = 0.0  # Articles per month over the last year
    beats: list[str] = Field(default_factory=list)
    evidence: list[Evidence] = Field(default_factory=list)


class ActivitySummary(BaseModel):
    total_outlets: int = 0
    active_outlets: int = 0  # Active in last 90 days
    primary_outlet_score: float = 0.0
    diversity_index: float = Field(default=0.0, ge=0.0, le=1.0)
    recency_pattern: RecencyPattern = RecencyPattern.consistent
    last_activity: datetime | None = None


class ContactStrategy(BaseModel):
    preferred_outlet: str = "Unknown"
    contact_timing: ContactTiming = ContactTiming.immediate
    pitch_approach: PitchApproach = PitchApproach.outlet_specific
    notes: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class FreelancerProfile(BaseModel):
    contact_id: str
    name: str
    email: str
    is_freelancer: bool
    confidence: float = Field(ge=0.0, le=1.0)
    outlets: list[OutletAssociation] = Field(default_factory=list)
    primary_outlet: OutletAssociation | None = None
    recent_activity: ActivitySummary = Field(default_factory=ActivitySummary)
    contact_strategy: ContactStrategy = Field(default_factory=ContactStrategy)
    reasoning: str = ""


# =============================================================================
# Syndication analysis
# =============================================================================


class SourceInfo(BaseModel):
    """Presumed first publisher of a piece of content."""

    domain: str
    outlet_name: str
    published_at: datetime
    author_name: str | None = None
    author_email: str | None = None
    is_original_source: bool
    confidence: float


class SyndicationRecommendation(BaseModel):
    type: SyndicationAction
    priority: Priority
    description: str
    action: str


class SyndicationAnalysis(BaseModel):
    is_syndicated: bool
    confidence: float = Field(ge=0.0, le=1.0)
    has_duplicates: bool = False
    original_source: SourceInfo | None = None
    syndication_network: str | None = None
    canonical_url: str | None = None
    duplicate_urls: list[str] = Field(default_factory=list)
    reasoning: str = ""
    recommendations: list[SyndicationRecommendation] = Field(default_factory=list)


class DateRange(BaseModel):
    earliest: datetime
    latest: datetime

    def widen(self, moment: datetime) -> None:
        if moment < self.earliest:
            self.earliest = moment
        if moment > self.latest:
            self.latest = moment


class ContentFingerprint(BaseModel):
    """Dedup key material for one (title, author) pair and every sighting of it."""

    title_hash: str
    content_hash: str = ""
    author_hash: str = ""
    publish_date_range: DateRange
    urls: list[str] = Field(default_factory=list)
    domains: list[str] = Field(default_factory=list)
    published_dates: list[datetime] = Field(default_factory=list)  # Parallel to urls

    @property
    def key(self) -> str:
        return f"{self.title_hash}-{self.author_hash}"

    def record(self, url: str, domain: str, published_at: datetime) -> None:
        """Add another sighting of this content."""
        self.urls.append(url)
        self.domains.append(domain)
        self.published_dates.append(published_at)
        self.publish_date_range.widen(published_at)


class TopSyndicator(BaseModel):
    domain: str
    count: int


class SyndicationStats(BaseModel):
    total_fingerprints: int = 0
    duplicate_groups: int = 0
    top_syndicators: list[TopSyndicator] = Field(default_factory=list)


class AnalyzedContent(BaseModel):
    """A content item paired with its syndication analysis."""

    content: ContentInput
    analysis: SyndicationAnalysis


# =============================================================================
# Orchestrator output
# =============================================================================


class MediaRecommendation(BaseModel):
    type: RecommendationType
    priority: Priority
    title: str
    description: str
    action: str
    confidence: float


class AnalysisMetadata(BaseModel):
    analysis_version: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    processing_time_ms: float = 0.0


class MediaHeuristicsAnalysis(BaseModel):
    """Aggregate per-contact result."""

    contact_id: str
    beat_analysis: BeatAnalysis
    email_analysis: EmailAnalysis
    freelancer_profile: FreelancerProfile | None = None
    syndication_analysis: SyndicationAnalysis | None = None
    overall_score: float = Field(ge=0.0, le=1.0)
    recommendations: list[MediaRecommendation] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    metadata: AnalysisMetadata


class ContentAnalysis(BaseModel):
    """Aggregate per-content result."""

    beat_analysis: BeatAnalysis
    syndication_analysis: SyndicationAnalysis
    recommendations: list[MediaRecommendation] = Field(default_factory=list)
    should_skip: bool = False


class ContentAnalysisEntry(BaseModel):
    content: ContentInput
    analysis: ContentAnalysis


class ItemFailure(BaseModel):
    """A batch item whose analysis raised."""

    index: int
    item_id: str | None = None
    error_type: str
    message: str


class ContactBatchResult(BaseModel):
    successes: list[MediaHeuristicsAnalysis] = Field(default_factory=list)
    failures: list[ItemFailure] = Field(default_factory=list)


class ContentBatchResult(BaseModel):
    original_content: list[ContentAnalysisEntry] = Field(default_factory=list)
    syndicated_content: list[ContentAnalysisEntry] = Field(default_factory=list)
    recommendations: list[MediaRecommendation] = Field(default_factory=list)
    failures: list[ItemFailure] = Field(default_factory=list)


class BeatStatistics(BaseModel):
    section_based_count: int = 0
    keyword_based_count: int = 0
    average_confidence: float = 0.0


class EmailStatistics(BaseModel):
    personal_emails: int = 0
    alias_emails: int = 0
    generic_emails: int = 0


class FreelancerStatistics(BaseModel):
    freelancer_count: int = 0
    staff_count: int = 0
    multi_outlet_count: int = 0


class HeuristicsStatistics(BaseModel):
    total_analyses: int = 0
    beat_analysis_stats: BeatStatistics = Field(default_factory=BeatStatistics)
    email_analysis_stats: EmailStatistics = Field(default_factory=EmailStatistics)
    freelancer_stats: FreelancerStatistics = Field(default_factory=FreelancerStatistics)
    syndication_stats: SyndicationStats = Field(default_factory=SyndicationStats)


# =============================================================================
# Pipeline integration
# =============================================================================


class ResearchResultInput(ContactInput):
    """A discovered contact together with the content it was found in."""

    source_content: ContentInput | None = None

    def to_contact(self) -> ContactInput:
        return ContactInput.model_validate(self.model_dump(exclude={"source_content"}))


class EnhancedContact(BaseModel):
    """Contact record annotated with its heuristics analysis."""

    id: str
    name: str
    email: str
    title: str | None = None
    bio: str | None = None
    beats: list[str] = Field(default_factory=list)
    outlets: list[str] = Field(default_factory=list)
    score: float
    heuristics_analysis: MediaHeuristicsAnalysis
    recommendations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class HeuristicsStats(BaseModel):
    total_analyzed: int = 0
    syndicated_filtered: int = 0
    freelancers_detected: int = 0
    alias_emails_detected: int = 0
    section_beats_detected: int = 0


class EnhancedResearchResult(BaseModel):
    original_results: list[ResearchResultInput] = Field(default_factory=list)
    filtered_results: list[EnhancedContact] = Field(default_factory=list)
    syndicated_content: list[ContentInput] = Field(default_factory=list)
    heuristics_stats: HeuristicsStats = Field(default_factory=HeuristicsStats)
    recommendations: list[str] = Field(default_factory=list)
    failures: list[ItemFailure] = Field(default_factory=list)


class SyndicationFilterResult(BaseModel):
    original_content: list[ContentInput] = Field(default_factory=list)
    syndicated_content: list[ContentInput] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class EnrichmentContactData(BaseModel):
    """Current values of a contact that enrichment suggestions apply to."""

    name: str
    email: str
    title: str | None = None
    bio: str | None = None
    beats: list[str] = Field(default_factory=list)
    outlets: list[str] = Field(default_factory=list)


class EnrichmentSuggestion(BaseModel):
    field: str
    current_value: Any = None
    suggested_value: Any = None
    confidence: float
    reasoning: str = ""


class EnhancedSuggestion(EnrichmentSuggestion):
    heuristic_score: float
    priority: Priority


class EnrichmentResult(BaseModel):
    enhanced_suggestions: list[EnhancedSuggestion] = Field(default_factory=list)
    heuristic_recommendations: list[str] = Field(default_factory=list)


class DuplicateCandidate(BaseModel):
    id: str
    name: str
    email: str
    outlets: list[str] = Field(default_factory=list)


class DuplicateGroup(BaseModel):
    contacts: list[str]
    reason: str
    confidence: float
    is_freelancer_group: bool


class DuplicateDetectionResult(BaseModel):
    duplicate_groups: list[DuplicateGroup] = Field(default_factory=list)
    freelancer_contacts: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
