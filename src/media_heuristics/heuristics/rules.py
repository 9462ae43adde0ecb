"""Classification tables and scoring weights.

All regex tables, domain overrides, wire-network indicators, beat keyword
tables and numeric weights are data, held in one versioned ``HeuristicRules``
model. The analyzers keep the algorithms; this module keeps the numbers.

Patterns are stored as strings and compiled by pydantic. Case-insensitive
patterns carry an inline ``(?i)`` flag so they survive a JSON round-trip.

A rule set can be loaded from JSON with ``load_rules``. Sections missing from
the file fall back to the built-in defaults.

Two choices in the email tables interact with the analyzer and should be
kept in mind when tuning:

- The single-token catch-all ``^[a-z]+[a-z0-9]*@`` scores 0.65, below every
  role mailbox. At 0.8 it would beat ``info@``, ``hello@``, ``contact@``
  and every department pattern (it is declared first, so it wins ties),
  making those types unreachable.
- A domain override's ``personal_patterns`` never reclassify an address
  whose best table match is an alias, generic or department mailbox, so
  ``admin@nytimes.com`` stays generic. Override ``alias_patterns`` are
  checked first and always apply.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from media_heuristics.core.exceptions import RulesError
from media_heuristics.core.logging import get_logger
from media_heuristics.models import AliasType, EmailType, Priority

logger = get_logger(__name__)

RULES_VERSION = "1.0.0"


class _RulesModel(BaseModel):
    # Defaults hold pattern strings; compile them the same way as file input
    model_config = ConfigDict(validate_default=True)


# =============================================================================
# Email tables
# =============================================================================

# (pattern, type, alias_type, priority, confidence, description)
# Order matters: ties on confidence go to the first declared pattern.
_EMAIL_PATTERNS: list[tuple[str, str, str | None, str, float, str]] = [
    # Personal
    (r"^[a-z]+\.[a-z]+@", "personal", None, "high", 0.9, "First name and last name format"),
    # Catch-all for single-token local parts, ranked below every role mailbox
    (r"^[a-z]+[a-z0-9]*@", "personal", None, "high", 0.65, "Personal name format"),
    (r"^[a-z]\.[a-z]+@", "personal", None, "high", 0.85, "First initial and last name"),
    # Tips and submissions
    (r"^tips@", "alias", "tips", "medium", 0.95, "Tips submission email"),
    (r"^tip@", "alias", "tips", "medium", 0.9, "Tip submission email"),
    (r"^story@", "alias", "tips", "medium", 0.85, "Story submission email"),
    (r"^news@", "alias", "tips", "medium", 0.8, "News submission email"),
    # Newsroom and editorial
    (r"^newsdesk@", "alias", "newsdesk", "medium", 0.95, "Newsdesk email"),
    (r"^newsroom@", "alias", "newsdesk", "medium", 0.9, "Newsroom email"),
    (r"^editorial@", "alias", "editorial", "medium", 0.9, "Editorial team email"),
    (r"^editor@", "alias", "editorial", "medium", 0.85, "Editor email"),
    (r"^editors@", "alias", "editorial", "medium", 0.85, "Editors team email"),
    # Press and media relations
    (r"^press@", "alias", "press", "high", 0.95, "Press relations email"),
    (r"^media@", "alias", "press", "high", 0.9, "Media relations email"),
    (r"^pr@", "alias", "press", "high", 0.85, "PR team email"),
    # General contact
    (r"^contact@", "alias", "contact", "low", 0.8, "General contact email"),
    (r"^hello@", "alias", "hello", "low", 0.75, "General hello email"),
    (r"^hi@", "alias", "hello", "low", 0.7, "General hi email"),
    (r"^info@", "alias", "info", "low", 0.75, "General info email"),
    # Departments
    (r"^business@", "department", None, "medium", 0.8, "Business department email"),
    (r"^tech@", "department", None, "medium", 0.8, "Technology department email"),
    (r"^sports@", "department", None, "medium", 0.8, "Sports department email"),
    (r"^politics@", "department", None, "medium", 0.8, "Politics department email"),
    # Administrative
    (r"^admin@", "generic", None, "low", 0.9, "Administrative email"),
    (r"^support@", "generic", None, "low", 0.9, "Support email"),
    (r"^help@", "generic", None, "low", 0.85, "Help desk email"),
    (r"^noreply@", "generic", None, "low", 0.95, "No-reply email"),
    (r"^no-reply@", "generic", None, "low", 0.95, "No-reply email"),
]

_FIRST = r"^[a-z]+@"
_FIRST_LAST = r"^[a-z]+\.[a-z]+@"

_DOMAIN_OVERRIDES: dict[str, dict] = {
    "nytimes.com": {
        "personal_patterns": [_FIRST, _FIRST_LAST],
        "alias_patterns": {
            "tips": [r"^tips@", r"^nytnews@"],
            "editorial": [r"^letters@", r"^opinion@"],
        },
        "notes": "NYTimes typically uses firstname@ or firstname.lastname@ for reporters",
    },
    "wsj.com": {
        "personal_patterns": [_FIRST_LAST],
        "alias_patterns": {"tips": [r"^tips@", r"^wsjnews@"], "press": [r"^press@"]},
        "notes": "WSJ uses firstname.lastname@ format consistently",
    },
    "washingtonpost.com": {
        "personal_patterns": [_FIRST, _FIRST_LAST],
        "alias_patterns": {"tips": [r"^tips@", r"^wpnews@"], "editorial": [r"^letters@"]},
        "notes": "Washington Post uses various personal formats",
    },
    "reuters.com": {
        "personal_patterns": [_FIRST_LAST],
        "alias_patterns": {"tips": [r"^tips@", r"^newsroom@"], "press": [r"^media@"]},
        "notes": "Reuters uses firstname.lastname@ format",
    },
    "bloomberg.com": {
        "personal_patterns": [_FIRST, _FIRST_LAST],
        "alias_patterns": {"tips": [r"^tips@", r"^news@"], "press": [r"^press@"]},
        "notes": "Bloomberg uses firstname@ or firstname.lastname@",
    },
}


class EmailPattern(_RulesModel):
    """One row of the email classification table."""

    pattern: re.Pattern[str]
    type: EmailType
    alias_type: AliasType | None = None
    priority: Priority
    confidence: float = Field(ge=0.0, le=1.0)
    description: str


class DomainOverride(_RulesModel):
    """Outlet-specific email conventions."""

    personal_patterns: list[re.Pattern[str]] = Field(default_factory=list)
    alias_patterns: dict[AliasType, list[re.Pattern[str]]] = Field(default_factory=dict)
    notes: str = ""


class EmailScoring(_RulesModel):
    domain_personal_confidence: float = 0.95
    domain_alias_confidence: float = 0.9
    # Fallback heuristics when no pattern matches
    unknown_confidence: float = 0.3
    dotted_personal_confidence: float = 0.6
    dotted_personal_min_length: int = 4
    short_generic_confidence: float = 0.7
    short_generic_max_length: int = 3
    # calculate_email_score
    priority_multipliers: dict[Priority, float] = Field(
        default_factory=lambda: {Priority.high: 1.5, Priority.medium: 1.0, Priority.low: 0.5}
    )
    type_bonuses: dict[EmailType, float] = Field(
        default_factory=lambda: {
            EmailType.personal: 50,
            EmailType.department: 15,
            EmailType.generic: -20,
            EmailType.unknown: -30,
        }
    )
    alias_bonuses: dict[AliasType, float] = Field(
        default_factory=lambda: {AliasType.press: 30, AliasType.tips: 20}
    )
    alias_default_bonus: float = 10


class EmailRules(_RulesModel):
    patterns: list[EmailPattern] = Field(
        default_factory=lambda: [
            EmailPattern(
                pattern=p,
                type=t,
                alias_type=a,
                priority=pr,
                confidence=c,
                description=d,
            )
            for p, t, a, pr, c, d in _EMAIL_PATTERNS
        ]
    )
    domain_overrides: dict[str, DomainOverride] = Field(
        default_factory=lambda: {
            domain: DomainOverride.model_validate(data) for domain, data in _DOMAIN_OVERRIDES.items()
        }
    )
    scoring: EmailScoring = Field(default_factory=EmailScoring)


# =============================================================================
# Syndication tables
# =============================================================================


class SyndicationNetwork(_RulesModel):
    name: str
    patterns: list[re.Pattern[str]] = Field(default_factory=list)
    indicators: list[str] = Field(default_factory=list)  # Case-sensitive substrings
    canonical_domains: list[str] = Field(default_factory=list)


_SYNDICATION_NETWORKS: list[dict] = [
    {
        "name": "Associated Press",
        "patterns": [r"ap\.org", r"(?i)associated\s*press", r"(?i)\(ap\)"],
        "indicators": ["AP", "Associated Press", "The Associated Press"],
        "canonical_domains": ["apnews.com", "ap.org"],
    },
    {
        "name": "Reuters",
        "patterns": [r"reuters\.com", r"(?i)reuters"],
        "indicators": ["Reuters", "REUTERS"],
        "canonical_domains": ["reuters.com"],
    },
    {
        "name": "Bloomberg",
        "patterns": [r"bloomberg\.com", r"(?i)bloomberg"],
        "indicators": ["Bloomberg", "BLOOMBERG"],
        "canonical_domains": ["bloomberg.com"],
    },
    {
        "name": "Tribune Content Agency",
        "patterns": [r"tribunecontentagency\.com", r"(?i)tribune"],
        "indicators": ["Tribune Content Agency", "TCA"],
        "canonical_domains": ["tribunecontentagency.com"],
    },
    {
        "name": "Gannett",
        "patterns": [r"gannett\.com", r"usatoday\.com"],
        "indicators": ["USA TODAY", "Gannett"],
        "canonical_domains": ["usatoday.com"],
    },
    {
        "name": "McClatchy",
        "patterns": [r"mcclatchy\.com"],
        "indicators": ["McClatchy"],
        "canonical_domains": ["mcclatchy.com"],
    },
    {
        "name": "Hearst",
        "patterns": [r"hearst\.com", r"sfgate\.com", r"chron\.com"],
        "indicators": ["Hearst", "SF Gate", "Houston Chronicle"],
        "canonical_domains": ["hearst.com"],
    },
]


class SyndicationIndicators(_RulesModel):
    """Text patterns that suggest republished wire copy."""

    byline_patterns: list[re.Pattern[str]] = Field(
        default_factory=lambda: [
            r"(?i)\(AP\)",
            r"(?i)\(Reuters\)",
            r"(?i)\(Bloomberg\)",
            r"(?i)Associated Press",
            r"(?i)Tribune Content Agency",
            r"\bAP\b",
            r"\bReuters\b",
            r"\bBloomberg\b",
        ]
    )
    content_patterns: list[re.Pattern[str]] = Field(
        default_factory=lambda: [
            r"(?i)originally published",
            r"(?i)first appeared",
            r"(?i)republished",
            r"(?i)syndicated",
            r"(?i)distributed by",
            r"(?i)wire service",
            r"(?i)news service",
        ]
    )
    copyright_patterns: list[re.Pattern[str]] = Field(
        default_factory=lambda: [
            r"(?i)©.*Associated Press",
            r"(?i)©.*Reuters",
            r"(?i)©.*Bloomberg",
            r"(?i)©.*Tribune",
            r"(?i)copyright.*AP",
        ]
    )
    url_patterns: list[re.Pattern[str]] = Field(
        default_factory=lambda: [
            r"(?i)/ap/",
            r"(?i)/reuters/",
            r"(?i)/bloomberg/",
            r"(?i)/wire/",
            r"(?i)/syndicated/",
            r"(?i)/national/",
        ]
    )


class SyndicationScoring(_RulesModel):
    # Verdict
    canonical_weight: float = 0.4
    network_weight: float = 0.3
    pattern_weight: float = 0.2
    domain_weight: float = 0.1
    duplicate_weight: float = 0.3
    verdict_threshold: float = 0.5
    # A canonical link to another domain is syndication on its own
    decisive_canonical: bool = True
    # So is a second sighting of the same (title, author) pair
    decisive_duplicates: bool = True
    # Canonical signal
    canonical_known_confidence: float = 0.95
    canonical_other_confidence: float = 0.8
    canonical_match_confidence: float = 0.9
    # Network signal
    network_pattern_score: float = 0.3
    network_indicator_score: float = 0.4
    network_domain_score: float = 0.5
    # Content pattern signal
    byline_pattern_score: float = 0.4
    content_pattern_score: float = 0.3
    copyright_pattern_score: float = 0.5
    url_pattern_score: float = 0.3
    pattern_presence_threshold: float = 0.3
    # Domain reputation signal
    heavy_domain_confidence: float = 0.8
    subdomain_confidence: float = 0.6
    not_heavy_confidence: float = 0.7
    # Duplicate signal
    duplicate_confidence: float = 0.9
    first_sighting_confidence: float = 0.8
    primary_source_confidence: float = 0.9
    fallback_source_confidence: float = 0.6
    # Orchestrator: content is skipped above this confidence
    skip_threshold: float = 0.7


class SyndicationRules(_RulesModel):
    networks: list[SyndicationNetwork] = Field(
        default_factory=lambda: [SyndicationNetwork.model_validate(n) for n in _SYNDICATION_NETWORKS]
    )
    indicators: SyndicationIndicators = Field(default_factory=SyndicationIndicators)
    heavy_domains: list[str] = Field(
        default_factory=lambda: [
            "yahoo.com",
            "msn.com",
            "aol.com",
            "marketwatch.com",
            "businessinsider.com",
            "huffpost.com",
            "usatoday.com",
        ]
    )
    subdomain_patterns: list[re.Pattern[str]] = Field(
        default_factory=lambda: [r"news\.", r"wire\.", r"syndicated\.", r"ap\.", r"reuters\."]
    )
    primary_source_domains: list[str] = Field(
        default_factory=lambda: [
            "apnews.com",
            "reuters.com",
            "bloomberg.com",
            "nytimes.com",
            "wsj.com",
            "washingtonpost.com",
        ]
    )
    outlet_names: dict[str, str] = Field(
        default_factory=lambda: {
            "nytimes.com": "The New York Times",
            "wsj.com": "The Wall Street Journal",
            "washingtonpost.com": "The Washington Post",
            "reuters.com": "Reuters",
            "bloomberg.com": "Bloomberg",
            "apnews.com": "Associated Press",
            "usatoday.com": "USA Today",
        }
    )
    scoring: SyndicationScoring = Field(default_factory=SyndicationScoring)


# =============================================================================
# Beat tables
# =============================================================================

_SECTION_BEAT_MAPPINGS: dict[str, list[str]] = {
    # Technology
    "tech": ["technology"],
    "technology": ["technology"],
    "innovation": ["technology", "innovation"],
    "startups": ["startups", "technology"],
    "ai": ["artificial intelligence", "technology"],
    "cybersecurity": ["cybersecurity", "technology"],
    "fintech": ["fintech", "finance", "technology"],
    # Business
    "business": ["business"],
    "finance": ["finance", "business"],
    "markets": ["markets", "finance"],
    "economy": ["economy", "business"],
    "earnings": ["earnings", "finance"],
    "ipo": ["ipo", "finance"],
    "mergers": ["mergers and acquisitions", "business"],
    "ma": ["mergers and acquisitions", "business"],
    # Industry
    "healthcare": ["healthcare"],
    "biotech": ["biotechnology", "healthcare"],
    "pharma": ["pharmaceuticals", "healthcare"],
    "energy": ["energy"],
    "oil": ["oil and gas", "energy"],
    "renewable": ["renewable energy", "energy"],
    "automotive": ["automotive"],
    "retail": ["retail"],
    "real-estate": ["real estate"],
    "realestate": ["real estate"],
    # Media and entertainment
    "media": ["media"],
    "entertainment": ["entertainment"],
    "gaming": ["gaming", "entertainment"],
    "sports": ["sports"],
    "music": ["music", "entertainment"],
    "film": ["film", "entertainment"],
    "tv": ["television", "entertainment"],
    # Politics and policy
    "politics": ["politics"],
    "policy": ["policy", "politics"],
    "government": ["government", "politics"],
    "regulation": ["regulation", "policy"],
    "congress": ["congress", "politics"],
    "senate": ["senate", "politics"],
    "house": ["house of representatives", "politics"],
    # Science and research
    "science": ["science"],
    "research": ["research", "science"],
    "climate": ["climate change", "environment"],
    "environment": ["environment"],
    "space": ["space", "science"],
    "medical": ["medical", "healthcare"],
    # Lifestyle and culture
    "lifestyle": ["lifestyle"],
    "culture": ["culture"],
    "food": ["food", "lifestyle"],
    "travel": ["travel", "lifestyle"],
    "fashion": ["fashion", "lifestyle"],
    "wellness": ["wellness", "lifestyle"],
}

_KEYWORD_BEAT_PATTERNS: dict[str, list[str]] = {
    "artificial intelligence": [
        r"(?i)\b(AI|artificial intelligence|machine learning|ML|deep learning|neural networks?"
        r"|LLM|GPT|chatbot|automation)\b"
    ],
    "cybersecurity": [
        r"(?i)\b(cybersecurity|cyber security|hacking|breach|malware|ransomware|phishing"
        r"|data protection|privacy)\b"
    ],
    "cryptocurrency": [
        r"(?i)\b(crypto|cryptocurrency|bitcoin|ethereum|blockchain|DeFi|NFT|web3|digital currency)\b"
    ],
    "climate change": [
        r"(?i)\b(climate change|global warming|carbon|emissions|sustainability|renewable"
        r"|green energy|ESG)\b"
    ],
    "remote work": [
        r"(?i)\b(remote work|work from home|WFH|hybrid work|distributed teams|digital nomad)\b"
    ],
    "supply chain": [
        r"(?i)\b(supply chain|logistics|shipping|manufacturing|inventory|procurement)\b"
    ],
}

_CONTEXT_INDICATORS: dict[str, list[str]] = {
    "technology": ["startup", "innovation", "digital", "software", "platform", "app", "tech"],
    "finance": ["investment", "funding", "valuation", "IPO", "revenue", "profit", "market"],
    "healthcare": ["patient", "treatment", "clinical", "medical", "hospital", "drug", "therapy"],
    "politics": ["election", "vote", "campaign", "policy", "legislation", "government", "congress"],
    "business": ["company", "corporate", "CEO", "executive", "strategy", "growth", "merger"],
}

_BYLINE_BEAT_PATTERNS: list[tuple[str, str]] = [
    (r"(?i)technology|tech", "technology"),
    (r"(?i)business|finance", "business"),
    (r"(?i)politics|political", "politics"),
    (r"(?i)health|medical", "healthcare"),
    (r"(?i)sports", "sports"),
    (r"(?i)entertainment", "entertainment"),
    (r"(?i)science", "science"),
]


class BylineBeatPattern(_RulesModel):
    pattern: re.Pattern[str]
    beat: str


class BeatScoring(_RulesModel):
    section_exact_confidence: float = 0.9
    section_exact_weight: float = 10
    section_partial_confidence: float = 0.7
    section_partial_weight: float = 8
    keyword_confidence: float = 0.6
    keyword_weight: float = 5
    context_base_confidence: float = 0.4
    context_hit_confidence: float = 0.1
    context_min_hits: int = 2
    context_weight: float = 3
    byline_confidence: float = 0.5
    byline_weight: float = 4
    primary_threshold: float = 5
    max_primary: int = 3
    secondary_threshold: float = 2
    max_secondary: int = 5
    max_source_weight: float = 10
    # merge_beat_analyses
    merge_primary_weight: float = 10
    merge_secondary_weight: float = 5
    merge_secondary_discount: float = 0.8


class BeatRules(_RulesModel):
    section_mappings: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in _SECTION_BEAT_MAPPINGS.items()}
    )
    keyword_patterns: dict[str, list[re.Pattern[str]]] = Field(
        default_factory=lambda: {k: list(v) for k, v in _KEYWORD_BEAT_PATTERNS.items()}
    )
    context_indicators: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in _CONTEXT_INDICATORS.items()}
    )
    byline_patterns: list[BylineBeatPattern] = Field(
        default_factory=lambda: [
            BylineBeatPattern(pattern=p, beat=b) for p, b in _BYLINE_BEAT_PATTERNS
        ]
    )
    scoring: BeatScoring = Field(default_factory=BeatScoring)


# =============================================================================
# Freelancer tables
# =============================================================================


class FrequencyTier(_RulesModel):
    """Articles-per-month floor (exclusive) and the relationship score it earns."""

    above: float
    score: float


class FreelancerScoring(_RulesModel):
    # Freelancer status
    bio_hit: float = 0.3
    title_hit: float = 0.25
    personal_email: float = 0.2
    multi_outlet_base: float = 0.3
    multi_outlet_step: float = 0.1
    irregular_publishing: float = 0.2
    social_hit: float = 0.15
    freelancer_threshold: float = 0.6
    irregular_max_gap_days: float = 60
    irregular_min_gap_days: float = 3
    # Outlet relationship
    email_domain_match: float = 0.4
    email_domain_evidence_confidence: float = 0.9
    title_mention: float = 0.3
    title_mention_evidence_confidence: float = 0.8
    regular_frequency: float = 4
    frequency_tiers: list[FrequencyTier] = Field(
        default_factory=lambda: [
            FrequencyTier(above=8, score=0.4),
            FrequencyTier(above=4, score=0.3),
            FrequencyTier(above=1, score=0.2),
            FrequencyTier(above=0, score=0.1),
        ]
    )
    # Activity level
    high_activity_frequency: float = 4
    high_activity_recent: int = 2
    medium_activity_frequency: float = 1
    # Recency
    decay_days: float = 30
    very_recent_boost: float = 1.5
    consistent_recent_bylines: int = 2
    consistent_boost: float = 1.2
    stale_penalty: float = 0.5
    activity_multipliers: dict[str, float] = Field(
        default_factory=lambda: {"high": 1.3, "medium": 1.0, "low": 0.7}
    )
    # Primary outlet
    primary_recency_weight: float = 0.6
    primary_confidence_weight: float = 0.4
    primary_threshold: float = 0.3
    # Strategy and pattern
    diversified_threshold: float = 0.7
    focused_recency_threshold: float = 0.7
    well_connected_outlets: int = 3
    increasing_ratio: float = 0.8
    sporadic_ratio: float = 0.5


class FreelancerRules(_RulesModel):
    bio_patterns: list[re.Pattern[str]] = Field(
        default_factory=lambda: [
            r"(?i)freelance",
            r"(?i)independent",
            r"(?i)contributor",
            r"(?i)writes for",
            r"(?i)bylines in",
            r"(?i)work has appeared in",
            r"(?i)published in",
            r"(?i)covers .+ for multiple",
        ]
    )
    title_patterns: list[re.Pattern[str]] = Field(
        default_factory=lambda: [
            r"(?i)freelance",
            r"(?i)independent",
            r"(?i)contributor",
            r"(?i)correspondent",
            r"(?i)stringer",
        ]
    )
    email_patterns: list[re.Pattern[str]] = Field(
        default_factory=lambda: [
            r"(?i)@gmail\.",
            r"(?i)@yahoo\.",
            r"(?i)@hotmail\.",
            r"(?i)@outlook\.",
            r"(?i)@icloud\.",
        ]
    )
    social_patterns: list[re.Pattern[str]] = Field(
        default_factory=lambda: [
            r"(?i)freelance",
            r"(?i)independent journalist",
            r"(?i)writes for",
            r"(?i)bylines:",
        ]
    )
    scoring: FreelancerScoring = Field(default_factory=FreelancerScoring)


# =============================================================================
# Orchestrator weights
# =============================================================================


class OverallScoring(_RulesModel):
    beat_weight: float = 30
    email_weight: float = 25
    freelancer_weight: float = 20
    recency_weight: float = 25
    active_recency: float = 0.8
    inactive_recency: float = 0.3
    default_recency: float = 0.6
    low_beat_confidence: float = 0.6
    section_beat_confidence: float = 0.9
    multiple_contacts_confidence: float = 0.8
    syndicated_batch_confidence: float = 0.9


# =============================================================================
# Rule set
# =============================================================================


class HeuristicRules(_RulesModel):
    """Complete, versioned rule set for every analyzer."""

    version: str = RULES_VERSION
    email: EmailRules = Field(default_factory=EmailRules)
    syndication: SyndicationRules = Field(default_factory=SyndicationRules)
    beat: BeatRules = Field(default_factory=BeatRules)
    freelancer: FreelancerRules = Field(default_factory=FreelancerRules)
    overall: OverallScoring = Field(default_factory=OverallScoring)


@lru_cache
def default_rules() -> HeuristicRules:
    """Get the cached built-in rule set."""
    return HeuristicRules()


def load_rules(path: Path | str | None = None) -> HeuristicRules:
    """Load a rule set from a JSON file.

    Args:
        path: JSON file to read. ``None`` returns the built-in rules.

    Returns:
        Validated HeuristicRules.

    Raises:
        RulesError: If the file cannot be read, parsed or validated.
    """
    if path is None:
        return default_rules()

    path = Path(path)
    try:
        raw = orjson.loads(path.read_bytes())
    except FileNotFoundError as e:
        raise RulesError(f"Rules file not found: {path}") from e
    except OSError as e:
        raise RulesError(f"Cannot read rules file {path}: {e}") from e
    except orjson.JSONDecodeError as e:
        raise RulesError(f"Rules file {path} is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise RulesError(f"Rules file {path} must contain a JSON object")

    try:
        rules = HeuristicRules.model_validate(raw)
    except ValidationError as e:
        raise RulesError(f"Invalid rules file {path}: {e}") from e

    logger.info("Heuristic rules loaded", path=str(path), version=rules.version)
    return rules
