"""Heuristic analyzers for media contacts and content.

Submodules:
- email_analyzer: personal / alias / generic email classification
- beat_analyzer: section, keyword and context beat detection
- freelancer_analyzer: staff vs freelancer and outlet relationships
- syndication_detector: wire copy and duplicate detection
- media_heuristics: orchestrator over the four analyzers
- integration: import pipeline helpers
- rules: classification tables and weights as versioned data
"""

from media_heuristics.heuristics.beat_analyzer import BeatAnalyzer
from media_heuristics.heuristics.email_analyzer import EmailAnalyzer
from media_heuristics.heuristics.freelancer_analyzer import FreelancerAnalyzer
from media_heuristics.heuristics.integration import HeuristicsIntegration
from media_heuristics.heuristics.media_heuristics import (
    BeatAnalyzerProtocol,
    EmailAnalyzerProtocol,
    FreelancerAnalyzerProtocol,
    MediaHeuristics,
    SyndicationDetectorProtocol,
)
from media_heuristics.heuristics.rules import HeuristicRules, default_rules, load_rules
from media_heuristics.heuristics.syndication_detector import (
    SyndicationDetector,
    extract_domain,
    rolling_hash,
)

__all__ = [
    "BeatAnalyzer",
    "BeatAnalyzerProtocol",
    "EmailAnalyzer",
    "EmailAnalyzerProtocol",
    "FreelancerAnalyzer",
    "FreelancerAnalyzerProtocol",
    "HeuristicRules",
    "HeuristicsIntegration",
    "MediaHeuristics",
    "SyndicationDetector",
    "SyndicationDetectorProtocol",
    "default_rules",
    "extract_domain",
    "load_rules",
    "rolling_hash",
]
