"""Rule-based heuristics for media contact discovery."""

from media_heuristics.heuristics import (
    BeatAnalyzer,
    EmailAnalyzer,
    FreelancerAnalyzer,
    HeuristicsIntegration,
    MediaHeuristics,
    SyndicationDetector,
)

__version__ = "1.0.0"

__all__ = [
    "BeatAnalyzer",
    "EmailAnalyzer",
    "FreelancerAnalyzer",
    "HeuristicsIntegration",
    "MediaHeuristics",
    "SyndicationDetector",
    "__version__",
]
