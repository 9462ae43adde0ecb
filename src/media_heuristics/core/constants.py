"""Application-wide constants.

These are fixed values that don't change between environments.
For configurable values, see config.py Settings. Classification tables and
scoring weights live in heuristics/rules.py.
"""

# ─────────────────────────────────────────────────────────────
# Analysis metadata
# ─────────────────────────────────────────────────────────────
ANALYSIS_VERSION = "1.0.0"

# ─────────────────────────────────────────────────────────────
# Fingerprint store
# ─────────────────────────────────────────────────────────────
DEFAULT_FINGERPRINT_CAPACITY = 10_000  # LRU bound for the in-memory store
DEFAULT_FINGERPRINT_TTL_SECONDS = 86400  # 24 hours (Redis store only)
FINGERPRINT_REDIS_PREFIX = "media_heuristics:fingerprint:"
FINGERPRINT_CONTENT_PREFIX_CHARS = 500  # Only the lead of the body is hashed
TOP_SYNDICATORS_LIMIT = 10

# ─────────────────────────────────────────────────────────────
# Email limits (RFC 5321)
# ─────────────────────────────────────────────────────────────
EMAIL_LOCAL_PART_MAX_LENGTH = 64
EMAIL_DOMAIN_MAX_LENGTH = 253
MAX_ALTERNATIVE_EMAILS = 3

# ─────────────────────────────────────────────────────────────
# Activity windows (days)
# ─────────────────────────────────────────────────────────────
RECENT_WINDOW_DAYS = 90
SHORT_WINDOW_DAYS = 30
YEAR_WINDOW_DAYS = 365
VERY_RECENT_DAYS = 7
STALE_AFTER_DAYS = 180

# ─────────────────────────────────────────────────────────────
# Default thresholds (can be overridden in Settings)
# ─────────────────────────────────────────────────────────────
DEFAULT_SYNDICATION_FILTER_THRESHOLD = 0.7
