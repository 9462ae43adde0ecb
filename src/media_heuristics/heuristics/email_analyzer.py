"""Email classification for media contacts.

Sorts an address into personal, alias, generic, department or unknown:
- An ordered regex table is matched against the lower-cased address
- The highest-confidence match wins (first declared wins a tie)
- Outlet-specific conventions can override the general result
- Addresses nothing matches fall back to simple shape heuristics

Classification never raises for string input.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from media_heuristics.core.constants import (
    EMAIL_DOMAIN_MAX_LENGTH,
    EMAIL_LOCAL_PART_MAX_LENGTH,
    MAX_ALTERNATIVE_EMAILS,
)
from media_heuristics.core.logging import get_logger
from media_heuristics.heuristics.rules import EmailPattern, EmailRules, default_rules
from media_heuristics.models import (
    AliasType,
    EmailAnalysis,
    EmailContext,
    EmailRequest,
    EmailSuggestions,
    EmailType,
    EmailValidation,
    Priority,
    RankedEmail,
)

logger = get_logger(__name__)

_EMAIL_FORMAT = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NO_REPLY = re.compile(r"noreply|no-reply|donotreply", re.IGNORECASE)

# Types that identify a shared mailbox rather than a person
_ROLE_TYPES = frozenset({EmailType.alias, EmailType.generic, EmailType.department})

_SUGGESTION_TEXT: dict[EmailType, tuple[str, str]] = {
    EmailType.alias: (
        "Consider finding a direct reporter email for better response rates",
        "Alias emails may have lower response rates and longer response times",
    ),
    EmailType.generic: (
        "Look for specific department or reporter emails",
        "Generic emails are typically not monitored by editorial staff",
    ),
    EmailType.department: (
        "Good for beat-specific pitches, but personal contacts are preferred",
        "Department emails may route to multiple people",
    ),
    EmailType.personal: (
        "Excellent - direct personal contact",
        "Personal emails typically have the highest response rates",
    ),
    EmailType.unknown: (
        "Verify email format and consider alternative contact methods",
        "Unknown email pattern - may need verification",
    ),
}


@dataclass(frozen=True, slots=True)
class _Classification:
    email_type: EmailType
    alias_type: AliasType | None
    priority: Priority
    confidence: float
    reasoning: str

    @classmethod
    def from_pattern(cls, pattern: EmailPattern) -> _Classification:
        return cls(
            email_type=pattern.type,
            alias_type=pattern.alias_type if pattern.type == EmailType.alias else None,
            priority=pattern.priority,
            confidence=pattern.confidence,
            reasoning=pattern.description,
        )


class EmailAnalyzer:
    """Classifies email addresses and ranks them for outreach."""

    def __init__(self, rules: EmailRules | None = None) -> None:
        self._rules = rules if rules is not None else default_rules().email

    def analyze_email(
        self,
        email: str,
        domain: str | None = None,
        context: EmailContext | None = None,
    ) -> EmailAnalysis:
        """Classify one email address.

        Args:
            email: Address to classify.
            domain: Domain to use for outlet conventions and suggestions.
                Derived from the address when omitted.
            context: Contact details used to suggest personal alternatives.

        Returns:
            EmailAnalysis for the address.
        """
        email_lower = email.lower()
        email_domain = (domain or self._extract_domain(email_lower)).lower()

        best: EmailPattern | None = None
        for pattern in self._rules.patterns:
            if pattern.pattern.search(email_lower) and (
                best is None or pattern.confidence > best.confidence
            ):
                best = pattern

        if best is None:
            classification = self._classify_unknown(email_lower)
        else:
            classification = _Classification.from_pattern(best)
            override = self._match_domain_override(email_lower, email_domain, best)
            if override is not None and override.confidence > classification.confidence:
                classification = override

        logger.debug(
            "Email classified",
            email_type=classification.email_type.value,
            alias_type=classification.alias_type.value if classification.alias_type else None,
            confidence=classification.confidence,
        )

        return EmailAnalysis(
            email_type=classification.email_type,
            alias_type=classification.alias_type,
            confidence=classification.confidence,
            is_direct_contact=classification.email_type == EmailType.personal,
            priority=classification.priority,
            reasoning=classification.reasoning,
            suggestions=self._suggestions(classification.email_type, email_domain, context),
        )

    def analyze_emails(self, requests: Iterable[EmailRequest]) -> list[EmailAnalysis]:
        """Classify a batch of addresses, preserving order."""
        return [self.analyze_email(r.email, r.domain, r.context) for r in requests]

    def calculate_email_score(self, analysis: EmailAnalysis) -> float:
        """Score an analysis for outreach priority (higher is better, never negative)."""
        scoring = self._rules.scoring
        score = analysis.confidence * 100
        score *= scoring.priority_multipliers.get(analysis.priority, 1.0)

        if analysis.email_type == EmailType.alias:
            if analysis.alias_type is not None and analysis.alias_type in scoring.alias_bonuses:
                score += scoring.alias_bonuses[analysis.alias_type]
            else:
                score += scoring.alias_default_bonus
        else:
            score += scoring.type_bonuses.get(analysis.email_type, 0.0)

        return max(0.0, score)

    def rank_emails_by_priority(
        self, analyses: Iterable[tuple[str, EmailAnalysis]]
    ) -> list[RankedEmail]:
        """Sort (email, analysis) pairs by descending score."""
        ranked = [
            RankedEmail(email=email, analysis=analysis, score=self.calculate_email_score(analysis))
            for email, analysis in analyses
        ]
        ranked.sort(key=lambda r: r.score, reverse=True)
        return ranked

    def validate_email(self, email: str) -> EmailValidation:
        """Run structural checks on an address without classifying it."""
        if not _EMAIL_FORMAT.match(email):
            return EmailValidation(
                is_valid=False,
                issues=["Invalid email format"],
                suggestions=["Check email format"],
            )

        issues: list[str] = []
        suggestions: list[str] = []
        local_part, _, domain = email.partition("@")

        if len(local_part) > EMAIL_LOCAL_PART_MAX_LENGTH:
            issues.append(f"Local part too long (>{EMAIL_LOCAL_PART_MAX_LENGTH} characters)")
        if len(domain) > EMAIL_DOMAIN_MAX_LENGTH:
            issues.append(f"Domain too long (>{EMAIL_DOMAIN_MAX_LENGTH} characters)")
        if local_part.startswith(".") or local_part.endswith("."):
            issues.append("Local part cannot start or end with a dot")
        if ".." in local_part:
            issues.append("Local part cannot contain consecutive dots")
        if _NO_REPLY.search(email):
            issues.append("Appears to be a no-reply email")
            suggestions.append("Find an alternative contact email")

        return EmailValidation(is_valid=not issues, issues=issues, suggestions=suggestions)

    # -------------------------------------------------------------------------

    @staticmethod
    def _extract_domain(email: str) -> str:
        _, at, domain = email.rpartition("@")
        return domain if at else ""

    def _match_domain_override(
        self, email: str, domain: str, best: EmailPattern
    ) -> _Classification | None:
        override = self._rules.domain_overrides.get(domain)
        if override is None:
            return None
        scoring = self._rules.scoring

        # Alias conventions are checked first so letters@ is not read as a name
        for alias_type, patterns in override.alias_patterns.items():
            if any(p.search(email) for p in patterns):
                return _Classification(
                    email_type=EmailType.alias,
                    alias_type=alias_type,
                    priority=Priority.high if alias_type == AliasType.press else Priority.medium,
                    confidence=scoring.domain_alias_confidence,
                    reasoning=f"Matches {domain} {alias_type.value} alias pattern",
                )

        # Name patterns must not turn a recognised shared mailbox into a person
        if best.type in _ROLE_TYPES:
            return None

        for pattern in override.personal_patterns:
            if pattern.search(email):
                return _Classification(
                    email_type=EmailType.personal,
                    alias_type=None,
                    priority=Priority.high,
                    confidence=scoring.domain_personal_confidence,
                    reasoning=f"Matches {domain} personal email pattern",
                )
        return None

    def _classify_unknown(self, email: str) -> _Classification:
        scoring = self._rules.scoring
        reasoning = "Unknown pattern - classified based on heuristics"

        if "@" not in email:
            return _Classification(
                EmailType.unknown, None, Priority.low, scoring.unknown_confidence, reasoning
            )

        local_part = email.split("@", 1)[0]
        if "." in local_part and len(local_part) >= scoring.dotted_personal_min_length:
            return _Classification(
                EmailType.personal,
                None,
                Priority.medium,
                scoring.dotted_personal_confidence,
                reasoning,
            )
        if len(local_part) <= scoring.short_generic_max_length or local_part.isdigit():
            return _Classification(
                EmailType.generic, None, Priority.low, scoring.short_generic_confidence, reasoning
            )
        return _Classification(
            EmailType.unknown, None, Priority.low, scoring.unknown_confidence, reasoning
        )

    def _suggestions(
        self, email_type: EmailType, domain: str, context: EmailContext | None
    ) -> EmailSuggestions:
        contact_method, notes = _SUGGESTION_TEXT[email_type]
        alternatives: list[str] = []
        if email_type == EmailType.alias and context is not None and context.contact_name:
            alternatives = self._personal_email_candidates(context.contact_name, domain)
        return EmailSuggestions(
            alternative_emails=alternatives,
            contact_method=contact_method,
            notes=notes,
        )

    @staticmethod
    def _personal_email_candidates(contact_name: str, domain: str) -> list[str]:
        parts = contact_name.lower().split()
        if len(parts) < 2 or not domain:
            return []
        first, last = parts[0], parts[-1]
        candidates = [
            f"{first}.{last}@{domain}",
            f"{first}@{domain}",
            f"{first[0]}.{last}@{domain}",
            f"{first}{last}@{domain}",
            f"{first}_{last}@{domain}",
            f"{first}-{last}@{domain}",
        ]
        return candidates[:MAX_ALTERNATIVE_EMAILS]
