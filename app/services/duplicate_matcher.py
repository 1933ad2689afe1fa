"""
Duplicate candidate detection.

Two records are treated as the same person when their normalised emails or
phone numbers are identical. Matching name plus matching email domain is a
weaker signal (colleagues at the same company share a domain) and is flagged
separately so a human confirms before merging.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from app.utils.identity import email_domain, normalize_email, normalize_name, normalize_phone


class MatchReason(str, enum.Enum):
    EMAIL_EXACT = "email_exact"
    PHONE_EXACT = "phone_exact"
    NAME_AND_DOMAIN = "name_and_domain"


STRONG_REASONS = frozenset({MatchReason.EMAIL_EXACT, MatchReason.PHONE_EXACT})


@dataclass(frozen=True)
class MatchResult:
    is_match: bool
    reasons: frozenset[MatchReason]

    @property
    def is_strong(self) -> bool:
        return bool(self.reasons & STRONG_REASONS)

    @property
    def requires_review(self) -> bool:
        """Only the weak name+domain heuristic fired."""
        return self.is_match and not self.is_strong


def _get(record: Any, key: str) -> Optional[str]:
    if isinstance(record, dict):
        return record.get(key)
    return getattr(record, key, None)


def score(a: Any, b: Any) -> MatchResult:
    """
    Compare two candidate records (ORM objects or dicts with name/email/phone).

    Symmetric: score(a, b) and score(b, a) always agree.

    Example:
        >>> score({"email": " Jo@X.com"}, {"email": "jo@x.com"}).reasons
        frozenset({<MatchReason.EMAIL_EXACT: 'email_exact'>})
    """
    reasons: set[MatchReason] = set()

    email_a = normalize_email(_get(a, "email"))
    email_b = normalize_email(_get(b, "email"))
    if email_a and email_a == email_b:
        reasons.add(MatchReason.EMAIL_EXACT)

    phone_a = normalize_phone(_get(a, "phone"))
    phone_b = normalize_phone(_get(b, "phone"))
    if phone_a and phone_a == phone_b:
        reasons.add(MatchReason.PHONE_EXACT)

    name_a = normalize_name(_get(a, "name"))
    name_b = normalize_name(_get(b, "name"))
    domain_a = email_domain(_get(a, "email"))
    domain_b = email_domain(_get(b, "email"))
    if name_a and name_a == name_b and domain_a and domain_a == domain_b:
        reasons.add(MatchReason.NAME_AND_DOMAIN)

    return MatchResult(is_match=bool(reasons), reasons=frozenset(reasons))


def find_duplicates(candidate: Any, pool: Iterable[Any]) -> list[tuple[Any, MatchResult]]:
    """
    Score ``candidate`` against every record in ``pool``.

    Returns matching records with their results, strong matches first. The
    candidate itself (same ``id``) is skipped.
    """
    candidate_id = _get(candidate, "id")
    matches = []
    for other in pool:
        if candidate_id is not None and _get(other, "id") == candidate_id:
            continue
        result = score(candidate, other)
        if result.is_match:
            matches.append((other, result))
    matches.sort(key=lambda pair: (not pair[1].is_strong, -len(pair[1].reasons)))
    return matches
