"""
GDPR retention clock.

Candidate data may be kept for two years after the last meaningful contact.
The status buckets drive the GDPR management panel:

    < 183 days       active
    183 - 365 days   stale      (6-12 months)
    366 - 730 days   at_risk    (12-24 months)
    > 730 days       expired    (24 months+, anonymise or delete)

A candidate with no recorded contact date is treated as expired.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

RETENTION_DAYS = 730
STALE_AFTER_DAYS = 183
AT_RISK_AFTER_DAYS = 366


class GDPRState(str, enum.Enum):
    ACTIVE = "active"
    STALE = "stale"
    AT_RISK = "at_risk"
    EXPIRED = "expired"


GDPR_LABELS = {
    GDPRState.ACTIVE: "Active",
    GDPRState.STALE: "Stale",
    GDPRState.AT_RISK: "At Risk",
    GDPRState.EXPIRED: "Expired",
}


@dataclass(frozen=True)
class GDPRStatus:
    status: GDPRState
    label: str
    days_since_contact: Optional[int]
    days_until_expiry: Optional[int]


def _as_utc(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def days_between(earlier: Union[date, datetime], later: Union[date, datetime]) -> int:
    """Whole days elapsed, floored (negative when ``earlier`` is in the future)."""
    if not isinstance(earlier, datetime) and not isinstance(later, datetime):
        return (later - earlier).days
    return (_as_utc(later) - _as_utc(earlier)).days


def classify(
    last_contact_date: Union[date, datetime, None],
    now: Union[date, datetime, None] = None,
) -> GDPRStatus:
    """
    Classify a candidate's contact freshness.

    Args:
        last_contact_date: When the candidate was last contacted (None if never)
        now: Reference instant; defaults to the current UTC time

    Returns:
        GDPRStatus with status, label, days since contact and days until expiry

    Example:
        >>> classify(date(2024, 1, 1), date(2025, 2, 4)).status
        <GDPRState.AT_RISK: 'at_risk'>
    """
    if last_contact_date is None:
        return GDPRStatus(
            status=GDPRState.EXPIRED,
            label="No Contact Date",
            days_since_contact=None,
            days_until_expiry=None,
        )

    if now is None:
        now = datetime.now(timezone.utc)

    days = days_between(last_contact_date, now)

    if days < STALE_AFTER_DAYS:
        state = GDPRState.ACTIVE
    elif days < AT_RISK_AFTER_DAYS:
        state = GDPRState.STALE
    elif days <= RETENTION_DAYS:
        state = GDPRState.AT_RISK
    else:
        state = GDPRState.EXPIRED

    return GDPRStatus(
        status=state,
        label=GDPR_LABELS[state],
        days_since_contact=days,
        days_until_expiry=max(RETENTION_DAYS - days, 0),
    )
