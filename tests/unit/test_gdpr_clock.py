"""
Unit tests for the GDPR retention clock.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from app.services.gdpr_clock import GDPRState, RETENTION_DAYS, classify, days_between

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _days_ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


class TestClassify:
    @pytest.mark.parametrize(
        "days, expected",
        [
            (0, GDPRState.ACTIVE),
            (182, GDPRState.ACTIVE),
            (183, GDPRState.STALE),
            (365, GDPRState.STALE),
            (366, GDPRState.AT_RISK),
            (730, GDPRState.AT_RISK),
            (731, GDPRState.EXPIRED),
        ],
    )
    def test_bucket_boundaries(self, days, expected):
        assert classify(_days_ago(days), NOW).status == expected

    def test_no_contact_date_is_expired(self):
        status = classify(None, NOW)
        assert status.status == GDPRState.EXPIRED
        assert status.label == "No Contact Date"
        assert status.days_since_contact is None
        assert status.days_until_expiry is None

    def test_four_hundred_days(self):
        status = classify(_days_ago(400), NOW)
        assert status.status == GDPRState.AT_RISK
        assert status.label == "At Risk"
        assert status.days_since_contact == 400
        assert status.days_until_expiry == 330

    def test_days_until_expiry_never_negative(self):
        assert classify(_days_ago(RETENTION_DAYS + 50), NOW).days_until_expiry == 0

    def test_accepts_plain_dates(self):
        assert classify(date(2024, 1, 1), date(2025, 2, 4)).status == GDPRState.AT_RISK

    def test_naive_datetimes_are_treated_as_utc(self):
        naive = datetime(2025, 5, 1, 12, 0)
        assert classify(naive, NOW).days_since_contact == 31

    def test_future_contact_date_is_active(self):
        status = classify(NOW + timedelta(days=3), NOW)
        assert status.status == GDPRState.ACTIVE
        assert status.days_since_contact == -3


class TestDaysBetween:
    def test_partial_days_are_floored(self):
        assert days_between(NOW - timedelta(days=1, hours=23), NOW) == 1

    def test_mixed_date_and_datetime(self):
        assert days_between(date(2025, 5, 31), NOW) == 1
