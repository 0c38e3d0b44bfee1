"""
Unit tests for heartbeat-derived device status and uptime.

Tests:
- Status thresholds, including the exact 5 and 15 minute boundaries
- Clock skew (heartbeat stamped in the future)
- Uptime estimate and formatting
- Summary counts
"""

from datetime import datetime, timedelta

import pytest

from api.services.device_status import (
    StatusThresholds,
    age_minutes,
    derive_status,
    estimate_uptime_seconds,
    format_uptime,
    summarize,
)
from db.enums import HeartbeatStatus

NOW = datetime(2024, 6, 1, 12, 0, 0)
THRESHOLDS = StatusThresholds(online_minutes=5, problematic_minutes=15)


def _seen(minutes_ago: float) -> datetime:
    return NOW - timedelta(minutes=minutes_ago)


# ============================================================================
# Status derivation
# ============================================================================

class TestDeriveStatus:
    """Tests for derive_status."""

    @pytest.mark.parametrize(
        "minutes_ago,expected",
        [
            (0, HeartbeatStatus.ONLINE),
            (4.99, HeartbeatStatus.ONLINE),
            (5, HeartbeatStatus.ONLINE),
            (5.01, HeartbeatStatus.PROBLEMATIC),
            (10, HeartbeatStatus.PROBLEMATIC),
            (15, HeartbeatStatus.PROBLEMATIC),
            (15.01, HeartbeatStatus.OFFLINE),
            (60 * 24 * 3, HeartbeatStatus.OFFLINE),
        ],
    )
    def test_thresholds(self, minutes_ago, expected):
        """Boundaries belong to the less severe state."""
        assert derive_status(_seen(minutes_ago), NOW, THRESHOLDS) == expected

    def test_future_heartbeat_is_online(self):
        """A heartbeat slightly ahead of the server clock counts as fresh."""
        assert derive_status(NOW + timedelta(seconds=30), NOW, THRESHOLDS) == HeartbeatStatus.ONLINE

    def test_custom_thresholds(self):
        strict = StatusThresholds(online_minutes=1, problematic_minutes=2)
        assert derive_status(_seen(1.5), NOW, strict) == HeartbeatStatus.PROBLEMATIC
        assert derive_status(_seen(3), NOW, strict) == HeartbeatStatus.OFFLINE

    def test_defaults_come_from_settings(self):
        assert derive_status(_seen(6), NOW) == HeartbeatStatus.PROBLEMATIC

    def test_inverted_thresholds_rejected(self):
        with pytest.raises(ValueError):
            StatusThresholds(online_minutes=20, problematic_minutes=10)

    def test_age_minutes_is_fractional(self):
        assert age_minutes(NOW - timedelta(seconds=90), NOW) == pytest.approx(1.5)


# ============================================================================
# Uptime
# ============================================================================

class TestUptime:
    """Tests for the uptime estimate."""

    def test_count_times_interval(self):
        assert estimate_uptime_seconds(120, interval_seconds=30) == 3600

    def test_default_interval_is_thirty_seconds(self):
        assert estimate_uptime_seconds(2) == 60

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            estimate_uptime_seconds(-1)

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0h 0m"),
            (59, "0h 0m"),
            (60, "0h 1m"),
            (7260, "2h 1m"),
            (2880 * 30, "24h 0m"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_uptime(seconds) == expected


# ============================================================================
# Summary
# ============================================================================

class TestSummarize:

    def test_counts_each_status(self):
        summary = summarize(
            [
                HeartbeatStatus.ONLINE,
                HeartbeatStatus.ONLINE,
                HeartbeatStatus.PROBLEMATIC,
                HeartbeatStatus.OFFLINE,
            ]
        )
        assert summary == {"total": 4, "online": 2, "problematic": 1, "offline": 1}

    def test_empty(self):
        assert summarize([]) == {"total": 0, "online": 0, "problematic": 0, "offline": 0}
