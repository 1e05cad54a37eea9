"""Tests for adaptive cache lifetimes."""

from datetime import UTC, datetime, timedelta

import pytest
from picks_odds.freshness import (
    FreshnessTier,
    calculate_freshness_tier,
    calculate_ttl,
    hours_until_game,
)


class TestCalculateTtl:
    """TTL step function keyed on hours until kickoff."""

    @pytest.mark.parametrize(
        ("hours", "expected"),
        [
            (0.5, 300),
            (1, 300),
            (3, 900),
            (6, 900),
            (12, 3600),
            (24, 3600),
            (48, 21600),
            (72, 21600),
            (100, 86400),
        ],
    )
    def test_ttl_table(self, hours, expected):
        assert calculate_ttl(hours) == expected

    def test_started_game_uses_shortest_ttl(self):
        assert calculate_ttl(-2.0) == 300

    def test_just_past_boundary_moves_to_next_bucket(self):
        assert calculate_ttl(1.0001) == 900
        assert calculate_ttl(72.01) == 86400


class TestFreshnessTier:
    """Tier classification and per-tier lifetimes."""

    def test_tier_boundaries(self):
        assert calculate_freshness_tier(1.0) == FreshnessTier.IMMINENT
        assert calculate_freshness_tier(5.9) == FreshnessTier.GAME_DAY
        assert calculate_freshness_tier(23) == FreshnessTier.PROXIMITY
        assert calculate_freshness_tier(50) == FreshnessTier.UPCOMING
        assert calculate_freshness_tier(200) == FreshnessTier.DISTANT

    def test_ttls_increase_with_distance(self):
        ttls = [tier.ttl_seconds for tier in FreshnessTier]
        assert ttls == sorted(ttls)
        assert FreshnessTier.DISTANT.ttl_seconds == 24 * 60 * 60


class TestHoursUntilGame:
    def test_future_game(self):
        now = datetime(2024, 9, 8, 12, 0, tzinfo=UTC)
        assert hours_until_game(now + timedelta(minutes=30), now) == pytest.approx(0.5)

    def test_started_game_is_negative(self):
        now = datetime(2024, 9, 8, 12, 0, tzinfo=UTC)
        assert hours_until_game(now - timedelta(hours=2), now) == pytest.approx(-2.0)

    def test_naive_game_date_treated_as_utc(self):
        now = datetime(2024, 9, 8, 12, 0, tzinfo=UTC)
        naive = datetime(2024, 9, 10, 12, 0)
        assert hours_until_game(naive, now) == pytest.approx(48.0)
