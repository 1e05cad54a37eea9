"""Tests for timezone helpers."""

from datetime import UTC, datetime, timedelta, timezone

from picks_core.time import (
    ensure_utc,
    format_kickoff,
    format_timestamp,
    parse_timestamp,
    same_calendar_day,
    to_eastern,
)


def test_ensure_utc_naive_and_aware():
    naive = datetime(2024, 9, 8, 17, 0)
    offset = datetime(2024, 9, 8, 13, 0, tzinfo=timezone(timedelta(hours=-4)))

    assert ensure_utc(naive) == datetime(2024, 9, 8, 17, 0, tzinfo=UTC)
    assert ensure_utc(offset) == datetime(2024, 9, 8, 17, 0, tzinfo=UTC)
    assert ensure_utc(offset).tzinfo == UTC


def test_parse_timestamp_with_z_suffix():
    assert parse_timestamp("2024-09-08T17:00:00Z") == datetime(2024, 9, 8, 17, 0, tzinfo=UTC)


def test_format_timestamp_round_trip():
    value = datetime(2024, 9, 8, 17, 0, tzinfo=UTC)

    assert format_timestamp(value) == "2024-09-08T17:00:00Z"
    assert parse_timestamp(format_timestamp(value)) == value


def test_to_eastern_handles_dst():
    assert to_eastern(datetime(2024, 9, 8, 17, 0, tzinfo=UTC)).hour == 13
    assert to_eastern(datetime(2024, 12, 8, 18, 0, tzinfo=UTC)).hour == 13


class TestSameCalendarDay:
    def test_prime_time_game_crossing_utc_midnight(self):
        # Thursday 8:20pm ET kickoff, reported by the feed as Friday 00:20 UTC
        feed_time = datetime(2024, 9, 6, 0, 20, tzinfo=UTC)
        schedule_time = datetime(2024, 9, 5, 20, 20, tzinfo=timezone(timedelta(hours=-4)))

        assert same_calendar_day(feed_time, schedule_time)

    def test_different_days(self):
        assert not same_calendar_day(
            datetime(2024, 9, 8, 17, 0, tzinfo=UTC), datetime(2024, 9, 9, 17, 0, tzinfo=UTC)
        )


def test_format_kickoff_uses_eastern():
    assert format_kickoff(datetime(2024, 9, 6, 0, 20, tzinfo=UTC)) == "Thu Sep 05 08:20 PM ET"
