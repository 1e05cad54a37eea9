"""Unit tests for the picks CLI."""

import re
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest
from picks_cli.main import app
from picks_odds.cache import TierWriteResult
from picks_odds.exceptions import CacheTierError
from picks_odds.scheduling import RefreshCadence, RefreshDecision
from picks_odds.service import BatchRefreshResult
from typer.testing import CliRunner

from tests.test_helpers import make_odds


def strip_ansi(text: str) -> str:
    """Strip ANSI escape codes from text (Rich output formatting)."""
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


@pytest.fixture
def cli_runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def no_side_effects():
    """Keep CLI tests away from log files and the database engine."""
    with (
        patch("picks_cli.main.configure_logging"),
        patch("picks_cli.commands.odds.close_db", AsyncMock()),
        patch("picks_cli.commands.cache.close_db", AsyncMock()),
    ):
        yield


def _runtime_with(service):
    @asynccontextmanager
    async def _runtime(settings=None, **kwargs):
        yield service

    return _runtime


class TestOddsCommands:
    def test_get_prints_lines(self, cli_runner):
        odds = make_odds(
            "Kansas City Chiefs", "Baltimore Ravens", datetime(2024, 9, 6, 0, 20, tzinfo=UTC)
        )
        service = Mock()
        service.get_record = AsyncMock(return_value=odds)

        with patch("picks_cli.commands.odds.freshness_runtime", _runtime_with(service)):
            result = cli_runner.invoke(app, ["odds", "get", "game-1", "--force"])

        output = strip_ansi(result.output)
        assert result.exit_code == 0, output
        assert "Baltimore Ravens @ Kansas City Chiefs" in output
        assert "47.5" in output
        service.get_record.assert_awaited_once_with("game-1", force_refresh=True)

    def test_get_without_odds_exits_nonzero(self, cli_runner):
        service = Mock()
        service.get_record = AsyncMock(return_value=None)

        with patch("picks_cli.commands.odds.freshness_runtime", _runtime_with(service)):
            result = cli_runner.invoke(app, ["odds", "get", "game-1"])

        assert result.exit_code == 1
        assert "No odds available" in strip_ansi(result.output)

    def test_refresh_reports_errors(self, cli_runner):
        service = Mock()
        service.refresh_batch = AsyncMock(
            return_value=BatchRefreshResult(updated_count=2, errors=["No odds found for g3"])
        )

        with patch("picks_cli.commands.odds.freshness_runtime", _runtime_with(service)):
            result = cli_runner.invoke(app, ["odds", "refresh", "--season", "2024", "--week", "3"])

        output = strip_ansi(result.output)
        assert result.exit_code == 0, output
        assert "Updated 2 games" in output
        assert "No odds found for g3" in output
        service.refresh_batch.assert_awaited_once_with(2024, 3)

    def test_refresh_failure_exits_nonzero(self, cli_runner):
        @asynccontextmanager
        async def _broken_runtime(settings=None, **kwargs):
            raise ConnectionError("database unavailable")
            yield

        with patch("picks_cli.commands.odds.freshness_runtime", _broken_runtime):
            result = cli_runner.invoke(app, ["odds", "refresh", "--season", "2024", "--week", "3"])

        assert result.exit_code == 1
        assert "Refresh failed" in strip_ansi(result.output)


class TestCacheCommands:
    def test_invalidate_tags(self, cli_runner):
        cache = Mock()
        cache.invalidate_by_tags = AsyncMock(return_value=TierWriteResult())

        with patch("picks_cli.commands.cache._new_cache", return_value=cache):
            result = cli_runner.invoke(app, ["cache", "invalidate-tags", "week-2024-3", "odds"])

        assert result.exit_code == 0, result.output
        cache.invalidate_by_tags.assert_awaited_once_with(["week-2024-3", "odds"])

    def test_degraded_invalidate_exits_nonzero(self, cli_runner):
        cache = Mock()
        cache.invalidate = AsyncMock(return_value=TierWriteResult(persistent_error="timeout"))

        with patch("picks_cli.commands.cache._new_cache", return_value=cache):
            result = cli_runner.invoke(app, ["cache", "invalidate", "odds:game:1"])

        assert result.exit_code == 1
        assert "timeout" in strip_ansi(result.output)

    def test_health_degraded_exits_nonzero(self, cli_runner):
        cache = Mock()
        cache.get_health_check = AsyncMock(
            return_value={
                "status": "degraded",
                "memory_cache": {"items": 0, "max_items": 1000, "usage": 0, "max_usage": 52428800},
                "persistent_cache": {"items": None},
            }
        )

        with patch("picks_cli.commands.cache._new_cache", return_value=cache):
            result = cli_runner.invoke(app, ["cache", "health"])

        assert result.exit_code == 1
        assert "degraded" in strip_ansi(result.output)

    def test_stats_shows_persistent_totals(self, cli_runner):
        store = Mock()
        store.summary = AsyncMock(return_value={"items": 12, "expired": 3, "total_hits": 1450})

        with patch("picks_cli.commands.cache.DatabaseCacheStore", return_value=store):
            result = cli_runner.invoke(app, ["cache", "stats"])

        output = strip_ansi(result.output)
        assert result.exit_code == 0, output
        assert "12" in output
        assert "1,450" in output

    def test_stats_database_unavailable(self, cli_runner):
        store = Mock()
        store.summary = AsyncMock(side_effect=CacheTierError("cache summary failed: refused"))

        with patch("picks_cli.commands.cache.DatabaseCacheStore", return_value=store):
            result = cli_runner.invoke(app, ["cache", "stats"])

        assert result.exit_code == 1
        assert "refused" in strip_ansi(result.output)


class TestScheduleCommand:
    def test_shows_due_weeks(self, cli_runner):
        scheduler = Mock()
        scheduler.decide = AsyncMock(
            return_value=RefreshDecision(
                should_refresh=True,
                reason="1 week(s) due (game_day cadence)",
                next_check=datetime(2024, 9, 8, 17, 5, tzinfo=UTC),
                cadence=RefreshCadence.GAME_DAY,
                weeks=((2024, 1),),
            )
        )

        with patch("picks_cli.commands.odds.RefreshScheduler", return_value=scheduler):
            result = cli_runner.invoke(app, ["odds", "schedule"])

        output = strip_ansi(result.output)
        assert result.exit_code == 0, output
        assert "2024 week 1" in output
        assert "game_day" in output

    def test_database_error_exits_nonzero(self, cli_runner):
        scheduler = Mock()
        scheduler.decide = AsyncMock(side_effect=ConnectionError("database unavailable"))

        with patch("picks_cli.commands.odds.RefreshScheduler", return_value=scheduler):
            result = cli_runner.invoke(app, ["odds", "schedule"])

        assert result.exit_code == 1
        assert "database unavailable" in strip_ansi(result.output)
