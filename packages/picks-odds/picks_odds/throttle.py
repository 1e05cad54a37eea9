"""Client-side request budget for the rate-limited odds API."""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog
from picks_core.config import ThrottleConfig

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ApiUsageStats:
    """Current request usage against the configured limits."""

    requests_used: int
    requests_remaining: int
    daily_used: int
    monthly_used: int
    reset_date: datetime
    last_request_time: datetime | None
    throttle_active: bool


@dataclass(slots=True)
class _RequestRecord:
    timestamp: datetime
    requests_used: int


class ApiThrottler:
    """
    Tracks upstream requests against monthly, daily and burst limits.

    Monthly and daily limits are scaled by ``safety_threshold`` so a margin
    of the plan is always left for manual use. Counters reset when the UTC
    day or month changes. Usage is held in memory only.
    """

    def __init__(self, config: ThrottleConfig | None = None):
        self.config = config or ThrottleConfig()
        now = datetime.now(UTC)
        self._history: list[_RequestRecord] = []
        self._month_usage = 0
        self._day_usage = 0
        self._current_month = (now.year, now.month)
        self._current_day = now.date()

    @property
    def effective_monthly_limit(self) -> int:
        return math.floor(self.config.monthly_limit * self.config.safety_threshold)

    @property
    def effective_daily_limit(self) -> int:
        return math.floor(self.config.daily_limit * self.config.safety_threshold)

    def can_make_request(self, requests_needed: int = 1) -> bool:
        """Return True if ``requests_needed`` more requests fit every limit."""
        self._roll_counters()

        if self._month_usage + requests_needed > self.effective_monthly_limit:
            logger.warning(
                "throttle_monthly_limit",
                projected=self._month_usage + requests_needed,
                limit=self.effective_monthly_limit,
            )
            return False

        if self._day_usage + requests_needed > self.effective_daily_limit:
            logger.warning(
                "throttle_daily_limit",
                projected=self._day_usage + requests_needed,
                limit=self.effective_daily_limit,
            )
            return False

        recent = self._recent_usage()
        if recent + requests_needed > self.config.burst_limit:
            logger.warning(
                "throttle_burst_limit",
                projected=recent + requests_needed,
                limit=self.config.burst_limit,
            )
            return False

        return True

    def record_request(self, requests_used: int = 1) -> None:
        self._roll_counters()
        now = datetime.now(UTC)

        self._history.append(_RequestRecord(timestamp=now, requests_used=requests_used))
        self._month_usage += requests_used
        self._day_usage += requests_used

        # Only the last day of history is ever consulted
        cutoff = now - timedelta(days=1)
        self._history = [record for record in self._history if record.timestamp >= cutoff]

        logger.info(
            "api_request_recorded",
            requests=requests_used,
            monthly_used=self._month_usage,
            monthly_limit=self.config.monthly_limit,
            daily_used=self._day_usage,
            daily_limit=self.config.daily_limit,
        )

    def get_stats(self) -> ApiUsageStats:
        self._roll_counters()
        throttle_active = (
            self._month_usage >= self.effective_monthly_limit
            or self._day_usage >= self.effective_daily_limit
            or self._recent_usage() >= self.config.burst_limit
        )
        return ApiUsageStats(
            requests_used=self._month_usage,
            requests_remaining=max(0, self.config.monthly_limit - self._month_usage),
            daily_used=self._day_usage,
            monthly_used=self._month_usage,
            reset_date=self._next_month_start(),
            last_request_time=self._history[-1].timestamp if self._history else None,
            throttle_active=throttle_active,
        )

    def get_projected_usage(self) -> dict[str, float | int]:
        """Project this month's usage from the daily average so far."""
        now = datetime.now(UTC)
        days_in_month = calendar.monthrange(now.year, now.month)[1]
        daily_average = self._month_usage / now.day
        return {
            "daily": round(daily_average, 2),
            "monthly": round(daily_average * days_in_month),
            "days_remaining": days_in_month - now.day,
        }

    def reset(self) -> None:
        self._month_usage = 0
        self._day_usage = 0
        self._history = []
        logger.info("throttle_counters_reset")

    def _roll_counters(self) -> None:
        now = datetime.now(UTC)
        if (now.year, now.month) != self._current_month:
            logger.info("throttle_month_rollover", previous_usage=self._month_usage)
            self._month_usage = 0
            self._current_month = (now.year, now.month)
        if now.date() != self._current_day:
            logger.info("throttle_day_rollover", previous_usage=self._day_usage)
            self._day_usage = 0
            self._current_day = now.date()

    def _recent_usage(self) -> int:
        window_start = datetime.now(UTC) - timedelta(seconds=self.config.burst_window_seconds)
        return sum(r.requests_used for r in self._history if r.timestamp >= window_start)

    @staticmethod
    def _next_month_start() -> datetime:
        now = datetime.now(UTC)
        if now.month == 12:
            return datetime(now.year + 1, 1, 1, tzinfo=UTC)
        return datetime(now.year, now.month + 1, 1, tzinfo=UTC)
