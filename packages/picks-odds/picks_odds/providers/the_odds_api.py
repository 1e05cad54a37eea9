"""The Odds API provider for NFL betting lines."""

from __future__ import annotations

import time

import aiohttp
import structlog
from picks_core.api_models import GameOdds, OddsFetchOptions, parse_game_odds
from picks_core.config import APIConfig
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from picks_odds.exceptions import ProviderError, ProviderNotConfiguredError
from picks_odds.providers.base import OddsProvider
from picks_odds.team_names import team_names_match

logger = structlog.get_logger(__name__)


class TheOddsApiProvider(OddsProvider):
    """Client for The Odds API odds endpoint."""

    name = "The Odds API"

    def __init__(self, config: APIConfig | None = None):
        """
        Initialize provider.

        Args:
            config: API configuration (defaults to environment settings)
        """
        self.config = config or APIConfig()
        self.session: aiohttp.ClientSession | None = None
        self._request_count = 0

    async def __aenter__(self) -> TheOddsApiProvider:
        self.session = self._new_session()
        return self

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None

    def _new_session(self) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_seconds)
        return aiohttp.ClientSession(timeout=timeout, headers={"Accept": "application/json"})

    @property
    def request_count(self) -> int:
        """Requests made this period, as tracked by the client."""
        return self._request_count

    def is_configured(self) -> bool:
        return bool(self.config.key)

    def estimate_remaining_quota(self) -> int | None:
        # The API only reports remaining quota on responses, so between
        # requests this is the client-side count against the monthly plan.
        return max(0, self.config.requests_per_month - self._request_count)

    @retry(
        retry=retry_if_exception_type((aiohttp.ClientConnectionError, TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _make_request(self, endpoint: str, params: dict[str, str]) -> list[dict]:
        """
        Make HTTP request with retry logic.

        Raises:
            aiohttp.ClientError: On request failure after retries
        """
        if not self.session:
            self.session = self._new_session()

        url = f"{self.config.base_url}/{endpoint}"
        query = {**params, "apiKey": self.config.key or ""}

        self._request_count += 1
        start_time = time.time()

        async with self.session.get(url, params=query) as response:
            response.raise_for_status()

            remaining = response.headers.get("x-requests-remaining")
            if remaining is not None:
                try:
                    self._request_count = self.config.requests_per_month - int(float(remaining))
                except ValueError:
                    logger.warning("invalid_quota_header", value=remaining)

            data = await response.json()
            logger.info(
                "api_request_success",
                endpoint=endpoint,
                status=response.status,
                elapsed_ms=int((time.time() - start_time) * 1000),
                quota_remaining=remaining,
            )
            return data if isinstance(data, list) else []

    async def fetch_all(self, options: OddsFetchOptions | None = None) -> list[GameOdds]:
        """
        Fetch current odds for every listed game in one request.

        Raises:
            ProviderNotConfiguredError: When no API key is configured
            ProviderError: On HTTP or network failure
        """
        if not self.is_configured():
            raise ProviderNotConfiguredError("The Odds API key is not configured")

        params = {
            "regions": "us",
            "markets": "h2h,spreads,totals",
            "oddsFormat": "american",
            "bookmakers": self.config.default_bookmaker,
        }

        try:
            raw_games = await self._make_request(f"sports/{self.config.sport}/odds/", params)
        except aiohttp.ClientResponseError as e:
            logger.error("api_request_failed", status=e.status, message=e.message)
            raise ProviderError(f"The Odds API fetch failed: HTTP {e.status}: {e.message}") from e
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error("api_request_error", error=str(e))
            raise ProviderError(f"The Odds API fetch failed: {e}") from e

        games = self._parse_games(raw_games)

        if options and options.team_names:
            games = [
                game
                for game in games
                if any(
                    team_names_match(name, game.home_team) or team_names_match(name, game.away_team)
                    for name in options.team_names
                )
            ]

        logger.info("odds_fetched", sport=self.config.sport, games_count=len(games))
        return games

    def _parse_games(self, raw_games: list[dict]) -> list[GameOdds]:
        games: list[GameOdds] = []
        for raw in raw_games:
            try:
                parsed = parse_game_odds(raw, self.name, self.config.default_bookmaker)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("game_odds_parse_failed", game_id=raw.get("id"), error=str(e))
                continue
            if parsed is not None:
                games.append(parsed)
        return games
