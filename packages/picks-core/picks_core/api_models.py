"""Normalized odds records and conversion utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from picks_core.models import Game
from picks_core.time import ensure_utc, format_timestamp, parse_timestamp


@dataclass(slots=True)
class GameOdds:
    """Betting lines for a single game, as produced by a provider."""

    game_id: str
    home_team: str
    away_team: str
    game_date: datetime
    home_spread: float | None
    away_spread: float | None
    home_moneyline: int | None
    away_moneyline: int | None
    over_under: float | None
    provider: str
    last_update: datetime

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "game_id": self.game_id,
            "home_team": self.home_team,
            "away_team": self.away_team,
            "game_date": format_timestamp(self.game_date),
            "home_spread": self.home_spread,
            "away_spread": self.away_spread,
            "home_moneyline": self.home_moneyline,
            "away_moneyline": self.away_moneyline,
            "over_under": self.over_under,
            "provider": self.provider,
            "last_update": format_timestamp(self.last_update),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameOdds:
        """Inverse of :meth:`to_dict`."""
        return cls(
            game_id=data["game_id"],
            home_team=data["home_team"],
            away_team=data["away_team"],
            game_date=parse_timestamp(data["game_date"]),
            home_spread=data.get("home_spread"),
            away_spread=data.get("away_spread"),
            home_moneyline=data.get("home_moneyline"),
            away_moneyline=data.get("away_moneyline"),
            over_under=data.get("over_under"),
            provider=data["provider"],
            last_update=parse_timestamp(data["last_update"]),
        )

    def for_game(self, game_id: str) -> GameOdds:
        """Return a copy keyed to our own game id instead of the provider's."""
        return GameOdds(
            game_id=game_id,
            home_team=self.home_team,
            away_team=self.away_team,
            game_date=self.game_date,
            home_spread=self.home_spread,
            away_spread=self.away_spread,
            home_moneyline=self.home_moneyline,
            away_moneyline=self.away_moneyline,
            over_under=self.over_under,
            provider=self.provider,
            last_update=self.last_update,
        )


@dataclass(slots=True)
class CachedOdds:
    """GameOdds plus the cache metadata assigned when it was stored."""

    odds: GameOdds
    cached_at: datetime
    ttl_seconds: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "odds": self.odds.to_dict(),
            "cached_at": format_timestamp(self.cached_at),
            "ttl_seconds": self.ttl_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CachedOdds:
        return cls(
            odds=GameOdds.from_dict(data["odds"]),
            cached_at=parse_timestamp(data["cached_at"]),
            ttl_seconds=int(data["ttl_seconds"]),
        )


@dataclass(slots=True)
class OddsFetchOptions:
    """Optional filters applied to a bulk fetch."""

    team_names: list[str] = field(default_factory=list)


def parse_game_odds(
    game_data: dict,
    provider_name: str,
    preferred_bookmaker: str | None = None,
) -> GameOdds | None:
    """
    Convert one event from The Odds API odds endpoint to GameOdds.

    Args:
        game_data: Event dict with ``id``, ``home_team``, ``away_team``,
            ``commence_time`` and a ``bookmakers`` list of markets
        provider_name: Provenance tag stored on the record
        preferred_bookmaker: Bookmaker key to prefer; falls back to the first

    Returns:
        GameOdds, or None when the event carries no bookmakers

    Example:
        >>> event = {
        ...     "id": "abc123",
        ...     "commence_time": "2024-09-08T17:00:00Z",
        ...     "home_team": "Chicago Bears",
        ...     "away_team": "Tennessee Titans",
        ...     "bookmakers": [{
        ...         "key": "draftkings",
        ...         "last_update": "2024-09-08T12:00:00Z",
        ...         "markets": [{"key": "spreads", "outcomes": [
        ...             {"name": "Chicago Bears", "price": -110, "point": -4.0},
        ...             {"name": "Tennessee Titans", "price": -110, "point": 4.0},
        ...         ]}],
        ...     }],
        ... }
        >>> parse_game_odds(event, "The Odds API").home_spread
        -4.0
    """
    bookmakers = game_data.get("bookmakers") or []
    bookmaker = next((b for b in bookmakers if b.get("key") == preferred_bookmaker), None)
    if bookmaker is None:
        if not bookmakers:
            return None
        bookmaker = bookmakers[0]

    home_team = game_data["home_team"]
    away_team = game_data["away_team"]
    markets = {market.get("key"): market.get("outcomes", []) for market in bookmaker.get("markets", [])}

    home_spread = _outcome_value(markets.get("spreads"), home_team, "point")
    away_spread = _outcome_value(markets.get("spreads"), away_team, "point")
    over_under = _outcome_value(markets.get("totals"), "Over", "point")
    home_moneyline = _outcome_value(markets.get("h2h"), home_team, "price")
    away_moneyline = _outcome_value(markets.get("h2h"), away_team, "price")

    return GameOdds(
        game_id=game_data["id"],
        home_team=home_team,
        away_team=away_team,
        game_date=parse_timestamp(game_data["commence_time"]),
        home_spread=_as_float(home_spread),
        away_spread=_as_float(away_spread),
        home_moneyline=_as_int(home_moneyline),
        away_moneyline=_as_int(away_moneyline),
        over_under=_as_float(over_under),
        provider=provider_name,
        last_update=parse_timestamp(bookmaker["last_update"]),
    )


def game_snapshot_to_odds(game: Game) -> GameOdds | None:
    """Build GameOdds from the persisted snapshot, or None if never populated."""
    if game.odds_updated_at is None:
        return None

    return GameOdds(
        game_id=game.id,
        home_team=game.home_team,
        away_team=game.away_team,
        game_date=ensure_utc(game.game_date),
        home_spread=game.home_spread,
        away_spread=game.away_spread,
        home_moneyline=game.home_moneyline,
        away_moneyline=game.away_moneyline,
        over_under=game.over_under,
        provider=game.odds_provider or "unknown",
        last_update=ensure_utc(game.odds_updated_at),
    )


def _outcome_value(outcomes: list[dict] | None, name: str, field_name: str) -> Any:
    for outcome in outcomes or []:
        if outcome.get("name") == name:
            return outcome.get(field_name)
    return None


def _as_float(value: Any) -> float | None:
    return None if value is None else float(value)


def _as_int(value: Any) -> int | None:
    return None if value is None else int(value)
