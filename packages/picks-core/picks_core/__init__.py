"""
Core foundation layer for the weekly picks odds subsystem.

Provides models, database connection, and configuration.
"""

from picks_core.api_models import CachedOdds, GameOdds, OddsFetchOptions, parse_game_odds
from picks_core.config import Settings, get_settings
from picks_core.models import CacheRecord, Game, OddsHistory

__all__ = [
    # Models
    "Game",
    "OddsHistory",
    "CacheRecord",
    # Config
    "Settings",
    "get_settings",
    # API Models
    "GameOdds",
    "CachedOdds",
    "OddsFetchOptions",
    "parse_game_odds",
]
