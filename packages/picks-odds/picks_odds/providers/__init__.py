"""Odds data providers."""

from picks_odds.providers.base import OddsProvider, find_matching_odds
from picks_odds.providers.the_odds_api import TheOddsApiProvider

__all__ = ["OddsProvider", "TheOddsApiProvider", "find_matching_odds"]
