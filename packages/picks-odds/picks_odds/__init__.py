"""
Freshness-aware odds caching for weekly NFL picks.

Provides the two-tier cache, odds providers, adaptive TTLs and the
freshness service that ties them to the database.
"""

from picks_odds.freshness import FreshnessTier, calculate_freshness_tier, calculate_ttl
from picks_odds.team_names import normalize_team, team_names_match

__all__ = [
    "FreshnessTier",
    "calculate_freshness_tier",
    "calculate_ttl",
    "normalize_team",
    "team_names_match",
]
