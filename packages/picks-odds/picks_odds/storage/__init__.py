"""Database readers and writers for games and odds."""

from picks_odds.storage.readers import GameReader
from picks_odds.storage.writers import OddsWriter

__all__ = ["GameReader", "OddsWriter"]
