"""Team name matching between the odds feed and our schedule."""

from __future__ import annotations

# Canonical team name → set of known aliases
TEAM_ALIASES: dict[str, set[str]] = {
    "Arizona Cardinals": {"Arizona Cardinals", "Cardinals", "Arizona", "ARI"},
    "Atlanta Falcons": {"Atlanta Falcons", "Falcons", "Atlanta", "ATL"},
    "Baltimore Ravens": {"Baltimore Ravens", "Ravens", "Baltimore", "BAL"},
    "Buffalo Bills": {"Buffalo Bills", "Bills", "Buffalo", "BUF"},
    "Carolina Panthers": {"Carolina Panthers", "Panthers", "Carolina", "CAR"},
    "Chicago Bears": {"Chicago Bears", "Bears", "Chicago", "CHI"},
    "Cincinnati Bengals": {"Cincinnati Bengals", "Bengals", "Cincinnati", "CIN"},
    "Cleveland Browns": {"Cleveland Browns", "Browns", "Cleveland", "CLE"},
    "Dallas Cowboys": {"Dallas Cowboys", "Cowboys", "Dallas", "DAL"},
    "Denver Broncos": {"Denver Broncos", "Broncos", "Denver", "DEN"},
    "Detroit Lions": {"Detroit Lions", "Lions", "Detroit", "DET"},
    "Green Bay Packers": {"Green Bay Packers", "Packers", "Green Bay", "GB"},
    "Houston Texans": {"Houston Texans", "Texans", "Houston", "HOU"},
    "Indianapolis Colts": {"Indianapolis Colts", "Colts", "Indianapolis", "IND"},
    "Jacksonville Jaguars": {"Jacksonville Jaguars", "Jaguars", "Jags", "Jacksonville", "JAX"},
    "Kansas City Chiefs": {"Kansas City Chiefs", "Chiefs", "Kansas City", "KC"},
    "Las Vegas Raiders": {"Las Vegas Raiders", "Raiders", "Las Vegas", "LV"},
    "Los Angeles Chargers": {"Los Angeles Chargers", "Chargers", "LA Chargers", "LAC"},
    "Los Angeles Rams": {"Los Angeles Rams", "Rams", "LA Rams", "LAR"},
    "Miami Dolphins": {"Miami Dolphins", "Dolphins", "Miami", "MIA"},
    "Minnesota Vikings": {"Minnesota Vikings", "Vikings", "Minnesota", "MIN"},
    "New England Patriots": {"New England Patriots", "Patriots", "New England", "NE"},
    "New Orleans Saints": {"New Orleans Saints", "Saints", "New Orleans", "NO"},
    "New York Giants": {"New York Giants", "Giants", "NY Giants", "NYG"},
    "New York Jets": {"New York Jets", "Jets", "NY Jets", "NYJ"},
    "Philadelphia Eagles": {"Philadelphia Eagles", "Eagles", "Philadelphia", "PHI"},
    "Pittsburgh Steelers": {"Pittsburgh Steelers", "Steelers", "Pittsburgh", "PIT"},
    "San Francisco 49ers": {"San Francisco 49ers", "49ers", "Niners", "San Francisco", "SF"},
    "Seattle Seahawks": {"Seattle Seahawks", "Seahawks", "Seattle", "SEA"},
    "Tampa Bay Buccaneers": {"Tampa Bay Buccaneers", "Buccaneers", "Bucs", "Tampa Bay", "TB"},
    "Tennessee Titans": {"Tennessee Titans", "Titans", "Tennessee", "TEN"},
    "Washington Commanders": {"Washington Commanders", "Commanders", "Washington", "WAS"},
}

# Pre-computed lowercase alias → canonical name for O(1) lookups
_ALIAS_TO_CANONICAL: dict[str, str] = {
    alias.lower(): canonical for canonical, aliases in TEAM_ALIASES.items() for alias in aliases
}


def normalize_team(name: str) -> str | None:
    """Normalize a team name to its canonical form.

    Returns the canonical name (e.g. "Kansas City Chiefs") or None if unrecognized.
    """
    return _ALIAS_TO_CANONICAL.get(name.strip().lower())


def team_names_match(first: str, second: str) -> bool:
    """
    Decide whether two free-text team names refer to the same team.

    Permissive: either name containing the other (ignoring case) counts, as
    does both resolving to the same franchise in the alias table.
    """
    a = first.strip().lower()
    b = second.strip().lower()
    if not a or not b:
        return False
    if a in b or b in a:
        return True

    canonical_a = normalize_team(a)
    return canonical_a is not None and canonical_a == normalize_team(b)
