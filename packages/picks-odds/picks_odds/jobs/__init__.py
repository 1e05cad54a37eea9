"""
Standalone jobs for keeping odds fresh.

Each job is executable as a script (``python -m picks_odds.jobs.refresh_odds``)
or importable from a scheduler.
"""
