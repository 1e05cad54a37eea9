"""Main CLI entry point using Typer."""

import typer
from picks_core.config import get_settings
from picks_core.logging_setup import configure_logging

from picks_cli.commands import cache, db, odds

app = typer.Typer(
    name="picks",
    help="Weekly picks odds - freshness-aware NFL odds caching",
    add_completion=False,
)

# Add command groups
app.add_typer(odds.app, name="odds", help="Fetch and refresh game odds")
app.add_typer(cache.app, name="cache", help="Inspect and manage the odds cache")
app.add_typer(db.app, name="db", help="Database management")


@app.callback()
def callback(
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines"),
):
    """
    Weekly Picks Odds

    Keeps NFL betting lines fresh for the weekly picks application.
    """
    configure_logging(get_settings(), json_output=json_logs)


if __name__ == "__main__":
    app()
