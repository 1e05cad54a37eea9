"""CLI commands for fetching and refreshing game odds."""

import asyncio
from datetime import UTC, datetime

import typer
from picks_core.api_models import GameOdds
from picks_core.config import get_settings
from picks_core.database import close_db
from picks_core.time import format_kickoff
from picks_odds.jobs.refresh_odds import current_nfl_week
from picks_odds.runtime import freshness_runtime
from picks_odds.scheduling import RefreshScheduler
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

app = typer.Typer()
console = Console()


def _format_line(value: float | int | None, signed: bool = True) -> str:
    if value is None:
        return "[dim]-[/dim]"
    if signed and value > 0:
        return f"+{value:g}"
    return f"{value:g}"


def _odds_table(odds: GameOdds) -> Table:
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Game", f"{odds.away_team} @ {odds.home_team}")
    table.add_row("Kickoff", format_kickoff(odds.game_date))
    table.add_row(
        "Spread",
        f"{odds.home_team} {_format_line(odds.home_spread)} / "
        f"{odds.away_team} {_format_line(odds.away_spread)}",
    )
    table.add_row(
        "Moneyline",
        f"{odds.home_team} {_format_line(odds.home_moneyline)} / "
        f"{odds.away_team} {_format_line(odds.away_moneyline)}",
    )
    table.add_row("Over/Under", _format_line(odds.over_under, signed=False))
    table.add_row("Provider", odds.provider)
    table.add_row("Last Update", odds.last_update.strftime("%Y-%m-%d %H:%M:%S UTC"))
    return table


@app.command("get")
def get_odds(
    game_id: str = typer.Argument(..., help="Game ID to look up"),
    force: bool = typer.Option(False, "--force", "-f", help="Bypass the cache"),
):
    """Show current odds for a game."""
    asyncio.run(_get_odds(game_id, force))


async def _get_odds(game_id: str, force: bool):
    """Async implementation of odds get."""
    try:
        async with freshness_runtime(get_settings()) as service:
            odds = await service.get_record(game_id, force_refresh=force)
    except Exception as e:
        console.print(f"\n[bold red]✗ Lookup failed: {str(e)}[/bold red]")
        raise typer.Exit(code=1) from e
    finally:
        await close_db()

    if odds is None:
        console.print(f"[yellow]No odds available for game {game_id}[/yellow]")
        raise typer.Exit(code=1)

    console.print(_odds_table(odds))


@app.command("refresh")
def refresh_odds(
    season: int | None = typer.Option(None, "--season", "-s", help="Season year"),
    week: int | None = typer.Option(None, "--week", "-w", help="Week number"),
):
    """Refresh odds for every open game in a week (one upstream request)."""
    asyncio.run(_refresh_odds(season, week))


async def _refresh_odds(season: int | None, week: int | None):
    """Async implementation of odds refresh."""
    current_season, current_week = current_nfl_week(datetime.now(UTC))
    season = current_season if season is None else season
    week = current_week if week is None else week

    console.print(f"[bold blue]Refreshing odds for {season} week {week}...[/bold blue]")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(description="Fetching odds...", total=None)

        try:
            async with freshness_runtime(get_settings()) as service:
                result = await service.refresh_batch(season, week)
            progress.update(task, description="Complete!", completed=True)
        except Exception as e:
            progress.update(task, description="Failed!", completed=True)
            console.print(f"\n[bold red]✗ Refresh failed: {str(e)}[/bold red]")
            raise typer.Exit(code=1) from e
        finally:
            await close_db()

    color = "green" if result.success else "yellow"
    console.print(f"\n[bold {color}]Updated {result.updated_count} games[/bold {color}]")
    for error in result.errors:
        console.print(f"  [yellow]• {error}[/yellow]")


@app.command("usage")
def show_usage():
    """Show provider quota and cached games."""
    asyncio.run(_show_usage())


async def _show_usage():
    """Async implementation of odds usage."""
    try:
        async with freshness_runtime(get_settings()) as service:
            stats = service.get_usage_stats()
    except Exception as e:
        console.print(f"\n[bold red]✗ Failed to read usage: {str(e)}[/bold red]")
        raise typer.Exit(code=1) from e
    finally:
        await close_db()

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Provider", stats.provider_name)
    quota = stats.remaining_quota
    table.add_row("Remaining Quota", "unknown" if quota is None else f"{quota:,}")
    table.add_row("Cached Entries", f"{stats.cache_size:,}")

    if stats.api_usage is not None:
        usage = stats.api_usage
        throttle = "[red]active[/red]" if usage.throttle_active else "[green]inactive[/green]"
        table.add_row("Requests (Today)", f"{usage.daily_used:,}")
        table.add_row("Requests (Month)", f"{usage.monthly_used:,}")
        table.add_row("Quota Resets", usage.reset_date.strftime("%Y-%m-%d"))
        table.add_row("Throttle", throttle)

    console.print("\n[bold blue]Odds Provider Usage[/bold blue]\n")
    console.print(table)

    if stats.cached_game_ids:
        console.print(f"\n[dim]Cached games: {', '.join(stats.cached_game_ids)}[/dim]")


@app.command("schedule")
def show_schedule():
    """Show whether a scheduled refresh is due and when to check next."""
    asyncio.run(_show_schedule())


async def _show_schedule():
    """Async implementation of odds schedule."""
    scheduler = RefreshScheduler(lookahead_days=get_settings().freshness.schedule_lookahead_days)
    try:
        decision = await scheduler.decide()
    except Exception as e:
        console.print(f"\n[bold red]✗ Failed to evaluate schedule: {str(e)}[/bold red]")
        raise typer.Exit(code=1) from e
    finally:
        await close_db()

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    due = "[green]yes[/green]" if decision.should_refresh else "[dim]no[/dim]"
    table.add_row("Refresh Due", due)
    table.add_row("Reason", decision.reason)
    table.add_row("Cadence", decision.cadence.value if decision.cadence else "-")
    table.add_row("Weeks", ", ".join(f"{s} week {w}" for s, w in decision.weeks) or "-")
    table.add_row("Next Check", format_kickoff(decision.next_check))

    console.print(table)
