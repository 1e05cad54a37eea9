"""CLI commands for inspecting and managing the odds cache."""

import asyncio

import typer
from picks_core.config import get_settings
from picks_core.database import close_db
from picks_odds.cache import DatabaseCacheStore, TieredCache, TierWriteResult
from picks_odds.exceptions import CacheTierError
from rich.console import Console
from rich.table import Table

app = typer.Typer()
console = Console()


def _new_cache() -> TieredCache:
    return TieredCache(DatabaseCacheStore(), get_settings().cache)


def _report(result: TierWriteResult, action: str) -> None:
    if result.ok:
        console.print(f"[bold green]✓ {action}[/bold green]")
    else:
        console.print(f"[bold yellow]⚠ {action} (persistent tier: {result.persistent_error})[/bold yellow]")
        raise typer.Exit(code=1)


@app.command("stats")
def show_stats():
    """Show persistent cache totals shared by every process."""
    asyncio.run(_show_stats())


async def _show_stats():
    """Async implementation of cache stats."""
    try:
        summary = await DatabaseCacheStore().summary()
    except CacheTierError as e:
        console.print(f"\n[bold red]✗ Failed to read cache stats: {str(e)}[/bold red]")
        raise typer.Exit(code=1) from e
    finally:
        await close_db()

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Entries", f"{summary['items']:,}")
    table.add_row("Expired (pending delete)", f"{summary['expired']:,}")
    table.add_row("Total Hits", f"{summary['total_hits']:,}")

    console.print("\n[bold blue]Odds Cache Statistics[/bold blue]\n")
    console.print(table)


@app.command("health")
def show_health():
    """Check that both cache tiers are reachable."""
    asyncio.run(_show_health())


async def _show_health():
    """Async implementation of cache health."""
    cache = _new_cache()
    try:
        health = await cache.get_health_check()
    finally:
        await close_db()

    memory = health["memory_cache"]
    status_color = "green" if health["status"] == "healthy" else "red"

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Status", f"[{status_color}]{health['status']}[/{status_color}]")
    table.add_row("Memory Items", f"{memory['items']:,} / {memory['max_items']:,}")
    table.add_row(
        "Memory Usage",
        f"{memory['usage'] / 1024:.1f} KiB / {memory['max_usage'] / (1024 * 1024):.0f} MiB",
    )
    persistent_items = health["persistent_cache"]["items"]
    table.add_row(
        "Persistent Items",
        "[red]unavailable[/red]" if persistent_items is None else f"{persistent_items:,}",
    )

    console.print(table)

    if health["status"] != "healthy":
        raise typer.Exit(code=1)


@app.command("clear")
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Drop every cached entry from both tiers."""
    if not yes:
        typer.confirm("Clear the entire odds cache?", abort=True)
    asyncio.run(_run(lambda cache: cache.clear_all(), "Cache cleared"))


@app.command("invalidate")
def invalidate(
    key: str = typer.Argument(..., help="Cache key, e.g. odds:game:<game_id>"),
):
    """Remove one cache key from both tiers."""
    asyncio.run(_run(lambda cache: cache.invalidate(key), f"Invalidated {key}"))


@app.command("invalidate-tags")
def invalidate_tags(
    tags: list[str] = typer.Argument(..., help="Tags, e.g. week-2024-3 game-<game_id>"),
):
    """Remove every entry carrying any of the given tags."""
    asyncio.run(
        _run(lambda cache: cache.invalidate_by_tags(tags), f"Invalidated tags: {', '.join(tags)}")
    )


async def _run(operation, action: str):
    cache = _new_cache()
    try:
        result = await operation(cache)
    except Exception as e:
        console.print(f"\n[bold red]✗ {action} failed: {str(e)}[/bold red]")
        raise typer.Exit(code=1) from e
    finally:
        await close_db()

    _report(result, action)
