"""CLI commands for database management."""

import asyncio

import typer
from picks_core.database import close_db, init_db
from rich.console import Console

app = typer.Typer()
console = Console()


@app.command("init")
def init():
    """Create the games, odds history and cache tables."""
    asyncio.run(_init())


async def _init():
    console.print("[bold blue]Initializing database...[/bold blue]")
    try:
        await init_db()
        console.print("[bold green]✓ Database tables created[/bold green]")
    except Exception as e:
        console.print(f"[bold red]✗ Database init failed: {str(e)}[/bold red]")
        raise typer.Exit(code=1) from e
    finally:
        await close_db()
