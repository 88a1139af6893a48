"""Cache administration commands for the Tunematch CLI.

``sweep`` is the hook an external scheduler (cron, systemd timer) calls to
evict expired song entries.
"""

from typing import Annotated

from rich.console import Console
import typer

from tunematch.config import get_logger
from tunematch.infrastructure.cli.async_helpers import run_with_services
from tunematch.infrastructure.cli.ui import command_error_handler, display_cache_stats
from tunematch.infrastructure.factories import MatchServices
from tunematch.infrastructure.persistence.stores import SQLAlchemyKeyValueStore

console = Console()
logger = get_logger(__name__)

app = typer.Typer(help="Inspect and maintain the match and song caches")


@app.command(name="stats")
@command_error_handler
def stats() -> None:
    """Show approximate match cache and exact song cache statistics."""

    async def collect(services: MatchServices):
        return await services.result_cache.stats(), await services.source_cache.stats()

    matches, songs = run_with_services(collect)
    display_cache_stats(matches, songs)


@app.command(name="sweep")
@command_error_handler
def sweep() -> None:
    """Delete expired song entries (and reclaim expired SQL rows)."""

    async def run(services: MatchServices) -> tuple[int, int]:
        removed = await services.source_cache.sweep()
        purged = 0
        if isinstance(services.store, SQLAlchemyKeyValueStore):
            purged = await services.store.purge_expired()
        return removed, purged

    removed, purged = run_with_services(run)
    console.print(f"[green]✓[/green] Swept {removed} expired song entries")
    if purged:
        console.print(f"[dim]Reclaimed {purged} expired rows[/dim]")


@app.command(name="clear-matches")
@command_error_handler
def clear_matches(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete every cached match result."""
    if not yes:
        typer.confirm("Delete all cached match results?", abort=True)
    removed = run_with_services(lambda services: services.result_cache.clear_all())
    console.print(f"[yellow]Cleared {removed} match results[/yellow]")


@app.command(name="clear-songs")
@command_error_handler
def clear_songs(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete every cached song."""
    if not yes:
        typer.confirm("Delete all cached songs?", abort=True)
    removed = run_with_services(lambda services: services.source_cache.clear_all())
    console.print(f"[yellow]Cleared {removed} songs[/yellow]")


@app.command(name="invalidate-song")
@command_error_handler
def invalidate_song(
    platform: Annotated[str, typer.Argument(help="Platform, e.g. spotify")],
    song_id: Annotated[str, typer.Argument(help="Song id on the platform")],
) -> None:
    """Drop one cached song so the next lookup refetches it."""
    removed = run_with_services(
        lambda services: services.source_cache.invalidate(platform, song_id)
    )
    _report_invalidation(removed, f"{platform}:{song_id}")


@app.command(name="invalidate-match")
@command_error_handler
def invalidate_match(
    song_a: Annotated[str, typer.Argument(help="First song id")],
    song_b: Annotated[str, typer.Argument(help="Second song id")],
) -> None:
    """Drop the cached result for one song pair (order does not matter)."""
    removed = run_with_services(
        lambda services: services.result_cache.invalidate(song_a, song_b)
    )
    _report_invalidation(removed, f"{song_a} / {song_b}")


def _report_invalidation(removed: bool, label: str) -> None:
    if removed:
        console.print(f"[green]✓[/green] Invalidated {label}")
    else:
        console.print(f"[dim]Nothing cached for {label}[/dim]")
