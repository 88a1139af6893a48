"""UI helpers for CLI interaction.

This module provides reusable rendering helpers and the command error
handler, keeping the presentation logic separate from business logic.
"""

from collections.abc import Callable
from enum import StrEnum
import functools
import json
from typing import ParamSpec, TypeVar

import attrs
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
import typer

from tunematch.config import get_logger
from tunematch.domain.entities import (
    ResultCacheStats,
    SearchPage,
    SongRecord,
    SourceCacheStats,
)
from tunematch.domain.errors import TunematchError
from tunematch.domain.matching import LayerResult, MatchResult

# Initialize console and logger
console = Console()
logger = get_logger(__name__)

# Type variables for command handler decorator
P = ParamSpec("P")
R = TypeVar("R")


class OutputFormat(StrEnum):
    """Rendering formats for match results."""

    TABLE = "table"
    JSON = "json"


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Known failures (upstream errors, cache store errors, invalid input) are
    shown as a single red line. Anything else is logged with traceback. Both
    end with exit code 1.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except (typer.Exit, typer.Abort):
                raise

            except (TunematchError, ValueError) as e:
                logger.warning(f"{operation} failed: {e}")
                console.print(f"[bold red]✗ Error:[/bold red] {e}")
                raise typer.Exit(code=1) from e

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

    return wrapper


def _score_style(score: int) -> str:
    if score >= 80:
        return "bold green"
    if score >= 60:
        return "green"
    if score >= 40:
        return "yellow"
    return "red"


def _layer_table(title: str, layer: LayerResult) -> Table:
    table = Table(title=f"{title} ({layer.score:.2f})", title_justify="left")
    table.add_column("Component", style="cyan")
    table.add_column("Similarity", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Values", justify="right", style="dim")
    for component in layer.components.values():
        first, second = component.values
        table.add_row(
            component.label or "",
            f"{component.similarity:.2f}",
            f"{component.weight:.2f}",
            f"{first:g} / {second:g}",
        )
    return table


def display_match(
    result: MatchResult,
    song_a: SongRecord | None = None,
    song_b: SongRecord | None = None,
    output_format: OutputFormat = OutputFormat.TABLE,
) -> None:
    """Render a match result as rich tables or as JSON."""
    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(attrs.asdict(result)))
        return

    if song_a and song_b:
        console.print(
            f"\n[bold]{song_a.title}[/bold] by {song_a.artist}  vs  "
            f"[bold]{song_b.title}[/bold] by {song_b.artist}"
        )

    score_style = _score_style(result.overall_score)
    console.print(
        f"\n[{score_style}]Match score: {result.overall_score}/100[/{score_style}]"
        f"  [dim]confidence {result.confidence:.2f} · "
        f"{result.processing_time_ms:.2f} ms · v{result.algorithm_version}[/dim]"
    )

    console.print(_layer_table("High-level features", result.breakdown.layer1))
    console.print(_layer_table("Musical structure", result.breakdown.layer2))
    console.print(_layer_table("Genre & metadata", result.breakdown.layer3))

    explanation = result.explanation
    if explanation is None:
        return

    lines = [f"[bold]{explanation.summary}[/bold]"]
    lines.extend(f"[green]+[/green] {strength}" for strength in explanation.strengths)
    lines.extend(f"[red]-[/red] {weakness}" for weakness in explanation.weaknesses)
    if explanation.details:
        details = explanation.details
        lines.append("")
        lines.append(f"[dim]Mood:[/dim] {details.mood}")
        lines.append(f"[dim]Rhythm:[/dim] {details.rhythm}")
        lines.append(f"[dim]Harmony:[/dim] {details.harmony}")
        lines.append(f"[dim]Style:[/dim] {details.style}")
    console.print(Panel("\n".join(lines), title="Why", border_style="blue", expand=False))


def display_song(record: SongRecord) -> None:
    table = Table(title=f"{record.title} - {record.artist}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in attrs.asdict(record.features).items():
        if value is None:
            value = "-"
        elif isinstance(value, list):
            value = ", ".join(value)
        table.add_row(name.replace("_", " "), str(value))
    console.print(table)


def display_search(page: SearchPage) -> None:
    table = Table(title=f"{page.total} results", title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Artist")
    table.add_column("Year", justify="right")
    for position, song in enumerate(page.songs, start=page.offset + 1):
        table.add_row(
            str(position),
            song.song_id,
            song.title,
            song.artist,
            str(song.release_year or ""),
        )
    console.print(table)
    if page.has_more:
        console.print(
            f"[dim]More results available: --offset {page.offset + page.limit}[/dim]"
        )


def display_cache_stats(matches: ResultCacheStats, songs: SourceCacheStats) -> None:
    table = Table(title="Cache statistics", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Match results (approx.)", str(matches.total_keys))
    table.add_row("Match cache size (est. bytes)", str(matches.estimated_size_bytes))
    table.add_row("Oldest match key (sampled)", matches.oldest_key or "-")
    table.add_row("Songs cached", str(songs.total))
    table.add_row("Songs expired", str(songs.expired))
    for platform, count in sorted(songs.by_platform.items()):
        table.add_row(f"Songs on {platform}", str(count))
    console.print(table)
