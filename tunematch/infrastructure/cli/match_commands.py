"""Scoring and lookup commands for the Tunematch CLI."""

from typing import Annotated

import typer

from tunematch.application.use_cases import MatchSongsCommand
from tunematch.infrastructure.cli.async_helpers import run_with_services
from tunematch.infrastructure.cli.ui import (
    OutputFormat,
    command_error_handler,
    display_match,
    display_search,
    display_song,
)


def register_match_commands(app: typer.Typer) -> None:
    """Register match, features and search commands with the Typer app."""
    app.command(name="match", rich_help_panel="🎵 Matching")(match)
    app.command(name="features", rich_help_panel="🎵 Matching")(features)
    app.command(name="search", rich_help_panel="🎵 Matching")(search)


@command_error_handler
def match(
    song_a: Annotated[str, typer.Argument(help="First song id")],
    song_b: Annotated[str, typer.Argument(help="Second song id")],
    platform: Annotated[
        str, typer.Option("--platform", "-p", help="Platform both ids belong to")
    ] = "spotify",
    bypass_cache: Annotated[
        bool, typer.Option("--bypass-cache", help="Recompute even if a result is cached")
    ] = False,
    no_explanation: Annotated[
        bool, typer.Option("--no-explanation", help="Omit the explanation")
    ] = False,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Score how similar two songs are (0-100)."""
    command = MatchSongsCommand(
        song_a=song_a,
        song_b=song_b,
        platform=platform,
        bypass_cache=bypass_cache,
        include_explanation=not no_explanation,
    )
    result = run_with_services(lambda services: services.match_songs.execute(command))
    display_match(result.match, result.song_a, result.song_b, output_format)


@command_error_handler
def features(
    platform: Annotated[str, typer.Argument(help="Platform, e.g. spotify")],
    song_id: Annotated[str, typer.Argument(help="Song id on the platform")],
) -> None:
    """Show the cached (or freshly fetched) features of one song."""
    record = run_with_services(
        lambda services: services.source_cache.get_song(platform, song_id)
    )
    display_song(record)


@command_error_handler
def search(
    query: Annotated[str, typer.Argument(help="Search query")],
    limit: Annotated[int, typer.Option("--limit", "-l", min=1, max=50)] = 20,
    offset: Annotated[int, typer.Option("--offset", min=0)] = 0,
) -> None:
    """Search songs; every result is cached for later matching."""
    page = run_with_services(
        lambda services: services.source_cache.search(query, limit=limit, offset=offset)
    )
    display_search(page)
