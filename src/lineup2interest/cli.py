"""lineup2interest CLI using Typer.

Commands:
- sync-festivals: Pull upcoming festivals and lineups
- match: Match your Spotify artists against the festival catalog
- refresh: Match your Spotify artists and score upcoming festivals
- interests: Show stored festival interests
- map / unmap: Manage artist mappings by hand
- mapping-stats: Summarize the mapping table
- clear-cache: Clear cached API responses
"""

import asyncio
from collections.abc import Coroutine
from pathlib import Path
from typing import Annotated, Any, Optional, TypeVar

import typer

from .config import get_settings
from .db import StoreError
from .logging import get_logger
from .models import InterestLevel, ListeningProfile
from .pipeline import Pipeline

T = TypeVar("T")

app = typer.Typer(
    name="lineup2interest",
    help="Score upcoming festival lineups against your Spotify listening.",
    add_completion=False,
)

ProfileOption = Annotated[
    Optional[Path], typer.Option("--profile", "-p", help="Listening profile JSON file (skips Spotify)")
]
UserIdOption = Annotated[Optional[str], typer.Option("--user-id", "-u", help="User ID when using --profile")]
LogLevelOption = Annotated[str, typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")]
LogFormatOption = Annotated[str, typer.Option("--log-format", help="Log format (console, json)")]


def _pipeline(log_level: str, log_format: str) -> Pipeline:
    settings = get_settings().model_copy(update={"log_level": log_level, "log_format": log_format})
    return Pipeline(settings)


def _run_store(coro: Coroutine[Any, Any, T]) -> T:
    """Run a database-only coroutine, reporting store failures as CLI errors."""
    try:
        return asyncio.run(coro)
    except StoreError as e:
        typer.echo(f"Error: Database error - {e}", err=True)
        raise typer.Exit(1)


async def _load_profile(
    pipeline: Pipeline, profile_json: Path | None, user_id: str | None
) -> tuple[str, ListeningProfile]:
    if profile_json:
        return user_id, ListeningProfile.model_validate_json(profile_json.read_text())
    return await pipeline.fetch_profile()


@app.command()
def sync_festivals(
    log_level: LogLevelOption = "INFO",
    log_format: LogFormatOption = "console",
) -> None:
    """Sync upcoming festivals and lineups from EDMTrain."""
    pipeline = _pipeline(log_level, log_format)

    async def _run() -> int:
        try:
            return await pipeline.sync_festivals()
        finally:
            await pipeline.close()

    try:
        synced = asyncio.run(_run())
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except Exception as e:
        typer.echo(f"Error: Festival sync failed - {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Synced {synced} festival(s).")


@app.command()
def match(
    profile_json: ProfileOption = None,
    log_level: LogLevelOption = "INFO",
    log_format: LogFormatOption = "console",
) -> None:
    """Match your artists against every festival artist on a synced lineup.

    Example:
        lineup2interest match
        lineup2interest match --profile profile.json
    """
    pipeline = _pipeline(log_level, log_format)
    logger = get_logger(__name__)

    async def _run():
        _, profile = await _load_profile(pipeline, profile_json, None)
        return await pipeline.match_profile(profile)

    try:
        mappings = asyncio.run(_run())
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("match_failed", error=str(e))
        typer.echo(f"Error: Matching failed - {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Matched {len(mappings)} artist(s).")
    for mapping in mappings:
        typer.echo(
            f"  {mapping.streaming_artist_name} -> {mapping.festival_artist_name} "
            f"({mapping.match_method.value}, {mapping.match_confidence:.2f})"
        )


@app.command()
def refresh(
    profile_json: ProfileOption = None,
    user_id: UserIdOption = None,
    log_level: LogLevelOption = "INFO",
    log_format: LogFormatOption = "console",
) -> None:
    """Match your artists and recalculate interest in every upcoming festival.

    Example:
        lineup2interest refresh
        lineup2interest refresh --profile profile.json --user-id me
    """
    if profile_json and not user_id:
        typer.echo("Error: --user-id is required with --profile", err=True)
        raise typer.Exit(1)

    pipeline = _pipeline(log_level, log_format)
    logger = get_logger(__name__)

    async def _run():
        uid, profile = await _load_profile(pipeline, profile_json, user_id)
        return await pipeline.refresh_user(uid, profile)

    try:
        interests = asyncio.run(_run())
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("refresh_failed", error=str(e))
        typer.echo(f"Error: Refresh failed - {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Scored {len(interests)} festival(s).")
    for interest in sorted(interests, key=lambda i: -i.interest_score)[:10]:
        typer.echo(
            f"  {interest.festival_id}: {interest.interest_score:.1f} "
            f"({interest.interest_level.value}, {interest.matched_artists} artist(s))"
        )


@app.command()
def interests(
    user_id: Annotated[str, typer.Option("--user-id", "-u", help="User ID")],
    level: Annotated[Optional[InterestLevel], typer.Option("--level", "-l", help="Only this interest level")] = None,
) -> None:
    """Show stored festival interests, highest score first."""
    pipeline = _pipeline("WARNING", "console")

    async def _run():
        if level:
            found = await pipeline.calculator.get_user_interests_by_level(user_id, level)
        else:
            found = await pipeline.calculator.get_user_interests(user_id)
        return [(i, await pipeline.store.get_festival(i.festival_id)) for i in found]

    results = _run_store(_run())
    if not results:
        typer.echo(f"No festival interests stored for {user_id}")
        return

    for interest, festival in results:
        name = festival.name if festival else interest.festival_id
        typer.echo(f"{name}")
        typer.echo(
            f"   Score: {interest.interest_score:.1f} ({interest.interest_level.value})"
            f"  Genre alignment: {interest.genre_alignment_score:.0f}"
        )
        artists = ", ".join(d.festival_artist_name for d in interest.matched_artist_details)
        typer.echo(f"   Artists: {artists}")
        typer.echo()


@app.command("map")
def map_artist(
    streaming_id: Annotated[str, typer.Option("--spotify-id", help="Spotify artist ID")],
    streaming_name: Annotated[str, typer.Option("--spotify-name", help="Spotify artist name")],
    festival_id: Annotated[str, typer.Option("--festival-artist-id", help="EDMTrain artist ID")],
    festival_name: Annotated[str, typer.Option("--festival-artist-name", help="EDMTrain artist name")],
) -> None:
    """Create or overwrite an artist mapping by hand."""
    pipeline = _pipeline("WARNING", "console")
    mapping = _run_store(
        pipeline.matcher.manual_mapping(streaming_id, streaming_name, festival_id, festival_name)
    )
    typer.echo(
        f"Mapped {mapping.streaming_artist_name} -> {mapping.festival_artist_name} (verified)"
    )


@app.command()
def unmap(
    streaming_id: Annotated[str, typer.Option("--spotify-id", help="Spotify artist ID")],
) -> None:
    """Delete the mapping for a Spotify artist."""
    pipeline = _pipeline("WARNING", "console")
    if not _run_store(pipeline.matcher.delete_mapping(streaming_id)):
        typer.echo(f"No mapping found for {streaming_id}", err=True)
        raise typer.Exit(1)
    typer.echo("Mapping deleted.")


@app.command()
def mapping_stats() -> None:
    """Show mapping counts by match method."""
    pipeline = _pipeline("WARNING", "console")
    stats = _run_store(pipeline.matcher.get_mapping_stats())

    typer.echo(f"Total mappings: {stats.total}")
    typer.echo(f"Verified: {stats.verified}")
    for method, count in sorted(stats.by_method.items(), key=lambda x: -x[1]):
        typer.echo(f"  - {method}: {count}")


@app.command()
def clear_cache(
    expired_only: Annotated[bool, typer.Option("--expired-only", help="Only remove expired entries")] = False,
) -> None:
    """Clear the local API cache."""
    pipeline = _pipeline("WARNING", "console")
    if expired_only:
        deleted = _run_store(pipeline.cache.clear_expired())
        typer.echo(f"Removed {deleted} expired cache entries.")
        return

    _run_store(pipeline.cache.clear_all())
    typer.echo("Cache cleared.")


def main() -> None:
    """CLI entry point."""
    app()
