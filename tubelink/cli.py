"""
Command-line interface for tubelink.

Finds YouTube videos for Apple Music and Spotify links, or for the
playlists of an exported music library.
rich-click is used for the output colors.

Commands:
    tubelink <url>                          Track, album or playlist link
    tubelink --library <file>               Pick tracks from "Replay 2024"
    tubelink --library <file> --playlist X  Pick tracks from playlist X

Options:
    --limit <n>                             Max tracks per album/playlist
    --sequential                            Resolve tracks one at a time
    --config <file>                         config.yaml to use
    --log-dir <dir>                         Write log files there
    --verbose                               Show debug messages

Usage:
    # One track
    tubelink "https://music.apple.com/gb/song/some-song/123"

    # First 3 tracks of a playlist
    tubelink "https://open.spotify.com/playlist/..."

    # First 10 tracks, one at a time
    tubelink --limit 10 --sequential "https://music.apple.com/gb/album/..."

    # Interactive picker over a library playlist
    tubelink --library ~/Music/Library.xml --playlist "Road Trip"

Configuration:
    config.yaml in the current directory is read when present (see
    tubelink.core.config). The YouTube API key is read from
    YOUTUBE_API_KEY; a .env file in the current directory is loaded first.

Exit Codes:
    0    Success
    1    Configuration, library or resolve failure
    130  Interrupted
"""

import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import rich_click as click
from dotenv import find_dotenv, load_dotenv

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cli": [
        {
            "name": "Library",
            "options": ["--library", "--playlist"],
        },
        {
            "name": "Resolution",
            "options": ["--limit", "--sequential"],
        },
        {
            "name": "Advanced Options",
            "options": ["--config", "--log-dir", "--verbose"],
        },
        {
            "name": "Info",
            "options": ["--version", "--help"],
        },
    ],
}

from tubelink import __version__
from tubelink.core import (
    Config,
    ConfigError,
    LibraryError,
    ResolveError,
    TubeLinkError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from tubelink.library import DEFAULT_PLAYLIST, load_library
from tubelink.music import Track
from tubelink.resolver import CollectionResult, Outcome, TrackResolver

logger = get_logger(__name__)


# Answer that ends the library picker
QUIT_ANSWER = "q"


@click.command()
@click.argument("url", required=False, default=None, metavar="<url>")
@click.option(
    "--library", "library_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<file>",
    help="Exported music library (XML or binary plist)"
)
@click.option(
    "--playlist",
    type=str,
    default=None,
    metavar="<name>",
    help=f"Library playlist to pick from [default: {DEFAULT_PLAYLIST}]"
)
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    metavar="<n>",
    help="Max tracks resolved per album/playlist [default: 3]"
)
@click.option(
    "--sequential",
    is_flag=True,
    help="Resolve album/playlist tracks one at a time"
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file"
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<dir>",
    help="Write log files to this directory"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug messages"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    url: Optional[str],
    library_path: Optional[Path],
    playlist: Optional[str],
    limit: Optional[int],
    sequential: bool,
    config_path: Optional[Path],
    log_dir: Optional[Path],
    verbose: bool,
    version: bool
) -> None:
    """
    tubelink: Find YouTube videos for Apple Music and Spotify links.

    \b
    LINKS:
        tubelink "https://music.apple.com/gb/song/..."     # One track
        tubelink "https://open.spotify.com/album/..."      # First 3 album tracks
        tubelink --limit 10 "https://open.spotify.com/playlist/..."

    \b
    LIBRARY:
        tubelink --library Library.xml                     # "Replay 2024"
        tubelink --library Library.xml --playlist "Mix"    # Any playlist

        Lists the playlist, then asks for track numbers to search.
    """
    if version:
        click.echo(f"tubelink {__version__}")
        ctx.exit(0)

    if not url and not library_path:
        click.echo(ctx.get_help())
        ctx.exit(0)

    if url and library_path:
        raise click.UsageError("Cannot use both <url> and --library")

    if playlist and not library_path:
        raise click.UsageError("--playlist can only be used with --library")

    if library_path and (limit is not None or sequential):
        raise click.UsageError("--limit and --sequential only apply to links")

    _run(
        url=url,
        library_path=library_path,
        playlist=playlist or DEFAULT_PLAYLIST,
        limit=limit,
        sequential=sequential,
        config_path=config_path,
        log_dir=log_dir,
        verbose=verbose
    )


def _run(
    url: Optional[str],
    library_path: Optional[Path],
    playlist: str,
    limit: Optional[int],
    sequential: bool,
    config_path: Optional[Path],
    log_dir: Optional[Path],
    verbose: bool
) -> None:
    """
    Execute the requested workflow.

    1. Loads .env and configuration
    2. Sets up logging
    3. Resolves the link, or runs the library picker

    Raises:
        SystemExit: On fatal errors (with appropriate exit code).
    """
    resolver: TrackResolver | None = None

    try:
        load_dotenv(find_dotenv(usecwd=True))
        config = _load_configuration(config_path, limit, sequential)

        setup_logging(log_dir or config.output.log_directory, verbose)
        logger.debug("tubelink starting")

        resolver = TrackResolver.from_config(config)

        if url:
            _run_url(resolver, url)
        else:
            _run_library(resolver, library_path, playlist)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except LibraryError as e:
        click.echo(f"Library error: {e.message}", err=True)
        logger.debug(f"Library error: {e.message}", exc_info=True)
        sys.exit(1)

    except ResolveError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.debug(f"Resolve failed at stage '{e.stage}'", exc_info=True)
        sys.exit(1)

    except TubeLinkError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(1)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        if resolver is not None:
            resolver.close()
        shutdown_logging()


def _load_configuration(
    config_path: Optional[Path],
    limit: Optional[int],
    sequential: bool
) -> Config:
    """
    Load config.yaml and apply command-line overrides.

    --sequential can only switch sequential mode on.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    config = load_config(config_path)

    resolver_config = config.resolver
    if limit is not None:
        resolver_config = replace(resolver_config, limit=limit)
    if sequential:
        resolver_config = replace(resolver_config, sequential=True)

    return replace(config, resolver=resolver_config)


def _run_url(resolver: TrackResolver, url: str) -> None:
    """
    Resolve a link and print what was found.

    A track prints its video URL. A collection prints one block per track:

        "<name>" by "<artist>":
        <video url or ->

    Raises:
        ResolveError: The link (or its collection page) can't be resolved,
                      or a single track has no video.
    """
    result = resolver.resolve_url(url, show_progress=True)

    if isinstance(result, CollectionResult):
        _print_collection(result)
        return

    _print_track(result)


def _print_track(outcome: Outcome) -> None:
    if not outcome.found:
        raise outcome.error
    click.echo(outcome.display_value)


def _print_collection(result: CollectionResult) -> None:
    for outcome in result.outcomes:
        click.echo(f"\n{outcome.label}:\n{outcome.display_value}")

    logger.info(f"Found {result.found_count}/{len(result)} videos")


def _run_library(resolver: TrackResolver, library_path: Path, playlist_name: str) -> None:
    """
    List a library playlist and search tracks picked by number.

    Picker Rules:
        - "q" (or end of input) quits
        - Numbers index the listed tracks, starting at 0
        - Bad numbers and failed searches print an error and ask again

    Raises:
        LibraryError: Library unreadable, or the playlist doesn't exist.
    """
    library = load_library(library_path)

    playlist = library.find_playlist(playlist_name)
    if playlist is None:
        raise LibraryError(
            f"Playlist {playlist_name} was not found",
            details={"path": str(library_path), "playlist": playlist_name}
        )

    tracks = library.playlist_tracks(playlist)
    for index, track in enumerate(tracks):
        click.echo(f"({index}) {track.search_phrase}")
    click.echo()

    while True:
        answer = _prompt_answer()
        if answer is None or answer == QUIT_ANSWER:
            return

        track = _pick_track(tracks, answer)
        if track is None:
            continue

        outcome = resolver.search(track)
        if outcome.found:
            click.echo(outcome.display_value)
        else:
            click.echo(f"Error: {outcome.error.message}", err=True)
        click.echo()


def _prompt_answer() -> str | None:
    """Ask for a track number; None when input ends."""
    try:
        return click.prompt(
            f'Enter song id ("{QUIT_ANSWER}" for exit)',
            type=str,
            prompt_suffix=": "
        ).strip()
    except click.Abort:
        return None


def _pick_track(tracks: list[Track], answer: str) -> Track | None:
    """Return the track numbered by answer, or report it and return None."""
    try:
        index = int(answer)
    except ValueError:
        index = -1

    if index < 0 or index >= len(tracks):
        click.echo(f"Invalid id: {answer}", err=True)
        return None

    return tracks[index]


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `tubelink` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
