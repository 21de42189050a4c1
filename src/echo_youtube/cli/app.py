"""CLI application entry point and command routing for echo-youtube.

The CLI drives the same :class:`~echo_youtube.extension.YouTubeExtension`
the host player loads, which makes it the quickest way to check search,
signature resolution and stream selection by hand.

This module is the **sole error boundary** for the command line.  It
catches :class:`~echo_youtube.exceptions.EchoYoutubeError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages via Rich and returning well-defined exit codes.
"""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

from echo_youtube.cli import exit_codes
from echo_youtube.cli.console import console, escape
from echo_youtube.exceptions import EchoYoutubeError, RateLimitedError
from echo_youtube.version import __version__

if TYPE_CHECKING:
    from echo_youtube.extension import YouTubeExtension


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    Sub-commands:
    * ``echo-youtube search <query>``
    * ``echo-youtube quick <query>``
    * ``echo-youtube track <url>``
    * ``echo-youtube stream <url> [--bitrate N]``
    * ``echo-youtube doctor``
    """
    parser = argparse.ArgumentParser(
        prog="echo-youtube",
        description="YouTube audio extension — command-line driver.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr.",
    )
    sub = parser.add_subparsers(dest="command")

    search = sub.add_parser("search", help="Search YouTube for tracks.")
    search.add_argument("query", nargs="+")
    search.add_argument("--limit", type=_positive_int, default=None, help="Results per page.")

    quick = sub.add_parser("quick", help="Quick-search suggestions.")
    quick.add_argument("query", nargs="+")

    track = sub.add_parser("track", help="Show a track and its audio renditions.")
    track.add_argument("url")

    stream = sub.add_parser("stream", help="Print the playable audio URL of a track.")
    stream.add_argument("url")
    stream.add_argument(
        "--bitrate",
        type=int,
        default=None,
        help="Target bitrate in kbps (closest rendition wins).",
    )

    sub.add_parser("doctor", help="Run environment diagnostics.")
    return parser


# ---------------------------------------------------------------------------
# Command dispatch (no business logic)
# ---------------------------------------------------------------------------

def _make_extension(settings: dict[str, object]) -> YouTubeExtension:
    from echo_youtube.extension import YouTubeExtension

    extension = YouTubeExtension()
    extension.set_settings(settings)
    extension.on_initialize()
    return extension


def _handle_search(query: str, limit: int | None, settings: dict[str, object]) -> int:
    from echo_youtube.cli.render import render_tracks

    if limit is not None:
        settings["search_limit"] = limit
    extension = _make_extension(settings)
    try:
        console.print(f"\n[bold]Searching…[/bold]  {escape(query)}")
        feed = extension.load_search_feed(query)
        if not feed:
            console.print("[yellow]No results.[/yellow]")
            return exit_codes.SUCCESS
        render_tracks(feed.items)
    finally:
        extension.close()
    return exit_codes.SUCCESS


def _handle_quick(query: str, settings: dict[str, object]) -> int:
    from echo_youtube.cli.render import render_quick_search

    extension = _make_extension(settings)
    try:
        render_quick_search(extension.quick_search(query))
    finally:
        extension.close()
    return exit_codes.SUCCESS


def _handle_track(url: str, settings: dict[str, object]) -> int:
    from echo_youtube.cli.render import render_track_detail
    from echo_youtube.core.models import Track

    extension = _make_extension(settings)
    try:
        console.print(f"\n[bold]Loading track…[/bold]  {escape(url)}")
        placeholder = Track(
            id=url,
            title="",
            artists=(),
            duration_ms=None,
            cover_url=None,
            plays=None,
            streamables=(),
            is_playable=False,
        )
        track = extension.load_track(placeholder)
        render_track_detail(track)
    finally:
        extension.close()
    return exit_codes.SUCCESS if track.is_playable else exit_codes.GENERAL_ERROR


def _handle_stream(url: str, bitrate: int | None, settings: dict[str, object]) -> int:
    from echo_youtube.core.models import Streamable

    extension = _make_extension(settings)
    try:
        target = bitrate if bitrate is not None else extension.config.preferred_bitrate
        streamable = Streamable(
            id=f"cli_{target}",
            quality=target,
            title="Audio Stream",
            extras={"videoUrl": url},
        )
        media = extension.load_streamable_media(streamable)
    finally:
        extension.close()
    print(media.uri)
    return exit_codes.SUCCESS


def _handle_doctor() -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from echo_youtube.cli.doctor import run_doctor

    return run_doctor()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the echo-youtube CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    settings: dict[str, object] = {}
    if args.verbose:
        settings["log_level"] = "DEBUG"

    if args.command == "doctor":
        return _handle_doctor()
    if args.command == "search":
        return _handle_search(" ".join(args.query), args.limit, settings)
    if args.command == "quick":
        return _handle_quick(" ".join(args.query), settings)
    if args.command == "track":
        return _handle_track(args.url, settings)
    return _handle_stream(args.url, args.bitrate, settings)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except RateLimitedError as exc:
        console.print_error(exc)
        if exc.retry_after is not None:
            console.print(f"[yellow]Retry after:[/yellow] {exc.retry_after:.0f}s")
        sys.exit(exit_codes.RATE_LIMITED)
    except EchoYoutubeError as exc:
        console.print_error(exc)
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(str(exc))}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
