"""Rich table rendering for tracks, renditions, and quick-search items.

All display-related logic lives here — no business logic, no network
access, no metadata parsing.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from echo_youtube.cli.console import console, escape
from echo_youtube.core.models import (
    QuickSearchItem,
    QuickSearchMedia,
    ResolvedStreamUrl,
    Track,
)
from echo_youtube.exceptions import EnvironmentError


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms, no I/O)
# ---------------------------------------------------------------------------

def format_duration(duration_ms: int | None) -> str:
    """Render milliseconds as ``"m:ss"`` / ``"h:mm:ss"``, or ``"—"``."""
    if duration_ms is None:
        return "—"
    minutes, seconds = divmod(duration_ms // 1000, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_size(content_length: int) -> str:
    """Convert bytes to a human-readable MB string, or ``"Unknown"``."""
    if content_length <= 0:
        return "Unknown"
    return f"{content_length / (1024 * 1024):.1f} MB"


def format_plays(plays: int | None) -> str:
    if plays is None:
        return "—"
    return f"{plays:,}"


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def render_tracks(tracks: Sequence[Track], *, title: str = "Search Results") -> None:
    """Print a Rich table listing *tracks*."""
    table_class = _import_rich_table()
    table = table_class(
        title=title,
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("#", justify="right", style="dim", width=4)
    table.add_column("Title", justify="left", min_width=20)
    table.add_column("Artist", justify="left", min_width=12)
    table.add_column("Length", justify="right", min_width=6)
    table.add_column("Plays", justify="right", min_width=8)
    table.add_column("URL", justify="left", style="cyan")

    for i, track in enumerate(tracks, start=1):
        artist = track.artists[0].name if track.artists else ""
        table.add_row(
            str(i),
            escape(track.title),
            escape(artist),
            format_duration(track.duration_ms),
            format_plays(track.plays),
            track.id,
        )

    console.print()
    console.print(table)
    console.print()


def render_renditions(renditions: Sequence[ResolvedStreamUrl]) -> None:
    """Print a Rich table of resolved audio renditions."""
    table_class = _import_rich_table()
    table = table_class(
        title="Audio Renditions",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("itag", justify="right", style="dim")
    table.add_column("Bitrate", justify="right", min_width=8)
    table.add_column("Container", justify="left", min_width=8)
    table.add_column("MIME", justify="left")
    table.add_column("Size", justify="right", min_width=10)

    for resolved in renditions:
        rendition = resolved.rendition
        table.add_row(
            rendition.format_id,
            f"{rendition.average_bitrate} kbps",
            rendition.container,
            rendition.mime_type,
            format_size(rendition.content_length),
        )

    console.print(table)
    console.print()


def render_track_detail(track: Track) -> None:
    """Print the header lines of a detailed track and its renditions."""
    console.print()
    console.print(f"[bold cyan]Title:[/bold cyan]    {escape(track.title)}")
    if track.artists:
        console.print(f"[bold cyan]Artist:[/bold cyan]   {escape(track.artists[0].name)}")
    console.print(f"[bold cyan]Duration:[/bold cyan] {format_duration(track.duration_ms)}")
    console.print(f"[bold cyan]Plays:[/bold cyan]    {format_plays(track.plays)}")
    if track.album is not None:
        console.print(f"[bold cyan]Album:[/bold cyan]    {escape(track.album.title)}")
    console.print()

    if not track.is_playable:
        console.print("[bold red]No playable audio rendition.[/bold red]")
        return
    render_renditions(track.renditions)


def render_quick_search(items: Sequence[QuickSearchItem]) -> None:
    """Print quick-search hints and media items, in result order."""
    if not items:
        console.print("[dim]No suggestions.[/dim]")
        return
    for item in items:
        if isinstance(item, QuickSearchMedia):
            console.print(f"  [green]♪[/green] {escape(item.media.title)}  [dim]{item.media.id}[/dim]")
        elif item.extras.get("type") == "fallback":
            console.print(f"  [yellow]?[/yellow] {escape(item.query)}  [dim]({escape(item.extras.get('error', ''))})[/dim]")
        else:
            console.print(f"  [cyan]›[/cyan] {escape(item.query)}")
