"""``echo-youtube doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment satisfies echo-youtube's requirements,
including whether the installed yt-dlp still exposes the signature
functions the engine adapter relies on.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import platform
import sys

from echo_youtube.cli import exit_codes
from echo_youtube.cli.console import console
from echo_youtube.exceptions import EchoYoutubeError
from echo_youtube.version import __version__


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    major, minor = sys.version_info[:2]
    ok = major >= 3 and minor >= 10
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _ytdlp_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the yt-dlp version row."""
    try:
        from yt_dlp.version import __version__ as ydl_ver

        return "yt-dlp", ydl_ver, "[green]OK[/green]"
    except ImportError:
        return "yt-dlp", "NOT INSTALLED", "[red]FAIL[/red]"


def _httpx_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the httpx version row."""
    try:
        import httpx
    except ImportError:
        return "httpx", "NOT INSTALLED", "[red]FAIL[/red]"
    return "httpx", str(httpx.__version__), "[green]OK[/green]"


def _engine_contract_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the yt-dlp engine contract row."""
    try:
        from echo_youtube.infra.http_downloader import HttpxDownloader
        from echo_youtube.infra.ytdlp_engine import ENGINE_CONTRACT_VERSION, YtDlpEngine
    except ImportError:
        return "engine", "unavailable", "[red]FAIL[/red]"

    with HttpxDownloader() as downloader:
        engine = YtDlpEngine(downloader)
        try:
            engine.verify_contract()
        except EchoYoutubeError as exc:
            return "engine", str(exc).splitlines()[0], "[red]FAIL[/red]"
        finally:
            engine.close()
    return "engine", f"contract v{ENGINE_CONTRACT_VERSION}", "[green]OK[/green]"


def _os_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    release = platform.release()
    machine = platform.machine()
    value = f"{system_display} {release} ({machine})"
    return "OS", value, "[green]OK[/green]"


def _echo_youtube_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the echo-youtube version row."""
    return "echo-youtube", __version__, "[green]OK[/green]"


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    if "FAIL" in status:
        return "FAIL"
    if "WARN" in status:
        return "WARN"
    if "OK" in status:
        return "OK"
    return status


def _print_plain_doctor_table(checks: list[tuple[str, str, str]]) -> None:
    """Render doctor output without Rich."""
    print("\necho-youtube doctor", file=sys.stderr)
    print("=" * 60, file=sys.stderr)
    print(f"{'Component':<14} {'Value':<34} {'Status':<8}", file=sys.stderr)
    print("-" * 60, file=sys.stderr)
    for label, value, status in checks:
        plain_status = _status_plain(status)
        print(f"{label:<14} {value:<34} {plain_status:<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor() -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when all critical checks pass,
        :data:`exit_codes.GENERAL_ERROR` if a critical check fails.
    """
    checks = [
        _echo_youtube_version_check(),
        _python_version_check(),
        _ytdlp_version_check(),
        _httpx_version_check(),
        _engine_contract_check(),
        _os_check(),
    ]

    has_failure = any("FAIL" in status for _, _, status in checks)

    rich_available = True
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        rich_available = False

    if rich_available:
        table = Table(
            title="echo-youtube doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=12)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)

        for label, value, status in checks:
            table.add_row(label, value, status)

        console.print()
        console.print(table)
        console.print()
    else:
        _print_plain_doctor_table(checks)

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR

    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
