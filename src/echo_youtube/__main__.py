"""Allow ``python -m echo_youtube`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m echo_youtube`` behaves identically to the
``echo-youtube`` console script.
"""

from __future__ import annotations

from echo_youtube.cli.app import cli

if __name__ == "__main__":
    cli()
