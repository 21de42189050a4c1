"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``, ``doctor``)
remain functional even when Rich is not installed.  Without Rich, markup
tags are stripped and text goes to stderr as-is.
"""

from __future__ import annotations

import re
import sys
from typing import Any

from echo_youtube.exceptions import EchoYoutubeError, EnvironmentError

# Rich style tags such as ``[bold red]`` and ``[/bold red]``, unless escaped.
_MARKUP_TAG = re.compile(r"(?<!\\)\[/?[a-z][a-z0-9 _#.-]*\]")


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console() -> Any:
	"""Create a Rich console instance targeting stderr."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True, highlight=False)


def escape(text: str) -> str:
	"""Escape text that Rich would otherwise read as markup (``[youtube]``).

	Uses :func:`rich.markup.escape`.  Without Rich, every bracket is
	marked literal so that :func:`strip_markup` leaves it in place.
	"""
	try:
		from rich.markup import escape as rich_escape
	except ModuleNotFoundError:
		return text.replace("[", "\\[")
	return rich_escape(text)


def strip_markup(text: str) -> str:
	"""Remove Rich style tags from *text* and unescape literal brackets.

	Only used for the plain stderr fallback when Rich is missing.
	"""
	return _MARKUP_TAG.sub("", text).replace("\\[", "[")


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except EnvironmentError:
			plain = [strip_markup(o) if isinstance(o, str) else o for o in objects]
			print(*plain, file=sys.stderr)
			return
		rich_console.print(*objects)

	def print_error(self, exc: EchoYoutubeError) -> None:
		"""Render a typed error and its hint, if any."""
		self.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
		if exc.hint:
			self.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")


console = _ConsoleProxy()
