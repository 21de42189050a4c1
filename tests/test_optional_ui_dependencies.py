"""Regression tests for the optional Rich dependency.

These tests verify bootstrap commands are resilient when Rich is
missing, and table rendering fails cleanly only when it is actually
exercised.
"""

from __future__ import annotations

import sys

import pytest

from echo_youtube.cli import exit_codes
from echo_youtube.cli.app import main
from echo_youtube.cli.console import console
from echo_youtube.cli.render import render_tracks
from echo_youtube.exceptions import EnvironmentError


def _hide_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "rich", None)
    monkeypatch.setitem(sys.modules, "rich.console", None)
    monkeypatch.setitem(sys.modules, "rich.markup", None)
    monkeypatch.setitem(sys.modules, "rich.table", None)


def test_help_works_without_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)

    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])
    assert exc_info.value.code == 0


def test_version_works_without_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)

    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0


def test_doctor_works_without_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)

    code = main(["doctor"])
    assert code in (exit_codes.SUCCESS, exit_codes.GENERAL_ERROR)


def test_console_falls_back_to_stderr(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _hide_rich(monkeypatch)

    console.print("plain message")

    assert "plain message" in capsys.readouterr().err


def test_table_rendering_errors_cleanly_when_rich_missing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _hide_rich(monkeypatch)

    with pytest.raises(EnvironmentError, match="rich is not installed"):
        render_tracks([])


def test_fallback_strips_markup_and_keeps_literal_brackets(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    from echo_youtube.exceptions import NotFoundError

    _hide_rich(monkeypatch)

    console.print_error(NotFoundError("[youtube] abc: Video unavailable", hint="Check the URL."))

    err = capsys.readouterr().err
    assert "Error: [youtube] abc: Video unavailable" in err
    assert "Hint: Check the URL." in err
    assert "[bold red]" not in err


def test_fallback_keeps_backslash_before_closing_tag(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    from echo_youtube.exceptions import NotFoundError

    _hide_rich(monkeypatch)
    title = "x\\[/y] [/b] gone"

    console.print_error(NotFoundError(title))

    assert f"Error: {title}" in capsys.readouterr().err
