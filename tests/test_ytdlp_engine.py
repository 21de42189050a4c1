"""Tests for the yt-dlp engine adapter (infra/ytdlp_engine.py).

yt-dlp is replaced by a fake module injected through ``_import_ytdlp``;
the downloader is a MagicMock.  No internet, no player scripts.

Coverage:
* Engine contract verification.
* yt-dlp error → typed exception mapping.
* Search / info extraction options.
* Suggestion payload parsing.
* Player URL discovery and caching.
* Signature and throttling deobfuscation plumbing.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest

from echo_youtube.core.models import StreamResponse
from echo_youtube.exceptions import (
    EngineContractError,
    EnvironmentError,
    ExtractionError,
    NotFoundError,
)
from echo_youtube.infra import ytdlp_engine
from echo_youtube.infra.ytdlp_engine import YtDlpEngine

_PLAYER = "https://www.youtube.com/s/player/abc123/player_ias.vflset/en_US/base.js"
_EMBED_BODY = '<script>ytcfg.set({"jsUrl":"\\/s\\/player\\/abc123\\/player_ias.vflset\\/en_US\\/base.js"});</script>'


class _FakeDownloadError(Exception):
    """Stands in for ``yt_dlp.utils.DownloadError``."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _response(body: str, status: int = 200) -> StreamResponse:
    return StreamResponse(
        status_code=status,
        status_message="OK" if status == 200 else "Error",
        headers={},
        body=body,
        final_url="https://www.youtube.com/",
    )


def _install_fake_ytdlp(
    monkeypatch: pytest.MonkeyPatch,
    *,
    extractor: Any = None,
) -> MagicMock:
    """Patch ``_import_ytdlp`` and return the fake ``YoutubeDL`` instance."""
    if extractor is None:
        extractor = MagicMock(spec=["_decrypt_signature", "_decrypt_nsig"])
    ydl = MagicMock()
    ydl.__enter__.return_value = ydl
    ydl.get_info_extractor.return_value = extractor
    fake_module = SimpleNamespace(
        YoutubeDL=MagicMock(return_value=ydl),
        utils=SimpleNamespace(DownloadError=_FakeDownloadError),
        version=SimpleNamespace(__version__="2099.01.01"),
    )
    monkeypatch.setattr(ytdlp_engine, "_import_ytdlp", lambda: fake_module)
    ydl.module = fake_module
    return ydl


@pytest.fixture
def downloader() -> MagicMock:
    mock = MagicMock()
    mock.execute.return_value = _response(_EMBED_BODY)
    return mock


@pytest.fixture
def engine(downloader: MagicMock) -> YtDlpEngine:
    return YtDlpEngine(downloader)


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------

class TestContract:
    def test_satisfied(self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        engine.verify_contract()
        ydl.get_info_extractor.assert_called_once_with("Youtube")

    def test_checked_once(self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        engine.verify_contract()
        engine.verify_contract()
        assert ydl.module.YoutubeDL.call_count == 1

    def test_missing_method_raises(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch, extractor=MagicMock(spec=["_decrypt_signature"]))

        with pytest.raises(EngineContractError, match="_decrypt_nsig") as exc_info:
            engine.verify_contract()

        assert "2099.01.01" in str(exc_info.value)
        assert exc_info.value.hint is not None
        ydl.close.assert_called_once()

    def test_contract_error_is_environment_error(self) -> None:
        assert issubclass(EngineContractError, EnvironmentError)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class TestExtraction:
    def test_search_uses_flat_extraction(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.extract_info.return_value = {"entries": [{"id": "a"}, None, {"id": "b"}, {"id": "c"}]}

        entries = engine.search("lofi", 2)

        assert entries == [{"id": "a"}, {"id": "b"}]
        ydl.extract_info.assert_called_once_with("ytsearch2:lofi", download=False)
        opts = ydl.module.YoutubeDL.call_args.args[0]
        assert opts["extract_flat"] == "in_playlist"
        assert opts["skip_download"] is True

    def test_fetch_info_uses_watch_url(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.extract_info.return_value = {"id": "dQw4w9WgXcQ"}

        info = engine.fetch_info("dQw4w9WgXcQ")

        assert info == {"id": "dQw4w9WgXcQ"}
        ydl.extract_info.assert_called_once_with(
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ", download=False,
        )
        opts = ydl.module.YoutubeDL.call_args.args[0]
        assert "extract_flat" not in opts

    def test_cookie_and_proxy_forwarded(
        self, downloader: MagicMock, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.extract_info.return_value = {"id": "x"}
        engine = YtDlpEngine(downloader, cookie="SID=1", proxy="http://proxy:8080")

        engine.fetch_info("x")

        opts = ydl.module.YoutubeDL.call_args.args[0]
        assert opts["http_headers"]["Cookie"] == "SID=1"
        assert opts["proxy"] == "http://proxy:8080"

    @pytest.mark.parametrize(
        "message",
        [
            "ERROR: [youtube] x: Video unavailable",
            "ERROR: [youtube] x: Private video. Sign in if you've been granted access",
        ],
    )
    def test_unavailable_maps_to_not_found(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch, message: str,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.extract_info.side_effect = _FakeDownloadError(message)

        with pytest.raises(NotFoundError):
            engine.fetch_info("x")

    def test_other_download_error_maps_to_extraction_error(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.extract_info.side_effect = _FakeDownloadError("ERROR: Unable to extract player response")

        with pytest.raises(ExtractionError) as exc_info:
            engine.fetch_info("x")
        assert "pip install --upgrade yt-dlp" in (exc_info.value.hint or "")

    def test_unexpected_error_is_wrapped(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.extract_info.side_effect = KeyError("videoDetails")

        with pytest.raises(ExtractionError, match="Unexpected yt-dlp error"):
            engine.fetch_info("x")

    def test_none_info_is_not_found(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.extract_info.return_value = None

        with pytest.raises(NotFoundError):
            engine.fetch_info("x")

    def test_non_dict_info_raises(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.extract_info.return_value = ["not", "a", "dict"]

        with pytest.raises(ExtractionError):
            engine.fetch_info("x")


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------

class TestSuggestions:
    def test_parses_payload(self, engine: YtDlpEngine, downloader: MagicMock) -> None:
        downloader.execute.return_value = _response('["lofi", ["lofi beats", "lofi girl"]]')

        assert engine.suggestions("lofi") == ["lofi beats", "lofi girl"]

        url = downloader.execute.call_args.args[0].url
        assert url.startswith("https://suggestqueries.google.com/complete/search?")
        assert "client=firefox" in url
        assert "ds=yt" in url
        assert "q=lofi" in url

    def test_non_ok_raises(self, engine: YtDlpEngine, downloader: MagicMock) -> None:
        downloader.execute.return_value = _response("", status=403)
        with pytest.raises(ExtractionError, match="HTTP 403"):
            engine.suggestions("lofi")

    def test_malformed_json_raises(self, engine: YtDlpEngine, downloader: MagicMock) -> None:
        downloader.execute.return_value = _response("<html>")
        with pytest.raises(ExtractionError, match="Malformed"):
            engine.suggestions("lofi")

    def test_wrong_shape_raises(self, engine: YtDlpEngine, downloader: MagicMock) -> None:
        downloader.execute.return_value = _response('{"q": "lofi"}')
        with pytest.raises(ExtractionError, match="shape"):
            engine.suggestions("lofi")


# ---------------------------------------------------------------------------
# Player URL and deobfuscation
# ---------------------------------------------------------------------------

class TestPlayerUrl:
    def test_found_in_embed_page(self, engine: YtDlpEngine, downloader: MagicMock) -> None:
        assert engine.player_url("vid") == _PLAYER
        assert downloader.execute.call_args.args[0].url == "https://www.youtube.com/embed/vid"

    def test_cached_per_video(self, engine: YtDlpEngine, downloader: MagicMock) -> None:
        engine.player_url("vid")
        engine.player_url("vid")
        assert downloader.execute.call_count == 1

    def test_least_recently_used_entry_evicted(self, downloader: MagicMock) -> None:
        engine = YtDlpEngine(downloader, player_cache_size=2)

        engine.player_url("a")
        engine.player_url("b")
        engine.player_url("a")
        engine.player_url("c")
        assert downloader.execute.call_count == 3

        engine.player_url("a")
        assert downloader.execute.call_count == 3
        engine.player_url("b")
        assert downloader.execute.call_count == 4

    def test_cache_size_bounded(self, downloader: MagicMock) -> None:
        engine = YtDlpEngine(downloader, player_cache_size=3)
        for index in range(10):
            engine.player_url(f"vid{index}")
        assert len(engine._player_urls) == 3

    def test_missing_raises(self, engine: YtDlpEngine, downloader: MagicMock) -> None:
        downloader.execute.return_value = _response("<html></html>")
        with pytest.raises(ExtractionError, match="player script"):
            engine.player_url("vid")

    def test_close_clears_cache(self, engine: YtDlpEngine, downloader: MagicMock) -> None:
        engine.player_url("vid")
        engine.close()
        engine.player_url("vid")
        assert downloader.execute.call_count == 2


class TestDeobfuscation:
    def test_signature(self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        extractor = ydl.get_info_extractor.return_value
        extractor._decrypt_signature.return_value = "CLEAR"

        assert engine.deobfuscate_signature("vid", "ENC") == "CLEAR"
        extractor._decrypt_signature.assert_called_once_with("ENC", "vid", _PLAYER)

    def test_throttling_without_n_is_unchanged(
        self, engine: YtDlpEngine, downloader: MagicMock, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        url = "https://cdn/videoplayback?itag=251&sig=XYZ"

        assert engine.deobfuscate_throttling("vid", url) == url
        ydl.get_info_extractor.return_value._decrypt_nsig.assert_not_called()
        downloader.execute.assert_not_called()

    def test_throttling_replaces_n(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        extractor = ydl.get_info_extractor.return_value
        extractor._decrypt_nsig.return_value = "fast"

        result = engine.deobfuscate_throttling("vid", "https://cdn/videoplayback?n=slow&itag=251")

        assert result == "https://cdn/videoplayback?n=fast&itag=251"
        extractor._decrypt_nsig.assert_called_once_with("slow", "vid", _PLAYER)

    def test_extractor_failure_is_wrapped(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.get_info_extractor.return_value._decrypt_signature.side_effect = ValueError("bad js")

        with pytest.raises(ExtractionError, match="deobfuscation failed"):
            engine.deobfuscate_signature("vid", "ENC")

    def test_empty_result_is_rejected(
        self, engine: YtDlpEngine, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ydl = _install_fake_ytdlp(monkeypatch)
        ydl.get_info_extractor.return_value._decrypt_signature.return_value = ""

        with pytest.raises(ExtractionError, match="no value"):
            engine.deobfuscate_signature("vid", "ENC")
