"""yt-dlp backed implementation of :class:`~echo_youtube.core.protocols.ExtractionEngine`.

This module is the **only** place in the codebase that imports ``yt_dlp``.
All yt-dlp exceptions are caught here and re-raised as typed
:class:`~echo_youtube.exceptions.EchoYoutubeError` subclasses — nothing
raw escapes the infrastructure boundary.

Signature and throttling deobfuscation use yt-dlp's YouTube extractor
directly.  Those functions are not part of yt-dlp's public API, so the
adapter pins them as a versioned contract: :meth:`YtDlpEngine.verify_contract`
checks them once and fails with :class:`EngineContractError` instead of
guessing at renamed methods.

:meth:`YtDlpEngine.fetch_info` returns formats that yt-dlp has already
deciphered, so the deobfuscation methods and the embed-page lookup are
only reached for renditions that still carry a ``signatureCipher``.
"""

from __future__ import annotations

import json
import re
import threading
from collections import OrderedDict
from typing import Any
from urllib.parse import parse_qs, urlencode, urljoin, urlsplit

from echo_youtube.core.models import StreamRequest
from echo_youtube.core.protocols import Downloader
from echo_youtube.core.resolver import set_query_parameter
from echo_youtube.exceptions import (
    EchoYoutubeError,
    EngineContractError,
    EnvironmentError,
    ExtractionError,
    NotFoundError,
    append_ytdlp_upgrade_suggestion,
)
from echo_youtube.utils.constants import (
    EMBED_URL_TEMPLATE,
    SUGGEST_URL,
    USER_AGENT,
    WATCH_URL_TEMPLATE,
    YOUTUBE_BASE_URL,
)
from echo_youtube.utils.log import get_logger

logger = get_logger(__name__)

ENGINE_CONTRACT_VERSION: int = 1

REQUIRED_EXTRACTOR_METHODS: tuple[str, ...] = ("_decrypt_signature", "_decrypt_nsig")
"""YouTube extractor methods this adapter calls (contract version 1)."""

PLAYER_CACHE_SIZE: int = 32
"""Player URLs kept per engine; the least recently used entry is evicted."""

_JS_URL_PATTERN = re.compile(r'"jsUrl"\s*:\s*"([^"]+)"')


def _import_ytdlp() -> Any:
    """Import yt-dlp lazily so that ``--help`` and ``doctor`` work without it."""
    try:
        import yt_dlp
        import yt_dlp.utils
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "yt-dlp is not installed. Install with: pip install yt-dlp",
        ) from exc
    return yt_dlp


class YtDlpEngine:
    """Concrete :class:`ExtractionEngine` backed by the yt-dlp Python API.

    Usage::

        engine = YtDlpEngine(HttpxDownloader())
        engine.verify_contract()
        info = engine.fetch_info("dQw4w9WgXcQ")

    Parameters
    ----------
    downloader:
        Transport used for the pages the adapter fetches itself (embed
        page, suggestions).
    cookie, proxy:
        Forwarded to yt-dlp so that its own requests match the transport.
    player_cache_size:
        Number of player URLs kept, most recently used first.
    """

    # Substrings in yt-dlp error messages that indicate the video itself
    # is unavailable (as opposed to a transient or extraction error).
    _UNAVAILABLE_SIGNALS: tuple[str, ...] = (
        "unavailable",
        "private video",
        "removed",
        "not available",
        "account terminated",
        "video has been removed",
        "this video is no longer available",
        "incomplete youtube id",
        "is not a valid url",
    )

    def __init__(
        self,
        downloader: Downloader,
        *,
        cookie: str | None = None,
        proxy: str | None = None,
        player_cache_size: int = PLAYER_CACHE_SIZE,
    ) -> None:
        self._downloader: Downloader = downloader
        self._cookie: str | None = cookie
        self._proxy: str | None = proxy
        self._lock = threading.Lock()
        self._player_cache_size: int = max(1, player_cache_size)
        self._player_urls: OrderedDict[str, str] = OrderedDict()
        self._ydl: Any = None
        self._extractor: Any = None

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def _build_opts(self, *, flat: bool = False) -> dict[str, Any]:
        """Return yt-dlp options for metadata-only extraction."""
        headers = {"User-Agent": USER_AGENT, "Accept-Language": "en-US,en;q=0.5"}
        if self._cookie:
            headers["Cookie"] = self._cookie
        opts: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "no_color": True,
            # Do not write any files to disk.
            "skip_download": True,
            "http_headers": headers,
        }
        if self._proxy:
            opts["proxy"] = self._proxy
        if flat:
            opts["extract_flat"] = "in_playlist"
        return opts

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def verify_contract(self) -> None:
        """Check that the installed yt-dlp exposes contract version 1.

        Raises
        ------
        EnvironmentError
            If yt-dlp is not installed.
        EngineContractError
            If the YouTube extractor lacks a required method.
        """
        self._youtube_extractor()

    def _youtube_extractor(self) -> Any:
        with self._lock:
            if self._extractor is not None:
                return self._extractor

            yt_dlp = _import_ytdlp()
            ydl = yt_dlp.YoutubeDL(self._build_opts())
            extractor = ydl.get_info_extractor("Youtube")
            missing = [
                name
                for name in REQUIRED_EXTRACTOR_METHODS
                if not callable(getattr(extractor, name, None))
            ]
            if missing:
                ydl.close()
                raise EngineContractError(
                    f"yt-dlp {yt_dlp.version.__version__} does not satisfy engine "
                    f"contract v{ENGINE_CONTRACT_VERSION}: missing {', '.join(missing)}",
                    hint=append_ytdlp_upgrade_suggestion(
                        "Install a yt-dlp release supported by echo-youtube.",
                    ),
                )
            self._ydl = ydl
            self._extractor = extractor
            return extractor

    # ------------------------------------------------------------------
    # Protocol methods: extraction
    # ------------------------------------------------------------------

    def search(self, query: str, limit: int) -> list[dict[str, Any]]:
        """Return up to *limit* flat search entries for *query*."""
        info = self._extract(f"ytsearch{limit}:{query}", flat=True)
        entries = info.get("entries") or []
        return [dict(entry) for entry in entries if isinstance(entry, dict)][:limit]

    def fetch_info(self, video_id: str) -> dict[str, Any]:
        """Return the full info dict for *video_id*."""
        return self._extract(WATCH_URL_TEMPLATE.format(video_id=video_id), flat=False)

    def suggestions(self, query: str) -> list[str]:
        """Return search-box suggestions from YouTube's suggest endpoint."""
        url = f"{SUGGEST_URL}?{urlencode({'client': 'firefox', 'ds': 'yt', 'q': query})}"
        response = self._downloader.execute(StreamRequest(url=url))
        if not response.ok:
            raise ExtractionError(f"Suggestion endpoint answered HTTP {response.status_code}")
        try:
            payload = json.loads(response.body)
        except ValueError as exc:
            raise ExtractionError(f"Malformed suggestion payload: {exc}") from exc
        if not isinstance(payload, list) or len(payload) < 2 or not isinstance(payload[1], list):
            raise ExtractionError("Unexpected suggestion payload shape.")
        return [str(s) for s in payload[1]]

    # ------------------------------------------------------------------
    # Protocol methods: deobfuscation
    # ------------------------------------------------------------------

    def deobfuscate_signature(self, video_id: str, signature: str) -> str:
        """Deobfuscate a cipher ``s`` value with *video_id*'s player script."""
        extractor = self._youtube_extractor()
        player_url = self.player_url(video_id)
        return self._call_extractor(
            extractor._decrypt_signature, signature, video_id, player_url,
        )

    def deobfuscate_throttling(self, video_id: str, url: str) -> str:
        """Return *url* with its ``n`` parameter decoded; unchanged when absent."""
        n_values = parse_qs(urlsplit(url).query).get("n")
        if not n_values:
            return url
        extractor = self._youtube_extractor()
        player_url = self.player_url(video_id)
        decoded = self._call_extractor(
            extractor._decrypt_nsig, n_values[0], video_id, player_url,
        )
        return set_query_parameter(url, "n", decoded)

    def player_url(self, video_id: str) -> str:
        """Locate the player script serving *video_id* via its embed page.

        Results are cached per video id in a small LRU map.
        """
        with self._lock:
            cached = self._player_urls.get(video_id)
            if cached is not None:
                self._player_urls.move_to_end(video_id)
        if cached is not None:
            return cached

        embed_url = EMBED_URL_TEMPLATE.format(video_id=video_id)
        response = self._downloader.execute(StreamRequest(url=embed_url))
        match = _JS_URL_PATTERN.search(response.body)
        if match is None:
            raise ExtractionError(f"Could not locate the player script for {video_id}.")
        player_url = urljoin(YOUTUBE_BASE_URL, match.group(1).replace("\\/", "/"))
        logger.debug("Player for %s: %s", video_id, player_url)

        with self._lock:
            self._player_urls[video_id] = player_url
            self._player_urls.move_to_end(video_id)
            while len(self._player_urls) > self._player_cache_size:
                self._player_urls.popitem(last=False)
        return player_url

    def close(self) -> None:
        with self._lock:
            if self._ydl is not None:
                self._ydl.close()
            self._ydl = None
            self._extractor = None
            self._player_urls.clear()

    # ------------------------------------------------------------------
    # yt-dlp boundary
    # ------------------------------------------------------------------

    def _extract(self, url: str, *, flat: bool) -> dict[str, Any]:
        yt_dlp = _import_ytdlp()
        try:
            with yt_dlp.YoutubeDL(self._build_opts(flat=flat)) as ydl:
                info: Any = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as exc:
            self._raise_mapped(exc)
        except Exception as exc:
            raise ExtractionError(
                f"Unexpected yt-dlp error: {exc}",
            ) from exc

        if info is None:
            raise NotFoundError(
                "yt-dlp returned no metadata for the given URL.",
                hint="The URL may not point to a valid video.",
            )
        if not isinstance(info, dict):
            raise ExtractionError(
                "yt-dlp returned an unexpected data structure.",
            )
        return dict(info)  # shallow copy

    @staticmethod
    def _call_extractor(func: Any, *args: Any) -> str:
        try:
            result = func(*args)
        except EchoYoutubeError:
            raise
        except Exception as exc:
            raise ExtractionError(f"yt-dlp deobfuscation failed: {exc}") from exc
        if not isinstance(result, str) or not result:
            raise ExtractionError("yt-dlp deobfuscation returned no value.")
        return result

    @classmethod
    def _raise_mapped(cls, exc: Exception) -> None:
        """Translate a yt-dlp ``DownloadError`` into a domain exception.

        Always raises — the ``Never`` return type is implicit via
        ``raise`` at every exit path.
        """
        msg_lower = str(exc).lower()
        if any(signal in msg_lower for signal in cls._UNAVAILABLE_SIGNALS):
            raise NotFoundError(
                str(exc),
                hint="The video may be private, removed, or geo-restricted.",
            ) from exc
        raise ExtractionError(
            str(exc),
            hint=append_ytdlp_upgrade_suggestion("Extraction failed."),
        ) from exc
