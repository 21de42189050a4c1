"""Extension shell — the surface the host media player talks to.

The host creates :class:`YouTubeExtension`, hands it settings, calls
:meth:`~YouTubeExtension.on_initialize` once, and then invokes the
feed/track/quick-search operations from its own worker threads.  The
shell owns the wiring only: transport → engine → resolver → converter →
services.  No business logic lives here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from echo_youtube.core.converter import TrackConverter
from echo_youtube.core.models import (
    Feed,
    QuickSearchItem,
    Streamable,
    StreamableMedia,
    Tab,
    Track,
)
from echo_youtube.core.protocols import Downloader, ExtractionEngine
from echo_youtube.core.resolver import SignatureResolver
from echo_youtube.core.search_service import SearchService
from echo_youtube.core.track_service import TrackService
from echo_youtube.exceptions import ExtensionNotInitializedError
from echo_youtube.infra.http_downloader import HttpxDownloader
from echo_youtube.infra.ytdlp_engine import YtDlpEngine
from echo_youtube.utils.config import ExtensionConfig
from echo_youtube.utils.log import get_logger, setup_logger

logger = get_logger(__name__)

SEARCH_TABS: tuple[Tab, ...] = (
    Tab("songs", "Songs"),
    Tab("videos", "Videos"),
    Tab("playlists", "Playlists"),
)


@dataclass(frozen=True, slots=True)
class SettingItem:
    """Description of one settings key the extension understands."""

    key: str
    title: str
    default: Any


class YouTubeExtension:
    """Host-facing YouTube extension.

    Parameters
    ----------
    downloader, engine:
        Optional pre-built collaborators.  When omitted,
        :meth:`on_initialize` builds an :class:`HttpxDownloader` and a
        :class:`YtDlpEngine` from the current settings.
    """

    def __init__(
        self,
        *,
        downloader: Downloader | None = None,
        engine: ExtractionEngine | None = None,
    ) -> None:
        self._config: ExtensionConfig = ExtensionConfig()
        self._downloader: Downloader | None = downloader
        self._engine: ExtractionEngine | None = engine
        self._search_service: SearchService | None = None
        self._track_service: TrackService | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def config(self) -> ExtensionConfig:
        return self._config

    def set_settings(self, settings: Mapping[str, Any] | None) -> None:
        """Store host settings; they take effect at :meth:`on_initialize`."""
        self._config = ExtensionConfig.from_settings(settings)

    def get_setting_items(self) -> list[SettingItem]:
        defaults = ExtensionConfig()
        return [
            SettingItem("preferred_bitrate", "Preferred audio bitrate (kbps)", defaults.preferred_bitrate),
            SettingItem("search_limit", "Search results per page", defaults.search_limit),
            SettingItem("quick_search_limit", "Quick search tracks", defaults.quick_search_limit),
            SettingItem("max_retries", "Network attempts per request", defaults.max_retries),
            SettingItem("proxy", "Proxy URL", defaults.proxy),
            SettingItem("cookie", "Cookie header", defaults.cookie),
            SettingItem("log_level", "Log level", defaults.log_level),
        ]

    def on_initialize(self) -> None:
        """Build the collaborators and verify the extraction engine.

        Raises
        ------
        EnvironmentError
            If yt-dlp is missing or does not satisfy the engine contract.
        """
        config = self._config
        setup_logger(level=config.logging_level)

        if self._downloader is None:
            self._downloader = HttpxDownloader(
                cookie=config.cookie,
                proxy=config.proxy,
                max_retries=config.max_retries,
                use_http2=config.use_http2,
            )
        if self._engine is None:
            engine = YtDlpEngine(self._downloader, cookie=config.cookie, proxy=config.proxy)
            engine.verify_contract()
            self._engine = engine

        converter = TrackConverter(
            SignatureResolver(self._engine),
            default_quality=config.preferred_bitrate,
        )
        self._search_service = SearchService(
            self._engine,
            converter,
            search_limit=config.search_limit,
            quick_search_limit=config.quick_search_limit,
        )
        self._track_service = TrackService(self._engine, converter)
        logger.info("YouTube extension initialized")

    def close(self) -> None:
        """Release the pooled connection and the engine's player cache."""
        if isinstance(self._engine, YtDlpEngine):
            self._engine.close()
        if isinstance(self._downloader, HttpxDownloader):
            self._downloader.close()

    # ------------------------------------------------------------------
    # Search feed / quick search
    # ------------------------------------------------------------------

    def load_search_feed(self, query: str) -> Feed:
        tracks = self._search().search(query)
        return Feed(tabs=SEARCH_TABS, items=tuple(tracks))

    def quick_search(self, query: str) -> list[QuickSearchItem]:
        return self._search().quick_search(query)

    def delete_quick_search(self, item: QuickSearchItem) -> None:
        self._search().delete_quick_search(item)

    # ------------------------------------------------------------------
    # Tracks
    # ------------------------------------------------------------------

    def load_track(self, track: Track, refresh: bool = False) -> Track:
        """Load full details; errors propagate to the host.

        Nothing is cached, so *refresh* has no additional effect.
        """
        return self._tracks().load_track(track)

    def load_streamable_media(
        self,
        streamable: Streamable,
        refresh: bool = False,
    ) -> StreamableMedia:
        """Return the playback descriptor; errors propagate to the host."""
        return self._tracks().load_streamable_media(streamable, refresh=refresh)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _search(self) -> SearchService:
        if self._search_service is None:
            raise ExtensionNotInitializedError("Call on_initialize() before searching.")
        return self._search_service

    def _tracks(self) -> TrackService:
        if self._track_service is None:
            raise ExtensionNotInitializedError("Call on_initialize() before loading tracks.")
        return self._track_service
