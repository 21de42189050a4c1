"""Core search service — search and quick-search orchestration.

The service depends on an :class:`~echo_youtube.core.protocols.ExtractionEngine`
injected at construction time (dependency inversion), keeping the core
free of any external-system imports.

Failure policy
--------------
* Blank queries return an empty result without touching the engine.
* :meth:`SearchService.search` degrades to an empty list on failure.
* In :meth:`SearchService.quick_search`, failing suggestions degrade to
  no hints; a failing media search degrades to a single fallback hint
  carrying the error message.
* Nothing raised by the engine reaches the caller.
"""

from __future__ import annotations

from typing import Any

from echo_youtube.core.converter import TrackConverter
from echo_youtube.core.models import (
    QuickSearchItem,
    QuickSearchMedia,
    QuickSearchQuery,
    Track,
)
from echo_youtube.core.protocols import ExtractionEngine
from echo_youtube.exceptions import ConversionError
from echo_youtube.utils.log import get_logger

logger = get_logger(__name__)

QUICK_SEARCH_MIN_MEDIA_QUERY: int = 3
"""Queries shorter than this only get suggestions, no media items."""


class SearchService:
    """Stateless service that runs searches through the engine.

    Parameters
    ----------
    engine:
        Any object satisfying the :class:`ExtractionEngine` protocol.
    converter:
        Converter used to turn raw search items into tracks.
    search_limit:
        Number of results requested for one search page.
    quick_search_limit:
        Maximum media items returned by :meth:`quick_search`.
    """

    def __init__(
        self,
        engine: ExtractionEngine,
        converter: TrackConverter,
        *,
        search_limit: int = 20,
        quick_search_limit: int = 3,
    ) -> None:
        self._engine: ExtractionEngine = engine
        self._converter: TrackConverter = converter
        self._search_limit: int = search_limit
        self._quick_search_limit: int = quick_search_limit

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def search(self, query: str) -> list[Track]:
        """Return one page of tracks for *query*, in engine order."""
        if not query.strip():
            return []
        try:
            items = self._engine.search(query.strip(), self._search_limit)
        except Exception as exc:
            logger.error("Search failed for %r: %s", query, exc)
            return []
        tracks = self._convert_items(items)
        logger.info("Found %d tracks for query %r", len(tracks), query)
        return tracks

    def quick_search(self, query: str) -> list[QuickSearchItem]:
        """Return suggestion hints followed by at most a few tracks."""
        stripped = query.strip()
        if not stripped:
            return []

        hints = [
            QuickSearchQuery(
                query=suggestion,
                searched=False,
                extras={"source": "youtube", "type": "suggestion"},
            )
            for suggestion in self._suggestions(stripped)
        ]

        media: list[QuickSearchMedia] = []
        if len(stripped) >= QUICK_SEARCH_MIN_MEDIA_QUERY and self._quick_search_limit > 0:
            try:
                items = self._engine.search(stripped, self._quick_search_limit)
            except Exception as exc:
                logger.error("Quick search failed for %r: %s", query, exc)
                return [self.fallback_hint(stripped, exc)]
            tracks = self._convert_items(items[: self._quick_search_limit])
            media = [QuickSearchMedia(media=track, searched=False) for track in tracks]

        return [*hints, *media]

    def delete_quick_search(self, item: QuickSearchItem) -> None:
        """No-op: quick-search history is not stored."""
        logger.debug("Ignoring quick-search deletion of %r", item.title)

    @staticmethod
    def fallback_hint(query: str, error: BaseException) -> QuickSearchQuery:
        """Single hint returned when the quick search cannot reach the engine."""
        return QuickSearchQuery(
            query=query,
            searched=False,
            extras={"source": "youtube", "type": "fallback", "error": str(error)},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _suggestions(self, query: str) -> list[str]:
        try:
            return [s for s in self._engine.suggestions(query) if s]
        except Exception as exc:
            logger.warning("Suggestions unavailable for %r: %s", query, exc)
            return []

    def _convert_items(self, items: list[dict[str, Any]]) -> list[Track]:
        tracks: list[Track] = []
        for item in items:
            try:
                tracks.append(self._converter.to_track_from_item(item))
            except ConversionError as exc:
                logger.warning("Skipping search item: %s", exc)
        return tracks
