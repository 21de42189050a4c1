"""Core track service — detail loads and playback descriptors.

Unlike search, these operations target one specific result the user
asked for, so there is no fallback: engine and conversion errors
propagate to the caller as :class:`~echo_youtube.exceptions.EchoYoutubeError`
subclasses.

Guarantees
----------
* Pure orchestration — all I/O happens behind the engine protocol.
* Only :class:`~echo_youtube.exceptions.EchoYoutubeError` subclasses escape.
"""

from __future__ import annotations

from typing import Any

from echo_youtube.core.converter import TrackConverter
from echo_youtube.core.models import Streamable, StreamableMedia, Track
from echo_youtube.core.protocols import ExtractionEngine
from echo_youtube.core.quality import get_audio_stream_by_quality
from echo_youtube.core.video_id import extract_video_id
from echo_youtube.exceptions import (
    ConversionError,
    EchoYoutubeError,
    ExtractionError,
    InvalidURLError,
    append_ytdlp_upgrade_suggestion,
)
from echo_youtube.utils.log import get_logger

logger = get_logger(__name__)


class TrackService:
    """Loads full track details and resolves streamables into media.

    Parameters
    ----------
    engine:
        Any object satisfying the :class:`ExtractionEngine` protocol.
    converter:
        Converter used to build the detailed track.
    """

    def __init__(self, engine: ExtractionEngine, converter: TrackConverter) -> None:
        self._engine: ExtractionEngine = engine
        self._converter: TrackConverter = converter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load_track(self, track_or_url: Track | str) -> Track:
        """Fetch and convert the full details of a track.

        Raises
        ------
        InvalidURLError
            If no video id can be derived from the input.
        NotFoundError
            If the video does not exist or is unavailable.
        ExtractionError
            If the engine fails for another reason.
        ConversionError
            If the engine's record lacks required fields.
        """
        url = track_or_url.id if isinstance(track_or_url, Track) else track_or_url
        video_id = self._video_id(url)
        logger.info("Loading track details for %s", video_id)

        info = self._fetch(video_id)
        track = self._converter.to_track_from_info(info)
        if not track.is_playable:
            logger.warning("Track %s has no playable audio rendition", video_id)
        return track

    def load_streamable_media(
        self,
        streamable: Streamable,
        *,
        refresh: bool = False,
    ) -> StreamableMedia:
        """Return the playback descriptor for *streamable*.

        A streamable from a detail load already holds its audio URL and
        is used directly.  Search placeholders, and any streamable when
        *refresh* is set, are re-resolved: the track is loaded again and
        the rendition closest to ``streamable.quality`` is used.

        Raises
        ------
        ConversionError
            If no playable rendition exists for the video.
        """
        if streamable.extras.get("audioUrl") and not refresh:
            return self._converter.to_streamable_media(streamable)

        source = (
            streamable.extras.get("videoUrl")
            or streamable.extras.get("videoId")
            or streamable.extras.get("trackId")
        )
        if not source:
            raise ConversionError(
                f"Streamable {streamable.id} does not reference a video.",
            )

        track = self.load_track(source)
        chosen = get_audio_stream_by_quality(track.renditions, streamable.quality)
        if chosen is None:
            raise ConversionError(
                f"No playable audio stream for {track.title or source}.",
                hint=append_ytdlp_upgrade_suggestion(
                    "The video may be restricted in your region.",
                ),
            )
        logger.debug(
            "Picked rendition %s (%d kbps) for requested %d kbps",
            chosen.rendition_id, chosen.bitrate, streamable.quality,
        )
        return self._converter.media_from_resolved(chosen)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _video_id(url: str) -> str:
        stripped = url.strip()
        if not stripped:
            raise InvalidURLError("Track URL must not be empty.")
        if "/" not in stripped and "?" not in stripped:
            return stripped
        video_id = extract_video_id(stripped)
        if not video_id:
            raise InvalidURLError(f"Cannot find a video id in: {stripped}")
        return video_id

    def _fetch(self, video_id: str) -> dict[str, Any]:
        """Call the engine and ensure only our exceptions escape."""
        try:
            return self._engine.fetch_info(video_id)
        except EchoYoutubeError:
            raise
        except Exception as exc:
            raise ExtractionError(
                f"Unexpected engine error: {exc}",
            ) from exc
