"""Raw extraction records → host entities.

This module maps the dicts returned by the extraction engine onto
:class:`~echo_youtube.core.models.Track` and friends.  Conversion is a
pure mapping: nothing from the source dict is retained beyond the
values copied into the new, immutable entities.

Two track variants exist:

* **search item** — cheap, no rendition resolution, one placeholder
  streamable that the track service resolves on demand;
* **full info** — every audio rendition resolved eagerly.

Missing optional fields fall back to defaults; only a missing id raises
:class:`~echo_youtube.exceptions.ConversionError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from echo_youtube.core.models import (
    Album,
    Artist,
    AudioRendition,
    ResolvedStreamUrl,
    Streamable,
    StreamableMedia,
    Track,
)
from echo_youtube.core.quality import select_audio_renditions
from echo_youtube.core.resolver import SignatureResolver
from echo_youtube.core.video_id import extract_video_id
from echo_youtube.exceptions import ConversionError
from echo_youtube.utils.constants import (
    DEFAULT_STREAM_QUALITY,
    MEDIA_REQUEST_HEADERS,
    WATCH_URL_TEMPLATE,
)

UNKNOWN_ARTIST: str = "Unknown Artist"


# ---------------------------------------------------------------------------
# Small field readers (pure)
# ---------------------------------------------------------------------------

def _str_or_none(raw: Mapping[str, Any], *keys: str) -> str | None:
    """Return the first non-empty string value among *keys*."""
    for key in keys:
        value = raw.get(key)
        if value:
            return str(value)
    return None


def _int_or_none(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _duration_ms(raw: Mapping[str, Any]) -> int | None:
    seconds = raw.get("duration")
    if seconds is None:
        return parse_duration_to_millis(raw.get("duration_string"))
    try:
        return int(float(seconds) * 1000)
    except (TypeError, ValueError):
        return None


def _thumbnail(raw: Mapping[str, Any]) -> str | None:
    """Pick ``thumbnail`` or the last (largest) entry of ``thumbnails``."""
    direct = raw.get("thumbnail")
    if direct:
        return str(direct)
    thumbnails = raw.get("thumbnails")
    if isinstance(thumbnails, list):
        for entry in reversed(thumbnails):
            if isinstance(entry, dict) and entry.get("url"):
                return str(entry["url"])
    return None


def _video_url(raw: Mapping[str, Any]) -> str:
    url = _str_or_none(raw, "webpage_url", "original_url")
    if url is None:
        candidate = raw.get("url")
        if isinstance(candidate, str) and "youtu" in candidate:
            url = candidate
    if url is None and raw.get("id"):
        url = WATCH_URL_TEMPLATE.format(video_id=raw["id"])
    if url is None:
        raise ConversionError("Raw record has neither a URL nor a video id.")
    return url


def parse_duration_to_millis(duration: str | None) -> int | None:
    """Parse a textual duration into milliseconds.

    Accepts ``MM:SS``, ``HH:MM:SS``, ``45s``, ``3m`` and plain seconds.
    Returns ``None`` for blank or unrecognized input.
    """
    if duration is None or not duration.strip():
        return None
    text = duration.strip()

    if ":" in text:
        parts: list[int] = []
        for chunk in text.split(":"):
            try:
                parts.append(int(chunk.strip()))
            except ValueError:
                parts.append(0)
        if len(parts) == 2:
            return (parts[0] * 60 + parts[1]) * 1000
        if len(parts) == 3:
            return (parts[0] * 3600 + parts[1] * 60 + parts[2]) * 1000
        return None

    try:
        if text.endswith("s"):
            return int(text[:-1]) * 1000
        if text.endswith("m"):
            return int(text[:-1]) * 60 * 1000
        return int(text) * 1000
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Converter
# ---------------------------------------------------------------------------

class TrackConverter:
    """Builds host entities from raw engine records.

    Parameters
    ----------
    resolver:
        Resolver used by the full-info variant to compute playable URLs.
    default_quality:
        Bitrate (kbps) advertised by search-result placeholders; the track
        service aims for it when the placeholder is played.
    """

    def __init__(
        self,
        resolver: SignatureResolver,
        default_quality: int = DEFAULT_STREAM_QUALITY,
    ) -> None:
        self._resolver: SignatureResolver = resolver
        self._default_quality: int = default_quality

    # ------------------------------------------------------------------
    # Artists / albums
    # ------------------------------------------------------------------

    @staticmethod
    def to_artist(raw: Mapping[str, Any]) -> Artist:
        """Build the uploader artist; every field is optional."""
        url = _str_or_none(raw, "uploader_url", "channel_url")
        return Artist(
            id=url or "",
            name=_str_or_none(raw, "uploader", "channel") or UNKNOWN_ARTIST,
            cover_url=_str_or_none(raw, "uploader_avatar", "channel_avatar"),
            extras={"url": url or "", "channelUrl": url or ""},
        )

    @staticmethod
    def _to_album(
        raw: Mapping[str, Any],
        artist: Artist,
        cover_url: str | None,
        url: str,
    ) -> Album | None:
        upload_date = _str_or_none(raw, "upload_date")
        if upload_date is None:
            return None
        return Album(
            id=f"album_{raw.get('id', '')}",
            title=f"Uploaded {upload_date}",
            cover_url=cover_url,
            artists=(artist,),
            duration_ms=_duration_ms(raw),
            description=_str_or_none(raw, "description"),
            extras={"uploadDate": upload_date, "url": url},
        )

    # ------------------------------------------------------------------
    # Renditions
    # ------------------------------------------------------------------

    @staticmethod
    def to_rendition(raw: Mapping[str, Any]) -> AudioRendition:
        """Convert one raw format dict to an :class:`AudioRendition`."""
        ext = str(raw.get("ext") or raw.get("container") or "")
        mime_type = _str_or_none(raw, "mime_type", "mimeType")
        if mime_type is None:
            mime_type = f"audio/{'mp4' if ext == 'm4a' else ext or 'unknown'}"
        bitrate = _int_or_none(raw.get("abr"))
        if bitrate is None:
            bitrate = _int_or_none(raw.get("tbr")) or 0
        size = _int_or_none(raw.get("filesize"))
        if size is None:
            size = _int_or_none(raw.get("filesize_approx")) or 0
        return AudioRendition(
            format_id=str(raw.get("format_id", "")),
            mime_type=mime_type.split(";", 1)[0].strip(),
            average_bitrate=bitrate,
            content_length=size,
            url=_str_or_none(raw, "url"),
            cipher=_str_or_none(raw, "signatureCipher", "cipher"),
            container=ext,
        )

    @classmethod
    def extract_renditions(cls, info: Mapping[str, Any]) -> list[AudioRendition]:
        """Pull every audio-only rendition out of a full info dict."""
        raw: object = info.get("formats")
        if not isinstance(raw, list):
            return []
        audio = [
            entry
            for entry in raw
            if isinstance(entry, dict)
            and entry.get("vcodec", "none") in ("none", None)
            and entry.get("acodec") != "none"
        ]
        return select_audio_renditions([cls.to_rendition(entry) for entry in audio])

    @staticmethod
    def to_streamable(resolved: ResolvedStreamUrl, info: Mapping[str, Any], url: str) -> Streamable:
        rendition = resolved.rendition
        container = rendition.container or "Unknown"
        return Streamable(
            id=f"audio_{rendition.format_id}_{rendition.average_bitrate}",
            quality=rendition.average_bitrate or DEFAULT_STREAM_QUALITY,
            title=f"Audio Stream - {container}",
            extras={
                "itag": rendition.format_id,
                "format": container,
                "bitrate": str(rendition.average_bitrate),
                "mimeType": rendition.mime_type,
                "contentLength": str(rendition.content_length),
                "trackId": str(info.get("id", "")),
                "trackTitle": str(info.get("title", "")),
                "videoUrl": url,
                "audioUrl": resolved.playable_url,
            },
        )

    # ------------------------------------------------------------------
    # Tracks
    # ------------------------------------------------------------------

    def to_track_from_item(self, item: Mapping[str, Any]) -> Track:
        """Convert a search-result item; no rendition is resolved.

        Raises
        ------
        ConversionError
            If the item carries neither a URL nor a video id.
        """
        url = _video_url(item)
        video_id = str(item.get("id") or extract_video_id(url))
        title = _str_or_none(item, "title") or ""
        artist = self.to_artist(item)
        uploader = _str_or_none(item, "uploader", "channel")
        cover_url = _thumbnail(item)
        duration_ms = _duration_ms(item)
        plays = _int_or_none(item.get("view_count"))

        placeholder = Streamable(
            id=f"server_{video_id}",
            quality=self._default_quality,
            title="Audio Stream",
            extras={
                "videoUrl": url,
                "videoId": video_id,
                "title": title,
                "uploader": uploader or "",
                "duration": str(duration_ms or 0),
                "thumbnailUrl": cover_url or "",
            },
        )

        return Track(
            id=url,
            title=title,
            artists=(artist,),
            duration_ms=duration_ms,
            cover_url=cover_url,
            plays=plays,
            streamables=(placeholder,),
            is_playable=True,
            subtitle=uploader,
            extras={
                "viewCount": str(plays or 0),
                "uploadDate": _str_or_none(item, "upload_date") or "",
                "uploaderUrl": artist.id,
                "url": url,
                "videoId": video_id,
            },
        )

    def to_track_from_info(self, info: Mapping[str, Any]) -> Track:
        """Convert a full info dict, resolving every audio rendition.

        A rendition that fails to resolve is dropped.  When none
        survives, the track is returned with ``is_playable=False``.

        Raises
        ------
        ConversionError
            If the info dict carries no video id.
        """
        video_id = _str_or_none(info, "id")
        if video_id is None:
            raise ConversionError("Video info has no id.")
        url = _video_url(info)
        cover_url = _thumbnail(info)
        artist = self.to_artist(info)
        plays = _int_or_none(info.get("view_count"))

        resolved = self._resolver.resolve_all(self.extract_renditions(info), video_id)
        streamables = tuple(self.to_streamable(r, info, url) for r in resolved)

        return Track(
            id=url,
            title=_str_or_none(info, "title") or "",
            artists=(artist,),
            album=self._to_album(info, artist, cover_url, url),
            duration_ms=_duration_ms(info),
            cover_url=cover_url,
            plays=plays,
            description=_str_or_none(info, "description"),
            subtitle=_str_or_none(info, "uploader", "channel"),
            streamables=streamables,
            renditions=tuple(resolved),
            is_playable=bool(resolved),
            extras={
                "viewCount": str(plays or 0),
                "uploadDate": _str_or_none(info, "upload_date") or "",
                "uploaderUrl": artist.id,
                "url": url,
                "videoId": video_id,
                "likeCount": str(_int_or_none(info.get("like_count")) or 0),
                "dislikeCount": str(_int_or_none(info.get("dislike_count")) or 0),
            },
        )

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    @staticmethod
    def to_streamable_media(streamable: Streamable) -> StreamableMedia:
        """Build the playback descriptor for *streamable*.

        Raises
        ------
        ConversionError
            If the streamable carries no URL at all.
        """
        uri = streamable.extras.get("audioUrl") or streamable.extras.get("videoUrl")
        if not uri:
            raise ConversionError(f"Streamable {streamable.id} has no stream URL.")
        return StreamableMedia(uri=uri, headers=dict(MEDIA_REQUEST_HEADERS))

    @staticmethod
    def media_from_resolved(resolved: ResolvedStreamUrl) -> StreamableMedia:
        return StreamableMedia(uri=resolved.playable_url, headers=dict(MEDIA_REQUEST_HEADERS))
