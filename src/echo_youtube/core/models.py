"""Domain models for echo-youtube.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access.  They carry zero I/O, zero dependencies on
external packages, and are built fresh on every search or load call.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Union

Headers = Mapping[str, tuple[str, ...]]
"""Ordered header multimap: name → every value sent or received."""


def _frozen_headers(raw: Mapping[str, object] | None) -> Headers:
    """Normalize a header mapping so that every value is a tuple of strings."""
    result: dict[str, tuple[str, ...]] = {}
    for name, value in (raw or {}).items():
        if isinstance(value, str):
            result[name] = (value,)
        else:
            result[name] = tuple(str(v) for v in value)  # type: ignore[union-attr]
    return MappingProxyType(result)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class StreamRequest:
    """One outbound HTTP request handed to the transport downloader."""

    url: str
    http_method: str = "GET"
    headers: Headers = field(default_factory=dict)
    """Single values replace the default header; several values are all sent."""
    body: bytes | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "http_method", self.http_method.upper())
        object.__setattr__(self, "headers", _frozen_headers(self.headers))


@dataclass(frozen=True, slots=True)
class StreamResponse:
    """Protocol-agnostic response produced once per request."""

    status_code: int
    status_message: str
    headers: Headers
    """Lower-cased header names mapped to every received value."""
    body: str
    final_url: str
    """URL after following redirects."""

    def header(self, name: str) -> str | None:
        """Return the first value of header *name*, or ``None``."""
        values = self.headers.get(name.lower())
        return values[0] if values else None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


# ---------------------------------------------------------------------------
# Audio renditions
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AudioRendition:
    """One encoded audio variant of a video, as reported by the engine.

    Exactly one of :attr:`url` and :attr:`cipher` is normally set: a
    direct stream URL, or an obfuscated ``signatureCipher`` blob that the
    resolver must turn into a URL.
    """

    format_id: str
    """Backend-specific identifier (the YouTube itag)."""

    mime_type: str
    average_bitrate: int
    """Average bitrate in kbps, ``0`` when unknown."""

    content_length: int
    """Size in bytes, ``0`` when unknown."""

    url: str | None
    cipher: str | None
    container: str
    """Container extension (``m4a``, ``webm``, …)."""


@dataclass(frozen=True, slots=True)
class ResolvedStreamUrl:
    """A rendition paired with its playable URL.

    Valid only for the track-load operation that produced it; YouTube
    stream URLs expire, so these are never cached beyond that.
    """

    rendition: AudioRendition
    playable_url: str
    resolved_at: datetime

    @property
    def rendition_id(self) -> str:
        return self.rendition.format_id

    @property
    def bitrate(self) -> int:
        return self.rendition.average_bitrate


# ---------------------------------------------------------------------------
# Host-facing entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Artist:
    """Uploader of a video, presented to the host as an artist."""

    id: str
    """Channel URL, or empty when unknown."""
    name: str
    cover_url: str | None = None
    extras: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Album:
    """Pseudo-album derived from a video's upload date."""

    id: str
    title: str
    cover_url: str | None
    artists: tuple[Artist, ...]
    duration_ms: int | None
    description: str | None
    subtitle: str = "Single"
    extras: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Streamable:
    """Host-facing handle to one playable (or to-be-resolved) audio stream."""

    id: str
    quality: int
    """Bitrate in kbps."""
    title: str
    extras: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StreamableMedia:
    """Playback descriptor for a progressive HTTP audio fetch."""

    uri: str
    headers: Mapping[str, str]


@dataclass(frozen=True, slots=True)
class Track:
    """A track as seen by the host.

    :attr:`renditions` is empty for search results (nothing is resolved
    yet) and holds every successfully resolved rendition, highest bitrate
    first, for detail loads.
    """

    id: str
    """Source URL of the video."""
    title: str
    artists: tuple[Artist, ...]
    duration_ms: int | None
    cover_url: str | None
    plays: int | None
    streamables: tuple[Streamable, ...]
    is_playable: bool
    album: Album | None = None
    description: str | None = None
    subtitle: str | None = None
    renditions: tuple[ResolvedStreamUrl, ...] = ()
    extras: Mapping[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class QuickSearchQuery:
    """A suggested query string."""

    query: str
    searched: bool = False
    extras: Mapping[str, str] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.query


@dataclass(frozen=True, slots=True)
class QuickSearchMedia:
    """A track offered directly from the quick-search box."""

    media: Track
    searched: bool = False

    @property
    def title(self) -> str:
        return self.media.title


QuickSearchItem = Union[QuickSearchQuery, QuickSearchMedia]


@dataclass(frozen=True, slots=True)
class Tab:
    id: str
    title: str


@dataclass(frozen=True, slots=True)
class Feed:
    """A single page of search results, offered under every tab."""

    tabs: tuple[Tab, ...]
    items: tuple[Track, ...]

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return len(self.items) > 0
