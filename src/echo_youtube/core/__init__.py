"""Core / service layer — pure business logic and data transformations.

Rules
-----
* No filesystem or network I/O.
* No imports from ``cli`` or ``infra``.
* All functions must be fully typed and deterministic.
"""

from echo_youtube.core.converter import TrackConverter
from echo_youtube.core.models import (
    Album,
    Artist,
    AudioRendition,
    Feed,
    QuickSearchMedia,
    QuickSearchQuery,
    ResolvedStreamUrl,
    Streamable,
    StreamableMedia,
    StreamRequest,
    StreamResponse,
    Tab,
    Track,
)
from echo_youtube.core.protocols import Downloader, ExtractionEngine
from echo_youtube.core.resolver import SignatureResolver
from echo_youtube.core.search_service import SearchService
from echo_youtube.core.track_service import TrackService

__all__: list[str] = [
    "Album",
    "Artist",
    "AudioRendition",
    "Downloader",
    "ExtractionEngine",
    "Feed",
    "QuickSearchMedia",
    "QuickSearchQuery",
    "ResolvedStreamUrl",
    "SearchService",
    "SignatureResolver",
    "StreamRequest",
    "StreamResponse",
    "Streamable",
    "StreamableMedia",
    "Tab",
    "Track",
    "TrackConverter",
    "TrackService",
]
