"""Wire-level constants shared by the transport and the converter.

YouTube and its CDN reject requests that do not look like they come
from a real browser, so both header sets below are fixed policy rather
than configuration.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

YOUTUBE_BASE_URL: str = "https://www.youtube.com"
WATCH_URL_TEMPLATE: str = YOUTUBE_BASE_URL + "/watch?v={video_id}"
EMBED_URL_TEMPLATE: str = YOUTUBE_BASE_URL + "/embed/{video_id}"
SUGGEST_URL: str = "https://suggestqueries.google.com/complete/search"

HTTP_TIMEOUT_SECONDS: float = 30.0
"""Connect/read/write timeout for every request.  Not configurable."""

USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_REQUEST_HEADERS: Mapping[str, str] = MappingProxyType({
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Cache-Control": "max-age=0",
})

MEDIA_REQUEST_HEADERS: Mapping[str, str] = MappingProxyType({
    "User-Agent": USER_AGENT,
    "Accept": "audio/webm,audio/ogg,audio/wav,audio/*;q=0.9,application/ogg;q=0.7,video/*;q=0.6,*/*;q=0.5",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
    "Sec-Fetch-Dest": "audio",
    "Sec-Fetch-Mode": "no-cors",
    "Sec-Fetch-Site": "cross-site",
    "Referer": YOUTUBE_BASE_URL + "/",
})

DEFAULT_STREAM_QUALITY: int = 128
"""Bitrate (kbps) advertised for search-result placeholders."""
