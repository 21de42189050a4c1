"""Shared pytest fixtures and configuration for the echo-youtube test suite.

Guidelines
----------
* No internet access in any test.
* yt-dlp must be mocked at the infra boundary; httpx goes through
  ``httpx.MockTransport``.
* Core tests must be pure — no side effects.
* Tests must not depend on OS state.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from echo_youtube.core.converter import TrackConverter
from echo_youtube.core.models import AudioRendition
from echo_youtube.core.resolver import SignatureResolver


def make_rendition(**overrides: object) -> AudioRendition:
    """Factory with sensible defaults for concise tests."""
    defaults: dict[str, object] = {
        "format_id": "140",
        "mime_type": "audio/mp4",
        "average_bitrate": 128,
        "content_length": 3_000_000,
        "url": "https://rr1.googlevideo.com/videoplayback?itag=140",
        "cipher": None,
        "container": "m4a",
    }
    defaults.update(overrides)
    return AudioRendition(**defaults)  # type: ignore[arg-type]


def make_info(**overrides: Any) -> dict[str, Any]:
    """Minimal full-info dict as yt-dlp returns it for a watch page."""
    info: dict[str, Any] = {
        "id": "dQw4w9WgXcQ",
        "title": "Test Song",
        "webpage_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "uploader": "Test Channel",
        "uploader_url": "https://www.youtube.com/@test",
        "duration": 212,
        "view_count": 1_000,
        "upload_date": "20091025",
        "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        "formats": [
            {
                "format_id": "140",
                "ext": "m4a",
                "vcodec": "none",
                "acodec": "mp4a.40.2",
                "abr": 129.5,
                "filesize": 3_400_000,
                "url": "https://rr1.googlevideo.com/videoplayback?itag=140",
            },
            {
                "format_id": "251",
                "ext": "webm",
                "vcodec": "none",
                "acodec": "opus",
                "abr": 160,
                "url": "https://rr1.googlevideo.com/videoplayback?itag=251",
            },
            {
                "format_id": "137",
                "ext": "mp4",
                "vcodec": "avc1.640028",
                "acodec": "none",
                "tbr": 4000,
                "url": "https://rr1.googlevideo.com/videoplayback?itag=137",
            },
        ],
    }
    info.update(overrides)
    return info


@pytest.fixture
def engine() -> MagicMock:
    """Extraction engine double; deobfuscation is the identity by default."""
    mock = MagicMock()
    mock.deobfuscate_signature.side_effect = lambda video_id, s: s
    mock.deobfuscate_throttling.side_effect = lambda video_id, url: url
    mock.suggestions.return_value = []
    mock.search.return_value = []
    return mock


@pytest.fixture
def converter(engine: MagicMock) -> TrackConverter:
    return TrackConverter(SignatureResolver(engine))
