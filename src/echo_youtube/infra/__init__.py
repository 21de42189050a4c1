"""Infrastructure layer — external system integration.

This layer wraps all interaction with httpx and yt-dlp.  Every raw
third-party exception must be caught here and re-raised as a
:class:`~echo_youtube.exceptions.EchoYoutubeError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from echo_youtube.infra.http_downloader import HttpxDownloader
from echo_youtube.infra.ytdlp_engine import YtDlpEngine

__all__: list[str] = [
    "HttpxDownloader",
    "YtDlpEngine",
]
