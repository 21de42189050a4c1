"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from typing import Any, Protocol

from echo_youtube.core.models import StreamRequest, StreamResponse


class Downloader(Protocol):
    """Contract for the HTTP transport.

    Any object that implements :meth:`execute` with the correct
    signature satisfies this protocol structurally (no explicit
    inheritance required).
    """

    def execute(self, request: StreamRequest) -> StreamResponse:
        """Perform *request* and return the normalized response.

        Raises
        ------
        RateLimitedError
            When the upstream answers with HTTP 429.
        TransportError
            On network I/O failure or an unrecoverable server error.
        """
        ...  # pragma: no cover


class ExtractionEngine(Protocol):
    """Contract for the extraction backend (version 1).

    The engine is a black box: it parses YouTube pages and player
    scripts and hands back provider-specific dicts.  Implementations
    must map every backend exception to an
    :class:`~echo_youtube.exceptions.EchoYoutubeError` subclass.
    """

    def search(self, query: str, limit: int) -> list[dict[str, Any]]:
        """Return up to *limit* raw search-result dicts for *query*.

        Each dict carries at least ``"id"`` or ``"url"`` and usually
        ``"title"``, ``"uploader"``, ``"duration"``, ``"thumbnails"``.
        """
        ...  # pragma: no cover

    def fetch_info(self, video_id: str) -> dict[str, Any]:
        """Return the full raw info dict for *video_id*.

        The dict carries ``"id"``, ``"title"``, ``"webpage_url"`` and a
        ``"formats"`` list whose audio entries hold either ``"url"`` or
        a ``"signatureCipher"`` blob.

        Raises
        ------
        NotFoundError
            When the video does not exist or is unavailable.
        ExtractionError
            For every other extraction failure.
        """
        ...  # pragma: no cover

    def suggestions(self, query: str) -> list[str]:
        """Return search-box suggestions for *query*."""
        ...  # pragma: no cover

    def deobfuscate_signature(self, video_id: str, signature: str) -> str:
        """Deobfuscate a cipher ``s`` value with the player used by *video_id*."""
        ...  # pragma: no cover

    def deobfuscate_throttling(self, video_id: str, url: str) -> str:
        """Return *url* with its throttling ``n`` parameter decoded."""
        ...  # pragma: no cover
