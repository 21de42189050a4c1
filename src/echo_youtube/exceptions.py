"""Custom exception hierarchy for echo-youtube.

All exceptions that cross layer boundaries must inherit from
:class:`EchoYoutubeError`.  Raw third-party exceptions (httpx, yt-dlp)
must NEVER propagate beyond the infrastructure layer — they must be
caught and re-raised as a typed subclass defined here.

Hierarchy
---------
EchoYoutubeError
├── TransportError
│   └── RateLimitedError
├── ResolutionError
├── ConversionError
├── NotFoundError
├── ExtractionError
├── ExtensionNotInitializedError
├── InvalidURLError
└── EnvironmentError
    └── EngineContractError
"""

from __future__ import annotations

import enum


class EchoYoutubeError(Exception):
    """Base exception for all echo-youtube errors.

    Every error condition surfaced to the host or the CLI must map to a
    subclass of this exception so that callers can render a clean
    message without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Transport -------------------------------------------------------------

class TransportError(EchoYoutubeError):
    """Raised on network I/O failure or an unrecoverable server error."""

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.url: str = url
        self.status_code: int | None = status_code


class RateLimitedError(TransportError):
    """Raised when the upstream answers with HTTP 429.

    YouTube uses 429 to request a reCAPTCHA challenge, so this is kept
    distinct from generic transport failures: callers back off or
    escalate instead of blindly retrying.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        retry_after: float | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, url=url, status_code=429, hint=hint)
        self.retry_after: float | None = retry_after
        """Seconds requested by the ``Retry-After`` header, if any."""


# --- Stream resolution -----------------------------------------------------

class ResolutionFailure(enum.Enum):
    """Why a rendition could not be turned into a playable URL."""

    NO_URL = "no_url"
    MISSING_CIPHER_FIELD = "missing_cipher_field"
    DEOBFUSCATION_FAILED = "deobfuscation_failed"
    THROTTLING_FAILED = "throttling_failed"


class ResolutionError(EchoYoutubeError):
    """Raised when a rendition's stream URL cannot be resolved."""

    def __init__(
        self,
        message: str,
        *,
        reason: ResolutionFailure,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.reason: ResolutionFailure = reason


# --- Conversion / lookup ---------------------------------------------------

class ConversionError(EchoYoutubeError):
    """Raised when a raw record lacks a required field or has nothing playable."""


class NotFoundError(EchoYoutubeError):
    """Raised when no video matches the requested id or URL."""


class ExtractionError(EchoYoutubeError):
    """Raised when the extraction engine fails for any other reason."""


# --- Lifecycle / input -----------------------------------------------------

class ExtensionNotInitializedError(EchoYoutubeError):
    """Raised when the extension is used before ``on_initialize()``."""


class InvalidURLError(EchoYoutubeError):
    """Raised when the provided URL fails validation."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(EchoYoutubeError):
    """Raised when a required runtime dependency is not available."""


class EngineContractError(EnvironmentError):
    """Raised when the installed yt-dlp does not expose the expected API."""


def append_ytdlp_upgrade_suggestion(hint: str) -> str:
    """Append yt-dlp upgrade guidance to an existing hint text.

    The suggestion is appended only once and preserves the original
    hint content verbatim.
    """
    marker = "Also try updating yt-dlp:"
    if marker in hint:
        return hint
    return "\n".join(
        (
            hint,
            marker,
            "    pip install --upgrade yt-dlp",
        )
    )
