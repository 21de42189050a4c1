"""Video-id extraction from the URL shapes YouTube hands out.

Pure functions — no I/O, fully deterministic.
"""

from __future__ import annotations

import re

VIDEO_ID_LENGTH: int = 11

_VIDEO_ID_CHARS = re.compile(r"^[A-Za-z0-9_-]{11}$")

# Order matters: the first pattern that matches wins.  A pattern only
# matches an id of exactly 11 characters.
_ID = r"([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"
_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"youtube\.com/watch\?(?:[^#]*&)?v=" + _ID),
    re.compile(r"youtu\.be/" + _ID),
    re.compile(r"youtube\.com/embed/" + _ID),
    re.compile(r"youtube\.com/v/" + _ID),
    re.compile(r"youtube\.com/shorts/" + _ID),
)


def extract_video_id(url: str) -> str:
    """Return the video id contained in *url*.

    Tries the ``watch?v=``, ``youtu.be/``, ``/embed/``, ``/v/`` and
    ``/shorts/`` shapes in that order; each only accepts an 11-character
    id.  When none matches, falls back to the last path segment truncated
    to 11 characters.

    The fallback is best effort: it can yield a plausible-looking id that
    is wrong, and callers cannot tell it apart from a real match.
    """
    for pattern in _URL_PATTERNS:
        match = pattern.search(url)
        if match is not None:
            return match.group(1)

    path = url.split("?", 1)[0].split("#", 1)[0].rstrip("/")
    return path.rsplit("/", 1)[-1][:VIDEO_ID_LENGTH]


def is_valid_video_id(candidate: str) -> bool:
    """Return ``True`` when *candidate* has the shape of a YouTube video id."""
    return bool(_VIDEO_ID_CHARS.match(candidate))
