"""Pure audio-rendition filtering, sorting, and quality selection.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic, and trivially unit-testable.
The functions accept either :class:`AudioRendition` or
:class:`ResolvedStreamUrl` entries; only the bitrate is inspected.

Pipeline order (enforced by :func:`select_audio_renditions`):

1. **Filter** — keep only audio-only streams.
2. **Deduplicate** — collapse renditions sharing a ``format_id``.
3. **Sort** — bitrate desc.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar, Union

from echo_youtube.core.models import AudioRendition, ResolvedStreamUrl

_R = TypeVar("_R", bound=Union[AudioRendition, ResolvedStreamUrl])


def _bitrate(entry: AudioRendition | ResolvedStreamUrl) -> int:
    if isinstance(entry, ResolvedStreamUrl):
        return entry.bitrate
    return entry.average_bitrate


# ---------------------------------------------------------------------------
# 1. Filter
# ---------------------------------------------------------------------------

def filter_audio_only(
    renditions: Sequence[AudioRendition],
) -> list[AudioRendition]:
    """Return only renditions whose MIME type is ``audio/*``."""
    return [r for r in renditions if r.mime_type.startswith("audio/")]


# ---------------------------------------------------------------------------
# 2. Deduplicate
# ---------------------------------------------------------------------------

def deduplicate_renditions(
    renditions: Sequence[AudioRendition],
) -> list[AudioRendition]:
    """Remove duplicates keyed by ``format_id``; the first occurrence wins."""
    seen: set[str] = set()
    result: list[AudioRendition] = []
    for rendition in renditions:
        if rendition.format_id not in seen:
            seen.add(rendition.format_id)
            result.append(rendition)
    return result


# ---------------------------------------------------------------------------
# 3. Sort and pick
# ---------------------------------------------------------------------------

def sort_by_bitrate(renditions: Sequence[_R]) -> list[_R]:
    """Sort by bitrate, highest first.  The sort is stable."""
    return sorted(renditions, key=_bitrate, reverse=True)


def get_best_audio_stream(renditions: Sequence[_R]) -> _R | None:
    """Return the highest-bitrate entry, or ``None`` for empty input."""
    ordered = sort_by_bitrate(renditions)
    return ordered[0] if ordered else None


def get_audio_stream_by_quality(
    renditions: Sequence[_R],
    target_bitrate: int,
) -> _R | None:
    """Return the entry whose bitrate is closest to *target_bitrate*.

    Distance is ``abs(bitrate - target_bitrate)``; on a tie the higher
    bitrate wins.  Returns ``None`` for empty input.
    """
    if not renditions:
        return None
    return min(
        renditions,
        key=lambda r: (abs(_bitrate(r) - target_bitrate), -_bitrate(r)),
    )


# ---------------------------------------------------------------------------
# Composite pipeline
# ---------------------------------------------------------------------------

def select_audio_renditions(
    renditions: Sequence[AudioRendition],
) -> list[AudioRendition]:
    """Run the full filter → deduplicate → sort pipeline.

    Returns an empty list when no audio renditions remain.
    """
    filtered = filter_audio_only(renditions)
    deduped = deduplicate_renditions(filtered)
    return sort_by_bitrate(deduped)
