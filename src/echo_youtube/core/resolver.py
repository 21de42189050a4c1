"""Signature and throttling-parameter resolution for audio renditions.

YouTube protects some stream URLs with a ``signatureCipher`` blob: a
query string holding the obfuscated signature (``s``), the name of the
URL parameter that must carry the clear signature (``sp``), and the base
stream URL (``url``).  The clear signature is produced by a function
buried in the player script, which differs between player versions, so
the work is delegated to the extraction engine keyed by video id.  The
resulting URL then goes through the engine's throttling (``n``
parameter) decoder; without it the CDN serves the stream at a crawl.

With :class:`~echo_youtube.infra.ytdlp_engine.YtDlpEngine`, yt-dlp's
own extraction already deciphers the formats it returns, so renditions
arrive with a direct ``url`` and take the pass-through branch.  The
cipher branch serves engines that hand over raw ``signatureCipher``
formats.

Guarantees
----------
* No I/O of its own — all network work happens inside the engine.
* A URL is returned only when every step succeeded; a partially
  deobfuscated URL is never surfaced.
* Only :class:`~echo_youtube.exceptions.ResolutionError` escapes
  :meth:`SignatureResolver.resolve_stream_url`.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

from echo_youtube.core.models import AudioRendition, ResolvedStreamUrl
from echo_youtube.core.protocols import ExtractionEngine
from echo_youtube.core.quality import sort_by_bitrate
from echo_youtube.exceptions import ResolutionError, ResolutionFailure
from echo_youtube.utils.log import get_logger

logger = get_logger(__name__)

_REQUIRED_CIPHER_FIELDS: tuple[str, ...] = ("s", "sp", "url")


def parse_cipher(cipher: str) -> dict[str, str]:
    """Parse a ``signatureCipher`` blob into its ``s``, ``sp`` and ``url`` fields.

    Raises
    ------
    ResolutionError
        With reason ``MISSING_CIPHER_FIELD`` when any field is absent.
    """
    params = parse_qs(cipher, keep_blank_values=False)
    fields: dict[str, str] = {}
    for name in _REQUIRED_CIPHER_FIELDS:
        values = params.get(name)
        if not values:
            raise ResolutionError(
                f"Could not parse cipher: missing '{name}' field.",
                reason=ResolutionFailure.MISSING_CIPHER_FIELD,
            )
        fields[name] = values[0]
    return fields


def set_query_parameter(url: str, name: str, value: str) -> str:
    """Return *url* with query parameter *name* set to *value*.

    An existing parameter of that name is replaced in place; all other
    parameters keep their order.
    """
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    replaced = False
    updated: list[tuple[str, str]] = []
    for key, existing in query:
        if key == name:
            if not replaced:
                updated.append((key, value))
                replaced = True
            continue
        updated.append((key, existing))
    if not replaced:
        updated.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(updated)))


class SignatureResolver:
    """Stateless resolver turning renditions into playable URLs.

    Parameters
    ----------
    engine:
        Any object satisfying the :class:`ExtractionEngine` protocol.
    """

    def __init__(self, engine: ExtractionEngine) -> None:
        self._engine: ExtractionEngine = engine

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_stream_url(self, rendition: AudioRendition, video_id: str) -> str:
        """Return the playable URL for *rendition* of video *video_id*.

        A rendition that already carries a direct URL is returned as-is.

        Raises
        ------
        ResolutionError
            When the cipher is malformed or any deobfuscation step fails.
        """
        if rendition.url:
            return rendition.url

        if not rendition.cipher:
            raise ResolutionError(
                f"Rendition {rendition.format_id} has neither a URL nor a cipher.",
                reason=ResolutionFailure.NO_URL,
            )

        cipher = parse_cipher(rendition.cipher)

        try:
            signature = self._engine.deobfuscate_signature(video_id, cipher["s"])
        except Exception as exc:
            raise ResolutionError(
                f"Signature deobfuscation failed for {video_id}: {exc}",
                reason=ResolutionFailure.DEOBFUSCATION_FAILED,
            ) from exc

        signed_url = set_query_parameter(cipher["url"], cipher["sp"], signature)

        try:
            return self._engine.deobfuscate_throttling(video_id, signed_url)
        except Exception as exc:
            raise ResolutionError(
                f"Throttling parameter decoding failed for {video_id}: {exc}",
                reason=ResolutionFailure.THROTTLING_FAILED,
            ) from exc

    def resolve(self, rendition: AudioRendition, video_id: str) -> ResolvedStreamUrl:
        """Resolve *rendition* and stamp the result with the current UTC time."""
        playable_url = self.resolve_stream_url(rendition, video_id)
        return ResolvedStreamUrl(
            rendition=rendition,
            playable_url=playable_url,
            resolved_at=datetime.now(timezone.utc),
        )

    def resolve_all(
        self,
        renditions: Sequence[AudioRendition],
        video_id: str,
    ) -> list[ResolvedStreamUrl]:
        """Resolve every rendition, dropping the ones that fail.

        Renditions are resolved one after another.  The survivors are
        returned highest bitrate first; an empty list means nothing for
        this video is playable.
        """
        resolved: list[ResolvedStreamUrl] = []
        for rendition in renditions:
            try:
                resolved.append(self.resolve(rendition, video_id))
            except ResolutionError as exc:
                logger.warning(
                    "Dropping rendition %s of %s (%s): %s",
                    rendition.format_id, video_id, exc.reason.value, exc,
                )
        logger.debug(
            "Resolved %d/%d renditions for %s", len(resolved), len(renditions), video_id,
        )
        return sort_by_bitrate(resolved)
