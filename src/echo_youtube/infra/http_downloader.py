"""httpx backed implementation of :class:`~echo_youtube.core.protocols.Downloader`.

This module is the **only** place in the codebase that imports ``httpx``.
All httpx exceptions are caught here and re-raised as typed
:class:`~echo_youtube.exceptions.TransportError` subclasses — nothing raw
escapes the infrastructure boundary.

Retry policy
------------
* Network failures and 5xx answers to GET and HEAD are retried with
  capped exponential backoff plus jitter, up to ``max_retries`` attempts
  in total.  Other methods get a single attempt.
* HTTP 429 is never retried here: it is YouTube's reCAPTCHA challenge
  and surfaces immediately as :class:`RateLimitedError`.
* Every other status is returned to the caller unchanged.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable, Mapping
from email.utils import parsedate_to_datetime

import httpx

from echo_youtube.core.models import StreamRequest, StreamResponse
from echo_youtube.exceptions import RateLimitedError, TransportError
from echo_youtube.utils.constants import DEFAULT_REQUEST_HEADERS, HTTP_TIMEOUT_SECONDS
from echo_youtube.utils.log import get_logger

logger = get_logger(__name__)

_MAX_BACKOFF_SECONDS: float = 5.0

RETRYABLE_METHODS: frozenset[str] = frozenset({"GET", "HEAD"})


def merge_headers(
    defaults: Mapping[str, str],
    overrides: Mapping[str, tuple[str, ...]],
    cookie: str | None = None,
) -> list[tuple[str, str]]:
    """Merge request headers over *defaults*, keeping multi-value headers.

    A header given once replaces the default of the same name; a header
    given several times drops the default and sends every value.  Names
    compare case-insensitively.  The cookie, when set, is appended last.
    """
    merged: list[tuple[str, str]] = list(defaults.items())
    for name, values in overrides.items():
        if not values:
            continue
        merged = [(k, v) for k, v in merged if k.lower() != name.lower()]
        merged.extend((name, value) for value in values)
    if cookie:
        merged.append(("Cookie", cookie))
    return merged


def parse_retry_after(value: str | None) -> float | None:
    """Parse ``Retry-After`` (seconds or HTTP date) into seconds from now."""
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    return max(0.0, (when - when.now(when.tzinfo)).total_seconds())


class HttpxDownloader:
    """Concrete :class:`Downloader` backed by a pooled :class:`httpx.Client`.

    The client is created once and reused; httpx clients are safe to
    share between threads, so concurrent track loads can use one
    downloader.

    Parameters
    ----------
    cookie:
        Optional ``Cookie`` header value sent with every request.
    proxy:
        Optional proxy URL.
    max_retries:
        Total attempts for network failures and 5xx responses.
    use_http2:
        Negotiate HTTP/2 (requires the ``h2`` package).
    transport:
        Optional httpx transport; tests pass an ``httpx.MockTransport``.
    sleep:
        Backoff sleep function, replaceable in tests.
    """

    def __init__(
        self,
        *,
        cookie: str | None = None,
        proxy: str | None = None,
        max_retries: int = 3,
        use_http2: bool = False,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cookie: str | None = cookie
        self.proxy: str | None = proxy
        self._max_retries: int = max(1, max_retries)
        self._sleep: Callable[[float], None] = sleep
        self._client: httpx.Client = httpx.Client(
            proxy=proxy,
            transport=transport,
            timeout=httpx.Timeout(HTTP_TIMEOUT_SECONDS),
            http2=use_http2,
            follow_redirects=True,
        )

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def execute(self, request: StreamRequest) -> StreamResponse:
        """Perform *request* and return the normalized response.

        Raises
        ------
        RateLimitedError
            When the upstream answers with HTTP 429.
        TransportError
            On network failure or a 5xx answer once retries are exhausted.
        """
        headers = merge_headers(DEFAULT_REQUEST_HEADERS, request.headers, self.cookie)
        last_error: str = ""
        attempts = self._max_retries if request.http_method in RETRYABLE_METHODS else 1

        for attempt in range(attempts):
            if attempt:
                self._backoff(attempt)

            try:
                response = self._client.request(
                    request.http_method,
                    request.url,
                    headers=headers,
                    content=request.body,
                )
            except httpx.HTTPError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                logger.warning(
                    "Attempt %d/%d: request to %s failed: %s",
                    attempt + 1, attempts, request.url, last_error,
                )
                continue

            status = response.status_code
            if status == 429:
                retry_after = parse_retry_after(response.headers.get("Retry-After"))
                response.close()
                logger.warning("Rate limited (429) by %s", request.url)
                raise RateLimitedError(
                    "reCAPTCHA challenge requested",
                    url=request.url,
                    retry_after=retry_after,
                    hint="YouTube is rate limiting this address; wait before retrying.",
                )

            if 500 <= status < 600:
                last_error = f"HTTP {status} {response.reason_phrase}"
                response.close()
                logger.warning(
                    "Attempt %d/%d: server error from %s: %s",
                    attempt + 1, attempts, request.url, last_error,
                )
                if attempt == attempts - 1:
                    raise TransportError(
                        f"Server error for {request.url}: {last_error}",
                        url=request.url,
                        status_code=status,
                    )
                continue

            logger.debug("HTTP %d for %s %s", status, request.http_method, request.url)
            return self._to_stream_response(response)

        raise TransportError(
            f"Failed to fetch {request.url} after {attempts} attempts: {last_error}",
            url=request.url,
            hint="Check your network connection or proxy settings.",
        )

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    def get_text(self, url: str, headers: Mapping[str, str] | None = None) -> str:
        """GET *url* and return the body; non-2xx answers raise :class:`TransportError`."""
        response = self.execute(StreamRequest(url=url, headers=dict(headers or {})))
        if not response.ok:
            raise TransportError(
                f"HTTP {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )
        return response.body

    def is_url_accessible(self, url: str) -> bool:
        """Return ``True`` when a HEAD request to *url* answers 2xx."""
        try:
            response = self.execute(StreamRequest(url=url, http_method="HEAD"))
        except TransportError as exc:
            logger.debug("URL not accessible: %s (%s)", url, exc)
            return False
        return response.ok

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpxDownloader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _backoff(self, attempt: int) -> None:
        delay = min(_MAX_BACKOFF_SECONDS, 0.5 * (2 ** attempt)) + random.random() * 0.25
        logger.debug("Backing off %.2fs before attempt %d", delay, attempt + 1)
        self._sleep(delay)

    @staticmethod
    def _to_stream_response(response: httpx.Response) -> StreamResponse:
        headers: dict[str, list[str]] = {}
        for name, value in response.headers.multi_items():
            headers.setdefault(name.lower(), []).append(value)
        return StreamResponse(
            status_code=response.status_code,
            status_message=response.reason_phrase,
            headers={name: tuple(values) for name, values in headers.items()},
            body=response.text,
            final_url=str(response.url),
        )
