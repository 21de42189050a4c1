"""Runtime configuration for the extension.

The host hands settings over as a plain string-keyed mapping.
:meth:`ExtensionConfig.from_settings` reads the keys it recognizes,
coerces their types, and ignores everything else.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class ExtensionConfig:
    """Immutable extension settings with their defaults."""

    max_retries: int = 3
    """Attempts per request for network failures and 5xx responses."""

    search_limit: int = 20
    """Number of results requested for one search page."""

    quick_search_limit: int = 3
    """Maximum media items returned by quick search."""

    preferred_bitrate: int = 128
    """Target bitrate (kbps) used when picking a rendition to play."""

    cookie: str | None = None
    proxy: str | None = None
    use_http2: bool = False

    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if self.search_limit < 1:
            raise ValueError("search_limit must be >= 1")
        if self.quick_search_limit < 0:
            raise ValueError("quick_search_limit must be >= 0")
        if self.preferred_bitrate < 0:
            raise ValueError("preferred_bitrate must be >= 0")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

    @property
    def logging_level(self) -> int:
        """Numeric :mod:`logging` level for :attr:`log_level`."""
        return logging.getLevelName(self.log_level.upper())

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any] | None) -> ExtensionConfig:
        """Build a config from a host settings mapping.

        Raises
        ------
        ValueError
            If a recognized key holds a value that cannot be coerced.
        """
        if not settings:
            return cls()

        values: dict[str, Any] = {}
        for field in fields(cls):
            if field.name not in settings:
                continue
            raw = settings[field.name]
            if raw is None:
                continue
            values[field.name] = _coerce(field.name, raw, field.type)
        return cls(**values)


def _coerce(name: str, raw: Any, annotation: Any) -> Any:
    """Coerce *raw* to the type named by a field's string annotation."""
    kind = str(annotation)
    try:
        if kind == "int":
            return int(raw)
        if kind == "bool":
            if isinstance(raw, str):
                return raw.strip().lower() in ("1", "true", "yes", "on")
            return bool(raw)
        return str(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from exc
