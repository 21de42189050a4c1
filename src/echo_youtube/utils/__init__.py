"""Shared utilities — constants, configuration, and logging setup.

Rules
-----
* No business logic.
* No network I/O.
* Importable by any layer.
"""

from echo_youtube.utils.config import ExtensionConfig
from echo_youtube.utils.log import get_logger, setup_logger

__all__: list[str] = ["ExtensionConfig", "get_logger", "setup_logger"]
