"""echo-youtube — YouTube audio extension for the Echo media player.

Built on the yt-dlp Python API and httpx with a strict layered
architecture.
"""

from echo_youtube.version import __version__

__all__: list[str] = ["__version__"]
