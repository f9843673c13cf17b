"""
mpdlink - An asyncio client and HTTP bridge for the Music Player Daemon.

mpdlink speaks MPD's line-oriented text protocol over a single serialized
session, maps replies to typed entities, and resolves free-text searches
through a deterministic fallback cascade.
"""

__version__ = "0.1.0"
__license__ = "GPL-2.0"

from mpdlink.client import MpdClient
from mpdlink.protocol.session import MpdSession

__all__ = ["MpdClient", "MpdSession", "__version__"]
