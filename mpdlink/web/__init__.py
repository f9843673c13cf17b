"""
mpdlink Web Layer.

This package exposes the MPD client over HTTP: read-only resources
(status, queue, library, stats) and playback/queue actions.
"""

from mpdlink.web.server import WebServer

__all__ = [
    "WebServer",
]
