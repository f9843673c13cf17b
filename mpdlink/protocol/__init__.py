"""
Protocol layer for mpdlink.

This package contains the wire-level pieces of the MPD text protocol:
- records: decoding ``Key: Value`` reply text into records
- commands: request-line building and argument encodings
- session: the serialized connection to the daemon
"""

from mpdlink.protocol.session import (
    CommandRejectedError,
    ConnectionLostError,
    ConnectionState,
    MpdConnectionError,
    MpdError,
    MpdSession,
    NotConnectedError,
    ProtocolError,
)

__all__ = [
    "CommandRejectedError",
    "ConnectionLostError",
    "ConnectionState",
    "MpdConnectionError",
    "MpdError",
    "MpdSession",
    "NotConnectedError",
    "ProtocolError",
]
