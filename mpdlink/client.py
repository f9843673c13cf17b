"""
MPD command dispatcher.

MpdClient is the caller-facing API. Each operation builds its command,
writes its arguments in the command's fixed encoding, sends it through the
session, and maps the decoded reply to typed entities.

The client holds no connection state of its own: it is handed an
MpdSession, and whoever constructed that session owns its lifecycle.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from mpdlink.core.mapping import (
    playlists_from_records,
    song_from_record,
    songs_from_records,
    stats_from_record,
    status_from_record,
)
from mpdlink.core.models import PlaylistEntry, SearchField, Song, Stats, Status
from mpdlink.core.search import SearchResolver
from mpdlink.protocol.commands import ArgEncoding, encoding_for, format_quoted
from mpdlink.protocol.records import (
    DEFAULT_BOUNDARY_KEYS,
    AnomalyCallback,
    Record,
    decode_many,
    decode_one,
)
from mpdlink.protocol.session import MpdSession

logger = logging.getLogger(__name__)

VOLUME_MIN = 0
VOLUME_MAX = 100

# Keys that open a new entry in a listallinfo reply.
LISTING_BOUNDARY_KEYS = frozenset({"file", "directory", "playlist"})
PLAYLIST_BOUNDARY_KEYS = frozenset({"playlist"})


def clamp_volume(volume: float) -> int:
    """Floor a volume and clamp it to 0-100."""
    return max(VOLUME_MIN, min(VOLUME_MAX, math.floor(volume)))


class MpdClient:
    """
    Typed operations on one MPD session.

    Attributes:
        session: The session commands are sent through.
    """

    def __init__(
        self,
        session: MpdSession,
        *,
        on_parse_anomaly: AnomalyCallback | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            session: Session to send commands through.
            on_parse_anomaly: Optional callback for reply lines that could
                not be decoded (they are skipped either way).
        """
        self.session = session
        self._on_parse_anomaly = on_parse_anomaly
        self._resolver = SearchResolver(self._search_once)

    @property
    def is_connected(self) -> bool:
        return self.session.is_connected

    async def connect(self) -> None:
        await self.session.connect()

    async def disconnect(self) -> None:
        await self.session.disconnect()

    async def _command(self, command: str, args: Sequence[object] = ()) -> str:
        """Send a command with its arguments in the command's fixed encoding."""
        if args and encoding_for(command) is ArgEncoding.QUOTED:
            return await self.session.execute(command, format_quoted(args))
        return await self.session.execute(command, args)

    def _decode_one(self, body: str) -> Record:
        return decode_one(body, on_anomaly=self._on_parse_anomaly)

    def _decode_many(
        self,
        body: str,
        boundary_keys: frozenset[str] = DEFAULT_BOUNDARY_KEYS,
    ) -> list[Record]:
        return decode_many(body, boundary_keys=boundary_keys, on_anomaly=self._on_parse_anomaly)

    # =========================================================================
    # Playback Control
    # =========================================================================

    async def play(self, position: int | None = None) -> None:
        """Start playback, optionally at a queue position."""
        await self._command("play", [position] if position is not None else [])

    async def pause(self) -> None:
        await self._command("pause", ["1"])

    async def stop(self) -> None:
        await self._command("stop")

    async def next(self) -> None:
        await self._command("next")

    async def previous(self) -> None:
        await self._command("previous")

    async def seek(self, song_position: int, time_position: float) -> None:
        """Seek to a time (seconds) within the song at a queue position."""
        await self._command("seek", [song_position, time_position])

    async def set_volume(self, volume: float) -> None:
        """Set the volume. Values are floored and clamped to 0-100 before sending."""
        await self._command("setvol", [clamp_volume(volume)])

    async def set_repeat(self, enabled: bool) -> None:
        await self._command("repeat", [bool(enabled)])

    async def set_random(self, enabled: bool) -> None:
        await self._command("random", [bool(enabled)])

    async def set_single(self, enabled: bool) -> None:
        await self._command("single", [bool(enabled)])

    async def set_consume(self, enabled: bool) -> None:
        await self._command("consume", [bool(enabled)])

    # =========================================================================
    # Current State
    # =========================================================================

    async def status(self) -> Status:
        body = await self._command("status")
        return status_from_record(self._decode_one(body))

    async def current_song(self) -> Song | None:
        """Get the current song, or None when nothing is queued as current."""
        body = await self._command("currentsong")
        return song_from_record(self._decode_one(body))

    async def stats(self) -> Stats:
        body = await self._command("stats")
        return stats_from_record(self._decode_one(body))

    # =========================================================================
    # Queue
    # =========================================================================

    async def playlist_info(self) -> list[Song]:
        """List the songs in the current queue."""
        body = await self._command("playlistinfo")
        return songs_from_records(self._decode_many(body))

    async def playlist_add(self, uri: str) -> None:
        """Append a song or directory URI to the queue."""
        await self._command("add", [uri])

    async def playlist_delete(self, position: int) -> None:
        await self._command("delete", [position])

    async def playlist_clear(self) -> None:
        await self._command("clear")

    # =========================================================================
    # Database
    # =========================================================================

    async def list_all_info(self, path: str | None = None) -> list[Song]:
        """
        List every song below a database path (the whole database by default).

        Directory and playlist entries in the reply are dropped.
        """
        body = await self._command("listallinfo", [path] if path else [])
        return songs_from_records(self._decode_many(body, LISTING_BOUNDARY_KEYS))

    async def search(self, field: SearchField | str, query: str) -> list[Song]:
        """
        Substring search with the fallback cascade (see mpdlink.core.search).

        Returns:
            Matching songs; an empty list means no match.
        """
        return await self._resolver.resolve(field, query)

    async def find(self, field: SearchField | str, query: str) -> list[Song]:
        """Exact-match lookup. No fallbacks are attempted."""
        search_field = SearchField.parse(field)
        body = await self._command("find", [search_field.value, query])
        return songs_from_records(self._decode_many(body))

    async def list_playlists(self) -> list[PlaylistEntry]:
        """List the stored playlists."""
        body = await self._command("listplaylists")
        return playlists_from_records(self._decode_many(body, PLAYLIST_BOUNDARY_KEYS))

    async def _search_once(
        self,
        field: SearchField,
        query: str,
        encoding: ArgEncoding,
    ) -> list[Song]:
        """One ``search`` attempt in an explicit encoding (used by the resolver)."""
        args = [field.value, query]
        if encoding is ArgEncoding.QUOTED:
            body = await self.session.execute("search", format_quoted(args))
        else:
            body = await self.session.execute("search", args)
        return songs_from_records(self._decode_many(body))
