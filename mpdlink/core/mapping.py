"""
Mapping from decoded records to typed entities.

Every mapper is total: it never raises on a record. Each field is read
independently:
- a missing field maps to None;
- a numeric field that does not parse maps to None (logged at DEBUG),
  the same way for every numeric field;
- a boolean field is True for ``"1"`` and False for any other value.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TypeVar

from mpdlink.core.models import PlaybackState, PlaylistEntry, Song, Stats, Status
from mpdlink.protocol.records import Record

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _number(record: Record, key: str, convert: Callable[[str], T]) -> T | None:
    raw = record.get(key)
    if raw is None:
        return None
    try:
        return convert(raw.strip())
    except ValueError:
        logger.debug("Unparseable %s value for %r: %r", convert.__name__, key, raw)
        return None


def get_int(record: Record, key: str) -> int | None:
    """Read an integer field."""
    return _number(record, key, int)


def get_float(record: Record, key: str) -> float | None:
    """Read a floating point field."""
    return _number(record, key, float)


def get_bool(record: Record, key: str) -> bool | None:
    """Read a ``0``/``1`` flag."""
    raw = record.get(key)
    if raw is None:
        return None
    return raw.strip() == "1"


def get_state(record: Record) -> PlaybackState | None:
    raw = record.get("state")
    if raw is None:
        return None
    try:
        return PlaybackState(raw.strip())
    except ValueError:
        logger.debug("Unknown playback state: %r", raw)
        return None


def song_from_record(record: Record) -> Song | None:
    """
    Build a Song from a record.

    Returns:
        The song, or None if the record has no (or an empty) ``file`` field,
        which means it is not a song record.
    """
    file = record.get("file")
    if not file:
        return None

    return Song(
        file=file,
        artist=record.get("artist"),
        album=record.get("album"),
        albumartist=record.get("albumartist"),
        title=record.get("title"),
        track=record.get("track"),
        genre=record.get("genre"),
        date=record.get("date"),
        time=record.get("time"),
        duration=get_float(record, "duration"),
        pos=get_int(record, "pos"),
        id=get_int(record, "id"),
    )


def songs_from_records(records: Iterable[Record]) -> list[Song]:
    """Build songs from records, dropping records that are not songs."""
    songs = []
    for record in records:
        song = song_from_record(record)
        if song is not None:
            songs.append(song)
    return songs


def status_from_record(record: Record) -> Status:
    """Build a Status from a ``status`` reply record."""
    return Status(
        volume=get_int(record, "volume"),
        repeat=get_bool(record, "repeat"),
        random=get_bool(record, "random"),
        single=get_bool(record, "single"),
        consume=get_bool(record, "consume"),
        state=get_state(record),
        playlist=get_int(record, "playlist"),
        playlistlength=get_int(record, "playlistlength"),
        song=get_int(record, "song"),
        songid=get_int(record, "songid"),
        nextsong=get_int(record, "nextsong"),
        nextsongid=get_int(record, "nextsongid"),
        time=record.get("time"),
        elapsed=get_float(record, "elapsed"),
        duration=get_float(record, "duration"),
        bitrate=get_int(record, "bitrate"),
        audio=record.get("audio"),
        mixrampdb=get_float(record, "mixrampdb"),
        error=record.get("error"),
    )


def stats_from_record(record: Record) -> Stats:
    """Build Stats from a ``stats`` reply record."""
    return Stats(
        artists=get_int(record, "artists"),
        albums=get_int(record, "albums"),
        songs=get_int(record, "songs"),
        uptime=get_int(record, "uptime"),
        db_playtime=get_int(record, "db_playtime"),
        db_update=get_int(record, "db_update"),
        playtime=get_int(record, "playtime"),
    )


def playlists_from_records(records: Iterable[Record]) -> list[PlaylistEntry]:
    """Build stored-playlist entries, skipping records without a name."""
    return [
        PlaylistEntry(name=record["playlist"], last_modified=record.get("last-modified"))
        for record in records
        if record.get("playlist")
    ]
