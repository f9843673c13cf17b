"""
Typed entities produced from decoded MPD records.

All entities are immutable and created per call. Optional fields that the
daemon did not send (or sent in an unparseable form) are None; no defaults
are substituted.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class PlaybackState(Enum):
    """Playback state as reported by the daemon's ``state`` field."""

    PLAYING = "play"
    PAUSED = "pause"
    STOPPED = "stop"


class SearchField(Enum):
    """Song attributes a search or find can match against."""

    ARTIST = "artist"
    ALBUM = "album"
    TITLE = "title"
    GENRE = "genre"
    ANY = "any"

    @classmethod
    def parse(cls, value: SearchField | str) -> SearchField:
        """
        Get a field from its protocol name (case-insensitive).

        Raises:
            ValueError: If the name is not a searchable field.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(f.value for f in cls)
            raise ValueError(f"Unknown search type {value!r} (expected one of: {allowed})") from None


@dataclass(frozen=True, slots=True)
class Song:
    """A song from the queue or the database. ``file`` is always present."""

    file: str
    artist: str | None = None
    album: str | None = None
    albumartist: str | None = None
    title: str | None = None
    track: str | None = None
    genre: str | None = None
    date: str | None = None
    time: str | None = None
    duration: float | None = None
    pos: int | None = None
    id: int | None = None

    @property
    def display_title(self) -> str:
        """Title for display, falling back to the file path."""
        return self.title or self.file

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict, omitting absent fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True, slots=True)
class Status:
    """Player status from the ``status`` command."""

    volume: int | None = None
    repeat: bool | None = None
    random: bool | None = None
    single: bool | None = None
    consume: bool | None = None
    state: PlaybackState | None = None
    playlist: int | None = None
    playlistlength: int | None = None
    song: int | None = None
    songid: int | None = None
    nextsong: int | None = None
    nextsongid: int | None = None
    time: str | None = None
    elapsed: float | None = None
    duration: float | None = None
    bitrate: int | None = None
    audio: str | None = None
    mixrampdb: float | None = None
    error: str | None = None

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict, omitting absent fields."""
        result = {k: v for k, v in asdict(self).items() if v is not None}
        if self.state is not None:
            result["state"] = self.state.value
        return result


@dataclass(frozen=True, slots=True)
class Stats:
    """Daemon and database statistics from the ``stats`` command."""

    artists: int | None = None
    albums: int | None = None
    songs: int | None = None
    uptime: int | None = None
    db_playtime: int | None = None
    db_update: int | None = None
    playtime: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True, slots=True)
class PlaylistEntry:
    """A stored playlist from ``listplaylists``."""

    name: str
    last_modified: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"playlist": self.name, "last_modified": self.last_modified}


_DECORATION_SEPARATOR = " - "


@dataclass(frozen=True, slots=True)
class SearchQuery:
    """
    A free-text search request.

    ``raw`` is kept exactly as supplied; ``normalized`` strips display
    decoration of the form ``"Artist - Title (Album)"`` down to ``"Title"``.
    """

    field: SearchField
    raw: str

    @property
    def normalized(self) -> str:
        if _DECORATION_SEPARATOR in self.raw and "(" in self.raw:
            parts = self.raw.split(_DECORATION_SEPARATOR)
            title_part = parts[1].split(" (")[0].strip()
            if title_part:
                return title_part
        return self.raw

    @property
    def is_decorated(self) -> bool:
        """Check if normalization changed the query."""
        return self.normalized != self.raw

    @property
    def undecorated_title(self) -> str:
        """The raw query up to its first ``(``, trimmed."""
        return self.raw.split("(")[0].strip()
