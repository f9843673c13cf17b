"""
Tests for mpdlink.client.MpdClient.

The client runs against RecordingSession (see conftest.py), so these tests
check the exact request lines produced for each operation and the typed
results built from canned replies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from mpdlink.client import MpdClient, clamp_volume
from mpdlink.core.models import PlaybackState, PlaylistEntry
from mpdlink.protocol.commands import AckInfo
from mpdlink.protocol.records import ParseAnomaly
from mpdlink.protocol.session import CommandRejectedError, ConnectionLostError

if TYPE_CHECKING:
    from conftest import RecordingSession

PLAYLISTINFO = (
    "file: test1.mp3\n"
    "Artist: Test Artist 1\n"
    "Album: Test Album 1\n"
    "Title: Test Song 1\n"
    "Pos: 0\n"
    "Id: 1\n"
    "file: test2.mp3\n"
    "Artist: Test Artist 2\n"
    "Album: Test Album 2\n"
    "Title: Test Song 2\n"
    "Pos: 1\n"
    "Id: 2"
)


@pytest.fixture
def client(recording_session: RecordingSession) -> MpdClient:
    return MpdClient(recording_session)


# =============================================================================
# Playback
# =============================================================================


class TestPlayback:
    """Tests for pass-through playback operations."""

    async def test_simple_commands(self, client: MpdClient, recording_session) -> None:
        await client.play()
        await client.pause()
        await client.stop()
        await client.next()
        await client.previous()

        assert recording_session.lines == ["play", "pause 1", "stop", "next", "previous"]

    async def test_play_at_position(self, client: MpdClient, recording_session) -> None:
        await client.play(3)

        assert recording_session.lines == ["play 3"]

    async def test_seek(self, client: MpdClient, recording_session) -> None:
        await client.seek(2, 61.5)

        assert recording_session.lines == ["seek 2 61.5"]

    @pytest.mark.parametrize(
        ("requested", "sent"),
        [(-10, "setvol 0"), (110, "setvol 100"), (50.9, "setvol 50"), (0, "setvol 0"), (100, "setvol 100")],
    )
    async def test_volume_clamped(
        self, client: MpdClient, recording_session, requested: float, sent: str
    ) -> None:
        """Volume is floored and clamped before it is sent."""
        await client.set_volume(requested)

        assert recording_session.lines == [sent]

    def test_clamp_volume(self) -> None:
        assert clamp_volume(-0.5) == 0
        assert clamp_volume(99.99) == 99

    async def test_flags(self, client: MpdClient, recording_session) -> None:
        """Playback option flags are sent as 1/0."""
        await client.set_repeat(True)
        await client.set_random(False)
        await client.set_single(True)
        await client.set_consume(False)

        assert recording_session.lines == ["repeat 1", "random 0", "single 1", "consume 0"]


# =============================================================================
# State
# =============================================================================


class TestState:
    """Tests for status, current song and stats."""

    async def test_status(self, client: MpdClient, recording_session) -> None:
        recording_session.responses["status"] = "volume: 50\nrepeat: 1\nstate: play\nsong: 0"

        status = await client.status()

        assert status.volume == 50
        assert status.repeat is True
        assert status.state is PlaybackState.PLAYING
        assert status.song == 0

    async def test_status_repeat_off(self, client: MpdClient, recording_session) -> None:
        recording_session.responses["status"] = "volume: 50\nrepeat: 0\nstate: stop"

        status = await client.status()

        assert status.repeat is False

    async def test_current_song(self, client: MpdClient, recording_session) -> None:
        recording_session.responses["currentsong"] = (
            "file: music/test.mp3\nArtist: Test Artist\nTitle: Test Song\nPos: 0\nId: 1"
        )

        song = await client.current_song()

        assert song is not None
        assert song.file == "music/test.mp3"
        assert song.artist == "Test Artist"
        assert song.pos == 0

    async def test_no_current_song(self, client: MpdClient) -> None:
        """An empty currentsong reply means no song."""
        assert await client.current_song() is None

    async def test_stats(self, client: MpdClient, recording_session) -> None:
        recording_session.responses["stats"] = "artists: 2\nalbums: 3\nsongs: 10"

        stats = await client.stats()

        assert (stats.artists, stats.albums, stats.songs) == (2, 3, 10)

    async def test_parse_anomalies_reported(self, recording_session) -> None:
        anomalies: list[ParseAnomaly] = []
        client = MpdClient(recording_session, on_parse_anomaly=anomalies.append)
        recording_session.responses["status"] = "volume: 50\nnot a field\nstate: stop"

        status = await client.status()

        assert status.volume == 50
        assert anomalies == [ParseAnomaly(line_number=2, line="not a field")]


# =============================================================================
# Queue
# =============================================================================


class TestQueue:
    """Tests for queue operations."""

    async def test_playlist_info(self, client: MpdClient, recording_session) -> None:
        recording_session.responses["playlistinfo"] = PLAYLISTINFO

        songs = await client.playlist_info()

        assert [song.title for song in songs] == ["Test Song 1", "Test Song 2"]
        assert [song.id for song in songs] == [1, 2]

    async def test_empty_queue(self, client: MpdClient) -> None:
        assert await client.playlist_info() == []

    async def test_add_is_quoted(self, client: MpdClient, recording_session) -> None:
        """Queue URIs are always sent in the quoted encoding."""
        await client.playlist_add("Rock/AC\\DC/It's \"Live\".mp3")
        await client.playlist_add("plain.mp3")

        assert recording_session.lines == [
            'add "Rock/AC\\\\DC/It\'s \\"Live\\".mp3"',
            'add "plain.mp3"',
        ]

    async def test_delete_and_clear(self, client: MpdClient, recording_session) -> None:
        await client.playlist_delete(4)
        await client.playlist_clear()

        assert recording_session.lines == ["delete 4", "clear"]


# =============================================================================
# Database
# =============================================================================


class TestDatabase:
    """Tests for database lookups."""

    async def test_find_exact(self, client: MpdClient, recording_session) -> None:
        recording_session.responses['find "artist" "Test Artist 2"'] = (
            "file: test2.mp3\nArtist: Test Artist 2\nTitle: Test Song 2"
        )

        songs = await client.find("artist", "Test Artist 2")

        assert recording_session.lines == ['find "artist" "Test Artist 2"']
        assert len(songs) == 1
        assert songs[0].artist == "Test Artist 2"

    async def test_find_has_no_fallbacks(self, client: MpdClient, recording_session) -> None:
        """An empty find result is final."""
        assert await client.find("title", "Nothing") == []
        assert len(recording_session.lines) == 1

    async def test_find_unknown_field(self, client: MpdClient, recording_session) -> None:
        with pytest.raises(ValueError):
            await client.find("composer", "Bach")

        assert recording_session.lines == []

    async def test_list_all_info_drops_directories(
        self, client: MpdClient, recording_session
    ) -> None:
        recording_session.responses["listallinfo"] = (
            "directory: Rock\n"
            "Last-Modified: 2023-01-01T00:00:00Z\n"
            "file: Rock/a.mp3\n"
            "Title: A\n"
            "playlist: Rock/best.m3u\n"
            "Last-Modified: 2023-01-01T00:00:00Z\n"
            "file: Rock/b.mp3\n"
            "Title: B"
        )

        songs = await client.list_all_info()

        assert recording_session.lines == ["listallinfo"]
        assert [song.file for song in songs] == ["Rock/a.mp3", "Rock/b.mp3"]
        assert songs[0].title == "A"

    async def test_list_all_info_path(self, client: MpdClient, recording_session) -> None:
        await client.list_all_info("Rock/Best Of")

        assert recording_session.lines == ['listallinfo "Rock/Best Of"']

    async def test_list_playlists(self, client: MpdClient, recording_session) -> None:
        recording_session.responses["listplaylists"] = (
            "playlist: Test Playlist 1\n"
            "Last-Modified: 2023-01-01T00:00:00Z\n"
            "playlist: Test Playlist 2\n"
            "Last-Modified: 2023-01-02T00:00:00Z"
        )

        playlists = await client.list_playlists()

        assert playlists == [
            PlaylistEntry("Test Playlist 1", "2023-01-01T00:00:00Z"),
            PlaylistEntry("Test Playlist 2", "2023-01-02T00:00:00Z"),
        ]


# =============================================================================
# Errors
# =============================================================================


class TestErrors:
    """Session errors reach the caller unchanged."""

    async def test_rejection_propagates(self, client: MpdClient, recording_session) -> None:
        recording_session.responses["play"] = CommandRejectedError(
            AckInfo(code=2, index=0, command="play", message="Bad song index"), "play 99"
        )

        with pytest.raises(CommandRejectedError):
            await client.play(99)

    async def test_connection_loss_propagates(self, client: MpdClient, recording_session) -> None:
        recording_session.responses["status"] = ConnectionLostError("gone")

        with pytest.raises(ConnectionLostError):
            await client.status()
