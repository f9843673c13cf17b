"""
Shared fixtures for mpdlink tests.

FakeMpdDaemon is a small in-process MPD stand-in built on asyncio.start_server.
It answers request lines from a reply table and records what it received,
in order, so tests can check what actually went over the wire.

RecordingSession replaces MpdSession for client/resolver tests: it renders
each execute() call to its request line, records it, and answers from a
reply table without any networking.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import pytest

from mpdlink.protocol.commands import build_command_line
from mpdlink.protocol.session import MpdSession

# -----------------------------------------------------------------------------
# Fake daemon
# -----------------------------------------------------------------------------


class FakeMpdDaemon:
    """An in-process MPD-like TCP server for session tests."""

    def __init__(self, greeting: str = "OK MPD 0.23.5") -> None:
        self.greeting = greeting
        # request line -> reply body (without terminator)
        self.replies: dict[str, str] = {}
        # request line -> full ACK line
        self.acks: dict[str, str] = {}
        # request lines that never get a reply
        self.silent: set[str] = set()
        # request lines after which the daemon hangs up
        self.hang_up_on: set[str] = set()
        # seconds to wait before replying; lines arriving meanwhile are pipelined
        self.reply_delay = 0.0

        self.received: list[str] = []
        self.events: list[tuple[str, str]] = []
        self.pipelined: list[str] = []
        self.connections = 0

        self.port = 0
        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        for writer in self._writers:
            writer.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    def _reply_for(self, line: str) -> str:
        if line in self.acks:
            return f"{self.acks[line]}\n"
        body = self.replies.get(line, "")
        return f"{body}\nOK\n" if body else "OK\n"

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        self._writers.append(writer)
        writer.write(f"{self.greeting}\n".encode())
        await writer.drain()

        pending: asyncio.Future[bytes] | None = None
        try:
            while True:
                if pending is None:
                    pending = asyncio.ensure_future(reader.readline())
                raw = await pending
                pending = None
                if not raw:
                    break

                line = raw.decode().rstrip("\n")
                self.received.append(line)
                self.events.append(("recv", line))

                if line in self.hang_up_on:
                    break
                if line in self.silent:
                    continue

                if self.reply_delay:
                    pending = asyncio.ensure_future(reader.readline())
                    done, _ = await asyncio.wait({pending}, timeout=self.reply_delay)
                    if done and pending.result():
                        self.pipelined.append(pending.result().decode().rstrip("\n"))

                writer.write(self._reply_for(line).encode())
                await writer.drain()
                self.events.append(("reply", line))
        except (ConnectionError, OSError):
            pass
        finally:
            if pending is not None:
                pending.cancel()
            writer.close()


@pytest.fixture
async def make_daemon():
    """Factory for extra fake daemons (e.g. with a custom greeting); all are stopped afterwards."""
    started: list[FakeMpdDaemon] = []

    async def _make(**kwargs: str) -> FakeMpdDaemon:
        fake = FakeMpdDaemon(**kwargs)
        await fake.start()
        started.append(fake)
        return fake

    yield _make

    for fake in started:
        await fake.stop()


@pytest.fixture
async def daemon(make_daemon) -> FakeMpdDaemon:
    """Start a fake MPD daemon on an ephemeral port."""
    return await make_daemon()


@pytest.fixture
async def session(daemon: FakeMpdDaemon) -> MpdSession:
    """Create a (not yet connected) session pointing at the fake daemon."""
    s = MpdSession("127.0.0.1", daemon.port, connect_timeout=2.0)
    yield s
    await s.disconnect()


# -----------------------------------------------------------------------------
# Recording session
# -----------------------------------------------------------------------------


class RecordingSession:
    """Drop-in for MpdSession that records request lines instead of sending them."""

    def __init__(self) -> None:
        # request line (or bare command name) -> reply body or exception
        self.responses: dict[str, str | BaseException] = {}
        self.lines: list[str] = []
        self.is_connected = True
        self.connect_calls = 0

    async def connect(self) -> None:
        self.connect_calls += 1
        self.is_connected = True

    async def disconnect(self) -> None:
        self.is_connected = False

    async def execute(self, command: str, args: Iterable[object] | str = ()) -> str:
        line = build_command_line(command, args)
        self.lines.append(line)

        response = self.responses.get(line, self.responses.get(command, ""))
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def recording_session() -> RecordingSession:
    return RecordingSession()
