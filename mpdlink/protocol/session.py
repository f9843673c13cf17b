"""
MPD connection session.

The session owns the single logical channel to one daemon endpoint. The
protocol is strictly half-duplex: a request line is written, then exactly
one reply is read, terminated by ``OK`` or by an ``ACK`` error line. There
is no pipelining and no cancel primitive.

Concurrency model:
    All commands go through one asyncio.Lock, whose waiters are woken in
    arrival order. At most one command is in flight; every other caller is
    suspended until its turn. A transport failure (or a timeout, or a caller
    cancelled mid-command) drops the connection, and every caller still
    queued on that connection fails with ConnectionLostError.

    connect() and disconnect() do not take the command lock, but are
    mutually exclusive with each other through a separate lock.

Transport:
    TCP by default. When the host is an absolute filesystem path the
    session connects to a Unix domain socket instead and ignores the port.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from mpdlink.protocol.commands import (
    GREETING_PREFIX,
    RESPONSE_ERR,
    RESPONSE_OK,
    AckInfo,
    build_command_line,
    parse_ack,
)

if TYPE_CHECKING:
    from asyncio import StreamReader, StreamWriter

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6600
DEFAULT_CONNECT_TIMEOUT = 10.0

# Per-line read limit. Tag values (lyrics, comments) can exceed asyncio's 64 KiB default.
READ_LIMIT = 1024 * 1024


class MpdError(Exception):
    """Base exception for MPD client errors."""

    pass


class MpdConnectionError(MpdError):
    """The daemon could not be reached, or the channel is unusable."""

    pass


class NotConnectedError(MpdConnectionError):
    """A command was issued while the session is not connected."""

    pass


class ConnectionLostError(MpdConnectionError):
    """The transport failed while a command was queued or in flight."""

    pass


class ProtocolError(MpdError):
    """The daemon did not speak the expected protocol."""

    pass


class CommandRejectedError(MpdError):
    """The daemon answered a command with an ``ACK`` error line."""

    def __init__(self, ack: AckInfo, request: str = "") -> None:
        self.ack = ack
        self.request = request
        super().__init__(f"{ack.message} (code {ack.code}, command {ack.command or request!r})")

    @property
    def code(self) -> int:
        return self.ack.code


class ConnectionState(Enum):
    """Lifecycle of the session's connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class MpdSession:
    """
    A serialized request/reply channel to one MPD daemon.

    Example:
        async with MpdSession("localhost", 6600) as session:
            body = await session.execute("status")

    Attributes:
        host: Daemon hostname, IP address, or Unix socket path.
        port: Daemon TCP port (unused for Unix sockets).
        connect_timeout: Seconds allowed for connect plus greeting, or None.
        command_timeout: Seconds allowed per command, or None. A timeout is
            fatal for the connection, not just for the command.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        *,
        connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT,
        command_timeout: float | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout

        self._reader: StreamReader | None = None
        self._writer: StreamWriter | None = None
        self._state = ConnectionState.DISCONNECTED
        self._protocol_version = ""

        # Bumped whenever a connection ends; callers queued on an older
        # generation fail with ConnectionLostError.
        self._generation = 0

        self._command_lock = asyncio.Lock()
        self._lifecycle_lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        """Get the current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if the session is connected."""
        return self._state is ConnectionState.CONNECTED

    @property
    def protocol_version(self) -> str:
        """Protocol version announced in the daemon greeting ("" before connect)."""
        return self._protocol_version

    @property
    def uses_unix_socket(self) -> bool:
        """Check if the host names a Unix domain socket."""
        return self.host.startswith("/")

    @property
    def address(self) -> str:
        """Human-readable endpoint address."""
        if self.uses_unix_socket:
            return self.host
        return f"{self.host}:{self.port}"

    async def __aenter__(self) -> MpdSession:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """
        Open the connection and read the daemon greeting.

        Calling connect() on a connected session is a no-op.

        Raises:
            MpdConnectionError: If the daemon cannot be reached in time.
            ProtocolError: If the greeting is not an MPD greeting.
        """
        async with self._lifecycle_lock:
            if self._state is ConnectionState.CONNECTED:
                return

            self._state = ConnectionState.CONNECTING
            logger.debug("Connecting to MPD at %s", self.address)

            try:
                reader, writer, version = await asyncio.wait_for(
                    self._handshake(),
                    timeout=self.connect_timeout,
                )
            except (OSError, asyncio.TimeoutError, asyncio.IncompleteReadError) as e:
                self._state = ConnectionState.DISCONNECTED
                raise MpdConnectionError(f"Cannot connect to MPD at {self.address}: {e}") from e
            except BaseException:
                self._state = ConnectionState.DISCONNECTED
                raise

            self._reader = reader
            self._writer = writer
            self._protocol_version = version
            self._state = ConnectionState.CONNECTED

            logger.info("Connected to MPD at %s (protocol %s)", self.address, version)

    async def _handshake(self) -> tuple[StreamReader, StreamWriter, str]:
        """Open the streams and consume the ``OK MPD <version>`` greeting."""
        if self.uses_unix_socket:
            reader, writer = await asyncio.open_unix_connection(self.host, limit=READ_LIMIT)
        else:
            reader, writer = await asyncio.open_connection(self.host, self.port, limit=READ_LIMIT)

        try:
            raw = await reader.readline()
            if not raw:
                raise asyncio.IncompleteReadError(partial=b"", expected=None)

            greeting = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if not greeting.startswith(GREETING_PREFIX):
                raise ProtocolError(f"Unexpected greeting from {self.address}: {greeting!r}")
        except BaseException:
            writer.close()
            try:
                await writer.wait_closed()
            except Exception as e:
                logger.debug("Ignoring close error after failed handshake: %s", e)
            raise

        return reader, writer, greeting[len(GREETING_PREFIX) :].strip()

    async def disconnect(self) -> None:
        """
        Close the connection.

        Idempotent, and never raises on close failures (they are logged), so
        it is safe to call from any shutdown hook.
        """
        async with self._lifecycle_lock:
            writer = self._writer
            self._invalidate()

            if writer is None:
                return

            logger.info("Disconnecting from MPD at %s", self.address)
            try:
                writer.close()
                await writer.wait_closed()
            except Exception as e:
                logger.warning("Error while closing MPD connection: %s", e)

    def _invalidate(self) -> None:
        """Forget the current connection and fail every caller queued on it."""
        if self._writer is not None:
            self._generation += 1
        self._reader = None
        self._writer = None
        self._state = ConnectionState.DISCONNECTED

    async def _drop(self, generation: int, reason: str) -> None:
        """Tear down a connection after a fatal transport event."""
        if generation != self._generation or self._writer is None:
            return

        writer = self._writer
        self._invalidate()
        logger.warning("Connection to MPD at %s lost: %s", self.address, reason)

        try:
            writer.close()
            await writer.wait_closed()
        except Exception as e:
            logger.debug("Ignoring close error after connection loss: %s", e)

    # =========================================================================
    # Commands
    # =========================================================================

    async def execute(self, command: str, args: Iterable[object] | str = ()) -> str:
        """
        Send one command and wait for its reply.

        Args:
            command: Command name.
            args: A sequence of tokens, or one pre-formatted argument string.

        Returns:
            The reply body: every line before the ``OK`` terminator, joined
            with newlines ("" for replies without data).

        Raises:
            NotConnectedError: If the session is not connected.
            ConnectionLostError: If the connection is lost (or times out)
                before the reply is complete.
            CommandRejectedError: If the daemon rejects the command.
            ValueError: If an argument cannot be written on one line.
        """
        if self._state is not ConnectionState.CONNECTED:
            raise NotConnectedError(f"Not connected to MPD at {self.address}")

        line = build_command_line(command, args)
        generation = self._generation

        async with self._command_lock:
            reader, writer = self._reader, self._writer
            if generation != self._generation or reader is None or writer is None:
                raise ConnectionLostError(f"Connection to MPD at {self.address} was lost")

            logger.debug("MPD <- %s", line)

            try:
                return await asyncio.wait_for(
                    self._roundtrip(reader, writer, line),
                    timeout=self.command_timeout,
                )
            except CommandRejectedError:
                raise
            except asyncio.TimeoutError as e:
                await self._drop(generation, f"no reply to {command!r} within {self.command_timeout}s")
                raise ConnectionLostError(f"MPD did not reply to {command!r} in time") from e
            except ConnectionLostError as e:
                await self._drop(generation, str(e))
                raise
            except (OSError, asyncio.IncompleteReadError, ValueError) as e:
                await self._drop(generation, str(e) or type(e).__name__)
                raise ConnectionLostError(f"Connection to MPD lost during {command!r}: {e}") from e
            except asyncio.CancelledError:
                # The reply is still on the wire; the channel cannot be reused.
                await self._drop(generation, f"{command!r} cancelled while in flight")
                raise

    async def _roundtrip(self, reader: StreamReader, writer: StreamWriter, line: str) -> str:
        """Write one request line and collect its reply body."""
        writer.write(f"{line}\n".encode("utf-8"))
        await writer.drain()

        body: list[str] = []
        while True:
            raw = await reader.readline()
            if not raw:
                raise ConnectionLostError("Connection closed by MPD")

            text = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if text == RESPONSE_OK:
                return "\n".join(body)
            if text.startswith(RESPONSE_ERR + " "):
                ack = parse_ack(text)
                logger.debug("MPD rejected %r: %s", line, ack.message)
                raise CommandRejectedError(ack, request=line)
            body.append(text)

    def __repr__(self) -> str:
        return f"MpdSession(address={self.address!r}, state={self._state.name})"
