"""
mpdlink - Main Server Module

This module contains the MpdLinkServer class that wires the MPD session,
the client, and the web server together and manages their lifecycle.
"""

import asyncio
import logging
import signal

from mpdlink.client import MpdClient
from mpdlink.config import Settings
from mpdlink.protocol.session import MpdError, MpdSession
from mpdlink.web.server import WebServer

logger = logging.getLogger(__name__)


class MpdLinkServer:
    """
    Runs the HTTP bridge for one MPD endpoint.

    The server owns the MpdSession it creates: it connects in the
    background on start (a failed first connect is not fatal, requests
    reconnect lazily) and disconnects on stop.
    """

    def __init__(self, settings: Settings) -> None:
        """
        Initialize the server.

        Args:
            settings: Resolved runtime settings.
        """
        self.settings = settings

        self.session = MpdSession(
            settings.mpd_host,
            settings.mpd_port,
            connect_timeout=settings.connect_timeout,
            command_timeout=settings.command_timeout,
        )
        self.client = MpdClient(self.session)
        self.web_server = WebServer(self.client)

        self._running = False
        self._shutdown_event: asyncio.Event | None = None
        self._connect_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the web server and begin connecting to MPD."""
        if self._running:
            logger.warning("Server already running")
            return

        self._running = True
        self._shutdown_event = asyncio.Event()

        await self.web_server.start(host=self.settings.http_host, port=self.settings.http_port)
        self._connect_task = asyncio.create_task(self._initial_connect())

        logger.info(
            "mpdlink started (MPD: %s | HTTP: %s:%d)",
            self.session.address,
            self.settings.http_host,
            self.settings.http_port,
        )

    async def _initial_connect(self) -> None:
        try:
            await self.client.connect()
        except MpdError as e:
            logger.error("Failed to connect to MPD server: %s", e)

    async def stop(self) -> None:
        """Stop all components gracefully."""
        if not self._running:
            return

        logger.info("Stopping mpdlink...")
        self._running = False

        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()
            try:
                await self._connect_task
            except asyncio.CancelledError:
                pass
        self._connect_task = None

        await self.web_server.stop()
        await self.client.disconnect()

        if self._shutdown_event:
            self._shutdown_event.set()

        logger.info("mpdlink stopped")

    async def run(self) -> None:
        """
        Run the server until shutdown is requested.

        This method starts all components and waits for a shutdown signal
        (SIGINT or SIGTERM).
        """
        await self.start()

        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Received shutdown signal")
            if self._shutdown_event:
                self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, handle_signal)
            except NotImplementedError:
                # Signal handlers not supported on Windows
                pass

        if self._shutdown_event:
            await self._shutdown_event.wait()

        await self.stop()

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running
