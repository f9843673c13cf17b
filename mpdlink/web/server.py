"""
Web Server Module for mpdlink.

This module provides the WebServer class that creates and manages the
FastAPI application, registers all routes, and maps MPD errors to HTTP
responses:

- MpdConnectionError (daemon unreachable, connection lost) -> 503
- CommandRejectedError (daemon ACK)                       -> 502
- ValueError (bad arguments)                              -> 400
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mpdlink import __version__
from mpdlink.protocol.session import CommandRejectedError, MpdConnectionError
from mpdlink.web.routes.api import register_api_routes

if TYPE_CHECKING:
    from mpdlink.client import MpdClient

logger = logging.getLogger(__name__)


class WebServer:
    """
    FastAPI-based web server exposing one MpdClient over HTTP.
    """

    def __init__(self, client: MpdClient) -> None:
        """
        Initialize the WebServer.

        Args:
            client: The MPD client the routes operate on
        """
        self.client = client

        self.app = FastAPI(
            title="mpdlink",
            description="HTTP bridge for the Music Player Daemon",
            version=__version__,
        )

        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._host = "127.0.0.1"
        self._port = 3000

        self._register_error_handlers()
        self._register_routes()

    def _register_error_handlers(self) -> None:
        @self.app.exception_handler(MpdConnectionError)
        async def _connection_error(request: Request, exc: MpdConnectionError) -> JSONResponse:
            logger.warning("MPD unavailable for %s: %s", request.url.path, exc)
            return JSONResponse(status_code=503, content={"detail": str(exc)})

        @self.app.exception_handler(CommandRejectedError)
        async def _command_rejected(request: Request, exc: CommandRejectedError) -> JSONResponse:
            return JSONResponse(
                status_code=502,
                content={"detail": str(exc), "code": exc.code, "command": exc.ack.command},
            )

        @self.app.exception_handler(ValueError)
        async def _bad_value(request: Request, exc: ValueError) -> JSONResponse:
            return JSONResponse(status_code=400, content={"detail": str(exc)})

    def _register_routes(self) -> None:
        """Register all routes with the FastAPI app."""

        @self.app.get("/health")
        async def health_check() -> dict[str, object]:
            """Health check endpoint. Does not connect to MPD."""
            return {
                "status": "ok",
                "server": "mpdlink",
                "mpd_connected": self.client.is_connected,
            }

        register_api_routes(self.app, client=self.client)

    async def start(self, host: str = "127.0.0.1", port: int = 3000) -> None:
        """
        Start the web server in the background.

        Args:
            host: Host address to bind to
            port: Port to listen on
        """
        self._host = host
        self._port = port

        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(self._server.serve())

        logger.info("Web server started on http://%s:%d", host, port)

    async def stop(self) -> None:
        """Stop the web server."""
        if self._server is not None:
            self._server.should_exit = True
            self._server = None

        if self._serve_task is not None:
            await self._serve_task
            self._serve_task = None

        logger.info("Web server stopped")

    @property
    def port(self) -> int:
        """Get the server port."""
        return self._port

    @property
    def host(self) -> str:
        """Get the server host."""
        return self._host
