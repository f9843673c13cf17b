"""
mpdlink - Entry Point

Run with: python -m mpdlink
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

from mpdlink import __version__
from mpdlink.config import ConfigError, Settings, load_settings
from mpdlink.server import MpdLinkServer


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="mpdlink",
        description="mpdlink - HTTP bridge for the Music Player Daemon",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML config file",
    )

    parser.add_argument(
        "--mpd-host",
        type=str,
        default=None,
        help="MPD host or Unix socket path (default: $MPD_HOST or localhost)",
    )

    parser.add_argument(
        "--mpd-port",
        type=int,
        default=None,
        help="MPD port (default: $MPD_PORT or 6600)",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="HTTP address to bind to (default: $HTTP_HOST or 127.0.0.1)",
    )

    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="HTTP port (default: $HTTP_PORT or 3000)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Load settings and apply command line overrides."""
    settings = load_settings(args.config)

    overrides = {
        "mpd_host": args.mpd_host,
        "mpd_port": args.mpd_port,
        "http_host": args.host,
        "http_port": args.port,
    }
    return dataclasses.replace(
        settings, **{key: value for key, value in overrides.items() if value is not None}
    )


async def run_server(settings: Settings) -> None:
    """Start and run the bridge."""
    server = MpdLinkServer(settings)
    await server.run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)

    try:
        settings = resolve_settings(args)
    except (ConfigError, OSError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    logger.info("Starting mpdlink...")

    try:
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1

    logger.info("mpdlink stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
