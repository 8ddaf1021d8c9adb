"""Composition root for the Product API.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Store selection from the connection string
- Application host construction
- Entry point with graceful shutdown
"""

import asyncio
import logging
import signal
import sys
from collections.abc import Mapping
from typing import Any

from productapi.adapters.http.host import ApplicationHost
from productapi.adapters.store.postgresql import PostgreSQLProductStore
from productapi.adapters.store.sqlite import SQLiteProductStore
from productapi.config import Settings, load_settings
from productapi.core.ports import ProductStorePort


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def create_store(settings: Settings) -> ProductStorePort:
    """Select and build the product store from the connection string.

    Raises:
        ValueError: If the connection string scheme is not supported.
    """
    connection_string = settings.db_connection_string
    if connection_string.startswith(("postgresql://", "postgres://")):
        return PostgreSQLProductStore.from_connection_string(
            connection_string, pool_size=settings.db_pool_size
        )
    if connection_string.startswith("sqlite:///"):
        return SQLiteProductStore.from_connection_string(
            connection_string, pool_size=settings.db_pool_size
        )

    scheme = connection_string.split(":", 1)[0]
    raise ValueError(f"Unsupported database connection string scheme: {scheme}")


def build_host(settings: Settings) -> ApplicationHost:
    """Wire store, dispatcher and HTTP layer into a host."""
    return ApplicationHost(settings=settings, store=create_store(settings))


def build_host_with_overrides(overrides: Mapping[str, Any]) -> ApplicationHost:
    """Build a host from environment settings plus explicit overrides.

    Overrides take precedence over environment variables and .env; this is
    how an environment session injects its connection string.
    """
    return build_host(load_settings(overrides=overrides))


async def bootstrap() -> None:
    """Load configuration, wire adapters, and serve until signalled.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Build and start the application host
    4. Wait for SIGINT/SIGTERM, then stop and dispose the host
    """
    settings = load_settings()

    configure_logging(settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading Product API...")

    host = build_host(settings)
    stop_event = asyncio.Event()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)
    except NotImplementedError:
        # Signal handlers not available on Windows
        logger.debug("Signal handlers not available on this platform")

    try:
        await host.start()
        await stop_event.wait()
        logger.info("Shutdown signal received")
    finally:
        await host.stop()
        await host.dispose()


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except asyncio.CancelledError:
        logger.info("Graceful shutdown completed")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
