"""Application host: runs the Product API on an aiohttp server.

The host is built from one explicit Settings instance; nothing is read
from process-wide state after construction.
"""

import logging

import httpx
from aiohttp import web

from productapi.adapters.http.app import create_app
from productapi.config import Settings
from productapi.core.dispatch import Dispatcher
from productapi.core.errors import SessionStateError
from productapi.core.ports import ApplicationHostPort, ProductStorePort

logger = logging.getLogger(__name__)


class ApplicationHost(ApplicationHostPort):
    """aiohttp server bound to a product store."""

    def __init__(self, settings: Settings, store: ProductStorePort):
        """Initialize the host.

        Args:
            settings: Configuration for this host only.
            store: Store used by the handlers and the readiness endpoint.
        """
        self.settings = settings
        self._store = store
        self.dispatcher = Dispatcher.for_store(store)
        self._runner: web.AppRunner | None = None
        self._base_url: str | None = None
        self._disposed = False

    @property
    def store(self) -> ProductStorePort:
        return self._store

    @property
    def base_url(self) -> str:
        if self._base_url is None:
            raise SessionStateError("Application host is not running")
        return self._base_url

    @property
    def running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Run migrations if enabled, then start listening."""
        if self._disposed:
            raise SessionStateError("Application host was disposed")
        if self._runner is not None:
            logger.warning("Application host already running")
            return

        if self.settings.run_migrations:
            await self.run_migrations()

        runner = web.AppRunner(create_app(self.dispatcher, self._store), access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self.settings.http_host, self.settings.http_port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner

        host, port = runner.addresses[0][:2]
        if host in ("0.0.0.0", "::"):
            host = "127.0.0.1"
        elif ":" in host:
            host = f"[{host}]"
        self._base_url = f"http://{host}:{port}"
        logger.info(f"Application host listening on {self._base_url}")

    async def run_migrations(self) -> None:
        """Create the schema if it does not exist."""
        await self._store.ensure_schema()
        logger.info("Db migration had been run successfully.")

    def create_client(self) -> httpx.AsyncClient:
        """Return an HTTP client bound to the running host."""
        return httpx.AsyncClient(base_url=self.base_url, timeout=30.0)

    async def stop(self) -> None:
        """Stop serving requests."""
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        self._base_url = None
        logger.info("Application host stopped")

    async def dispose(self) -> None:
        """Release the store.

        Raises:
            SessionStateError: If the host was already disposed.
        """
        if self._disposed:
            raise SessionStateError("Application host already disposed")
        self._disposed = True
        if self._runner is not None:
            await self.stop()
        await self._store.close()
        logger.debug("Application host disposed")
