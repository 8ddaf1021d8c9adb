"""PostgreSQL container database resource.

Runs PostgreSQL in a container via testcontainers. The container's blocking
API is called through asyncio.to_thread. Readiness is an active probe: a
real asyncpg connection running SELECT 1, not the container state alone.
"""

import asyncio
import logging
import urllib.parse

import asyncpg
from testcontainers.postgres import PostgresContainer

from productapi.core.errors import SessionStateError
from productapi.core.ports import DatabaseResourcePort

logger = logging.getLogger(__name__)

POSTGRES_PORT = 5432


class PostgresContainerResource(DatabaseResourcePort):
    """Ephemeral PostgreSQL server in a container."""

    def __init__(
        self,
        image: str = "postgres:16-alpine",
        username: str = "postgres",
        password: str = "postgres",
        dbname: str = "products",
        probe_timeout_seconds: float = 2.0,
    ):
        """Describe the container. Nothing is created until start().

        Args:
            image: Container image to run.
            username: Database superuser name.
            password: Database superuser password.
            dbname: Database created at container start.
            probe_timeout_seconds: Connect timeout of a single readiness probe.
        """
        self.image = image
        self.username = username
        self.password = password
        self.dbname = dbname
        self.probe_timeout_seconds = probe_timeout_seconds
        self._container: PostgresContainer | None = None
        self._started = False
        self._disposed = False

    async def start(self) -> None:
        if self._disposed:
            raise SessionStateError("PostgreSQL resource was disposed")
        logger.info(f"Starting PostgreSQL container from {self.image}")
        self._container = PostgresContainer(
            image=self.image,
            username=self.username,
            password=self.password,
            dbname=self.dbname,
        )
        await asyncio.to_thread(self._container.start)
        self._started = True

    def connection_string(self) -> str:
        """Build the connection string from the mapped host and port."""
        if not self._started or self._container is None:
            raise SessionStateError("PostgreSQL resource has not been started")
        host = self._container.get_container_host_ip()
        port = self._container.get_exposed_port(POSTGRES_PORT)
        user = urllib.parse.quote(self.username, safe="")
        password = urllib.parse.quote(self.password, safe="")
        return f"postgresql://{user}:{password}@{host}:{port}/{self.dbname}"

    async def is_ready(self) -> bool:
        if not self._started:
            return False
        try:
            conn = await asyncpg.connect(
                self.connection_string(), timeout=self.probe_timeout_seconds
            )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.debug(f"PostgreSQL readiness probe failed: {e}")
            return False
        try:
            await conn.fetchval("SELECT 1")
            return True
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            logger.debug(f"PostgreSQL readiness query failed: {e}")
            return False
        finally:
            await conn.close()

    async def stop(self) -> None:
        """Stop and remove the container, including one whose start failed."""
        if self._container is None:
            return
        container, self._container = self._container, None
        self._started = False
        await asyncio.to_thread(container.stop)
        logger.info("PostgreSQL container stopped")

    async def dispose(self) -> None:
        """Mark the resource disposed; stop the container if still running.

        Raises:
            SessionStateError: If the resource was already disposed.
        """
        if self._disposed:
            raise SessionStateError("PostgreSQL resource already disposed")
        self._disposed = True
        if self._container is not None:
            await self.stop()
