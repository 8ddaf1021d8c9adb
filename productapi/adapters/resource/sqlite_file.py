"""SQLite file database resource.

A throwaway database file in a temporary directory. Lets environment
sessions run where no container runtime is available.
"""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path

from productapi.core.errors import SessionStateError
from productapi.core.ports import DatabaseResourcePort

logger = logging.getLogger(__name__)


class SQLiteFileResource(DatabaseResourcePort):
    """Database resource backed by a temporary SQLite file."""

    def __init__(self, filename: str = "products.db", parent_dir: str | None = None):
        """Initialize the resource.

        Args:
            filename: Database file name inside the temporary directory.
            parent_dir: Where to create the temporary directory. Defaults to
                the system temp directory.
        """
        self.filename = filename
        self.parent_dir = parent_dir
        self.directory: Path | None = None
        self._disposed = False

    @property
    def db_path(self) -> Path:
        if self.directory is None:
            raise SessionStateError("SQLite resource has not been started")
        return self.directory / self.filename

    async def start(self) -> None:
        if self._disposed:
            raise SessionStateError("SQLite resource was disposed")
        directory = await asyncio.to_thread(
            tempfile.mkdtemp, prefix="productapi-", dir=self.parent_dir
        )
        self.directory = Path(directory)
        logger.info(f"SQLite resource started at {self.db_path}")

    async def is_ready(self) -> bool:
        return self.directory is not None and self.directory.is_dir()

    def connection_string(self) -> str:
        return f"sqlite:///{self.db_path}"

    async def stop(self) -> None:
        logger.debug("SQLite resource stopped")

    async def dispose(self) -> None:
        """Delete the temporary directory.

        Raises:
            SessionStateError: If the resource was already disposed.
        """
        if self._disposed:
            raise SessionStateError("SQLite resource already disposed")
        self._disposed = True
        if self.directory is not None:
            await asyncio.to_thread(shutil.rmtree, self.directory, True)
            logger.info(f"SQLite resource removed {self.directory}")
