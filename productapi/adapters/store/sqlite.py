"""SQLite product store adapter.

Implements ProductStorePort using SQLite with aiosqlite for async access.
Prices are stored as canonical decimal text so they round-trip exactly.
"""

import asyncio
import logging
import sqlite3
from decimal import Decimal
from pathlib import Path

import aiosqlite

from productapi.core.errors import StorageError
from productapi.core.models import ChangeSet, Product
from productapi.core.ports import ProductStorePort

logger = logging.getLogger(__name__)

SCHEME = "sqlite:///"


def path_from_connection_string(connection_string: str) -> str:
    """Extract the database path from a sqlite:/// connection string.

    ``sqlite:///data/app.db`` is relative, ``sqlite:////tmp/app.db`` absolute.

    Raises:
        ValueError: If the string is not a sqlite:/// URL or has no path.
    """
    if not connection_string.startswith(SCHEME):
        raise ValueError(f"Not a SQLite connection string: {connection_string}")
    path = connection_string[len(SCHEME):]
    if not path:
        raise ValueError("SQLite connection string has no database path")
    return path


class SQLiteProductStore(ProductStorePort):
    """SQLite-backed product store with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._pool_size = pool_size

    @classmethod
    def from_connection_string(cls, connection_string: str, pool_size: int = 5) -> "SQLiteProductStore":
        return cls(db_path=path_from_connection_string(connection_string), pool_size=pool_size)

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            return await aiosqlite.connect(str(self.db_path))
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Cannot open SQLite database {self.db_path}: {e}") from e

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def ensure_schema(self) -> None:
        """Create the products table if it does not exist."""
        conn = await self._get_connection()
        try:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS products (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    price TEXT NOT NULL
                )
                """
            )
            await conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to create products table: {e}") from e
        finally:
            await self._return_connection(conn)

    async def ping(self) -> None:
        """Run a trivial query."""
        conn = await self._get_connection()
        try:
            cursor = await conn.execute("SELECT 1")
            await cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"SQLite ping failed: {e}") from e
        finally:
            await self._return_connection(conn)

    async def get(self, product_id: int) -> Product | None:
        """Look up a product by its id."""
        conn = await self._get_connection()
        try:
            cursor = await conn.execute(
                "SELECT id, name, price FROM products WHERE id = ?", (product_id,)
            )
            row = await cursor.fetchone()
        except (sqlite3.Error, OverflowError) as e:
            raise StorageError(f"Failed to read product {product_id}: {e}") from e
        finally:
            await self._return_connection(conn)

        if row is None:
            return None
        return Product(id=row[0], name=row[1], price=Decimal(row[2]))

    async def apply_changes(self, changes: ChangeSet) -> list[int]:
        """Apply a change set in one transaction."""
        conn = await self._get_connection()
        try:
            assigned_ids: list[int] = []
            for product in changes.inserts:
                cursor = await conn.execute(
                    "INSERT INTO products (name, price) VALUES (?, ?)",
                    (product.name, str(product.price)),
                )
                assert cursor.lastrowid is not None
                assigned_ids.append(cursor.lastrowid)

            for product in changes.updates:
                cursor = await conn.execute(
                    "UPDATE products SET name = ?, price = ? WHERE id = ?",
                    (product.name, str(product.price), product.id),
                )
                if cursor.rowcount == 0:
                    raise StorageError(f"Update of product {product.id} affected no rows")

            for product_id in changes.deletes:
                cursor = await conn.execute(
                    "DELETE FROM products WHERE id = ?", (product_id,)
                )
                if cursor.rowcount == 0:
                    raise StorageError(f"Delete of product {product_id} affected no rows")

            await conn.commit()
            return assigned_ids
        except StorageError:
            await conn.rollback()
            raise
        except (sqlite3.Error, OverflowError) as e:
            await conn.rollback()
            raise StorageError(f"Failed to apply product changes: {e}") from e
        finally:
            await self._return_connection(conn)
