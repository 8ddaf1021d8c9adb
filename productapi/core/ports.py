"""Port interfaces for the Product API.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Persistence**
   - ProductStorePort: Read and write the products table

2. **Environment** (used by the environment session in tests)
   - DatabaseResourcePort: An ephemeral database with a readiness signal
   - ApplicationHostPort: A running application bound to a store
"""

from abc import ABC, abstractmethod
from typing import Any

from .models import ChangeSet, Product


class ProductStorePort(ABC):
    """Port for persisting and querying products.

    Adapters implementing this port should provide transactional storage
    of Product rows in a single table.

    Implementations must handle:
    - Atomic application of a ChangeSet (all or nothing)
    - Translation of driver errors into StorageError
    - Exact decimal round-tripping of prices
    """

    @abstractmethod
    async def get(self, product_id: int) -> Product | None:
        """Retrieve a product by id.

        Args:
            product_id: Storage-assigned product id.

        Returns:
            A new Product instance if the row exists, None otherwise.

        Raises:
            StorageError: If the database is unavailable.
        """

    @abstractmethod
    async def apply_changes(self, changes: ChangeSet) -> list[int]:
        """Apply inserts, updates and deletes in one transaction.

        Args:
            changes: Pending writes. Inserts carry products without ids.

        Returns:
            Ids assigned to the inserted products, in insert order.

        Raises:
            StorageError: On connectivity or constraint failure, or when an
                update or delete affects no row. Nothing is applied.
        """

    @abstractmethod
    async def ensure_schema(self) -> None:
        """Create the products table if it does not exist.

        Idempotent: an existing table is left unchanged.

        Raises:
            StorageError: If the database rejects the statement.
        """

    @abstractmethod
    async def ping(self) -> None:
        """Check that the database accepts connections and queries.

        Raises:
            StorageError: If the probe fails.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release pooled connections."""


class DatabaseResourcePort(ABC):
    """Port for an ephemeral database whose lifecycle a session manages.

    The connection string is only known once the resource is running,
    because ports and credentials may be assigned at start.
    """

    @abstractmethod
    async def start(self) -> None:
        """Launch the resource. May return before it accepts connections."""

    @abstractmethod
    async def is_ready(self) -> bool:
        """Probe whether the resource accepts connections right now."""

    @abstractmethod
    def connection_string(self) -> str:
        """Return the connection string of the running resource.

        Raises:
            SessionStateError: If the resource has not been started.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop the resource."""

    @abstractmethod
    async def dispose(self) -> None:
        """Release everything the resource holds.

        Raises:
            SessionStateError: If the resource was already disposed.
        """


class ApplicationHostPort(ABC):
    """Port for a running instance of the application."""

    @property
    @abstractmethod
    def store(self) -> ProductStorePort:
        """The store the application itself uses."""

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Base URL the application listens on.

        Raises:
            SessionStateError: If the host has not been started.
        """

    @abstractmethod
    async def start(self) -> None:
        """Start serving requests."""

    @abstractmethod
    def create_client(self) -> Any:
        """Return an HTTP client bound to base_url.

        The returned object must provide an async ``aclose()``.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop serving requests."""

    @abstractmethod
    async def dispose(self) -> None:
        """Release the host's resources.

        Raises:
            SessionStateError: If the host was already disposed.
        """
