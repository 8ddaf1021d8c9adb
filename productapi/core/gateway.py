"""Product gateway: a request-scoped unit of work over a ProductStorePort.

Reads go straight to the store. Adds, removes and field mutations are
staged in memory and only written by commit(), in a single store
transaction.
"""

import logging
from decimal import Decimal

from .models import ChangeSet, Product
from .ports import ProductStorePort

logger = logging.getLogger(__name__)


class ProductGateway:
    """Unit of work for products.

    Tracked products (those returned by find_by_id or committed through
    this gateway) are compared against a snapshot of their name and price
    at commit time; changed ones are written as updates.

    Not safe for concurrent use. Create one per request.
    """

    def __init__(self, store: ProductStorePort):
        self.store = store
        self._tracked: dict[int, Product] = {}
        self._snapshots: dict[int, tuple[str, Decimal]] = {}
        self._added: list[Product] = []
        self._removed: dict[int, Product] = {}

    async def find_by_id(self, product_id: int) -> Product | None:
        """Return the product with this id, or None if absent.

        Repeated lookups of the same id return the same instance.
        A product staged for removal is reported as absent.
        """
        if product_id in self._removed:
            return None
        if product_id in self._tracked:
            return self._tracked[product_id]

        product = await self.store.get(product_id)
        if product is None:
            return None

        self._track(product)
        return product

    def add(self, product: Product) -> None:
        """Stage a new product for insertion."""
        if product.id is not None:
            raise ValueError(f"Product {product.id} already has an id")
        if any(pending is product for pending in self._added):
            return
        self._added.append(product)

    def remove(self, product: Product) -> None:
        """Stage a product for deletion."""
        for index, pending in enumerate(self._added):
            if pending is product:
                del self._added[index]
                return

        if product.id is None:
            raise ValueError("Cannot remove a product that was never added")
        self._removed[product.id] = product

    @property
    def has_changes(self) -> bool:
        return not self._collect_changes().is_empty

    async def commit(self) -> int:
        """Write all staged changes.

        Returns:
            Number of rows affected.

        Raises:
            StorageError: If the store rejects the change set. Staged
                changes are kept so the caller may inspect them.
        """
        changes = self._collect_changes()
        if changes.is_empty:
            return 0

        assigned_ids = await self.store.apply_changes(changes)
        if len(assigned_ids) != len(changes.inserts):
            raise RuntimeError(
                f"Store assigned {len(assigned_ids)} ids for {len(changes.inserts)} inserts"
            )

        for product, product_id in zip(changes.inserts, assigned_ids):
            product.id = product_id
            self._track(product)
        for product in changes.updates:
            self._track(product)
        for product_id in changes.deletes:
            self._tracked.pop(product_id, None)
            self._snapshots.pop(product_id, None)

        self._added.clear()
        self._removed.clear()

        logger.debug(
            "Committed product changes",
            extra={
                "inserts": len(changes.inserts),
                "updates": len(changes.updates),
                "deletes": len(changes.deletes),
            },
        )
        return changes.size

    def _track(self, product: Product) -> None:
        assert product.id is not None
        self._tracked[product.id] = product
        self._snapshots[product.id] = (product.name, product.price)

    def _collect_changes(self) -> ChangeSet:
        updates = tuple(
            product
            for product_id, product in self._tracked.items()
            if product_id not in self._removed
            and self._snapshots[product_id] != (product.name, product.price)
        )
        return ChangeSet(
            inserts=tuple(self._added),
            updates=updates,
            deletes=tuple(self._removed),
        )
