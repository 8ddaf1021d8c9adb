"""Request handlers for product operations.

One handler per request type. Each call opens its own ProductGateway
over the shared store, so every request is its own unit of work.
"""

import logging

from .errors import NotFoundError
from .gateway import ProductGateway
from .models import (
    CreateProductCommand,
    DeleteProductCommand,
    GetProductQuery,
    Product,
    UpdateProductCommand,
    to_price,
)
from .ports import ProductStorePort

logger = logging.getLogger(__name__)


class CreateProductHandler:
    """Create a product and return its storage-assigned id."""

    def __init__(self, store: ProductStorePort):
        self.store = store

    async def handle(self, request: CreateProductCommand) -> int:
        gateway = ProductGateway(self.store)
        product = Product(name=request.name, price=request.price)
        gateway.add(product)
        await gateway.commit()

        assert product.id is not None
        logger.info(
            f"Product {product.id} created",
            extra={"product_id": product.id, "product_name": product.name},
        )
        return product.id


class GetProductHandler:
    """Look up a product. Absence is a normal outcome, not an error."""

    def __init__(self, store: ProductStorePort):
        self.store = store

    async def handle(self, request: GetProductQuery) -> Product | None:
        return await ProductGateway(self.store).find_by_id(request.id)


class UpdateProductHandler:
    """Overwrite name and price of an existing product."""

    def __init__(self, store: ProductStorePort):
        self.store = store

    async def handle(self, request: UpdateProductCommand) -> None:
        """Apply the update.

        Both fields are always overwritten; there is no partial update.

        Raises:
            NotFoundError: If the product does not exist.
            ValueError: If the price is outside the storable range.
            StorageError: If the commit fails.
        """
        gateway = ProductGateway(self.store)
        product = await gateway.find_by_id(request.id)
        if product is None:
            raise NotFoundError("Product not found", product_id=request.id)

        price = to_price(request.price)
        product.name = request.name
        product.price = price
        await gateway.commit()

        logger.info(
            f"Product {request.id} updated",
            extra={"product_id": request.id, "product_name": request.name},
        )


class DeleteProductHandler:
    """Delete an existing product."""

    def __init__(self, store: ProductStorePort):
        self.store = store

    async def handle(self, request: DeleteProductCommand) -> None:
        """Delete the product.

        Raises:
            NotFoundError: If the product does not exist.
            StorageError: If the commit fails.
        """
        gateway = ProductGateway(self.store)
        product = await gateway.find_by_id(request.id)
        if product is None:
            raise NotFoundError("Product not found", product_id=request.id)

        gateway.remove(product)
        await gateway.commit()

        logger.info(f"Product {request.id} deleted", extra={"product_id": request.id})
