"""Dispatcher: routes a request object to its single handler.

The set of requests is closed and small, so the handler table is fixed
when the dispatcher is built. There is no registration API.
"""

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from .errors import RoutingError
from .handlers import (
    CreateProductHandler,
    DeleteProductHandler,
    GetProductHandler,
    UpdateProductHandler,
)
from .models import (
    CreateProductCommand,
    DeleteProductCommand,
    GetProductQuery,
    UpdateProductCommand,
)
from .ports import ProductStorePort

logger = logging.getLogger(__name__)


class Handler(Protocol):
    async def handle(self, request: Any) -> Any: ...


class Dispatcher:
    """One-to-one mapping from request type to handler."""

    def __init__(self, handlers: Mapping[type, Handler]):
        self._handlers: dict[type, Handler] = dict(handlers)

    @classmethod
    def for_store(cls, store: ProductStorePort) -> "Dispatcher":
        """Build the dispatcher for the four product operations."""
        return cls(
            {
                CreateProductCommand: CreateProductHandler(store),
                GetProductQuery: GetProductHandler(store),
                UpdateProductCommand: UpdateProductHandler(store),
                DeleteProductCommand: DeleteProductHandler(store),
            }
        )

    @property
    def request_types(self) -> frozenset[type]:
        return frozenset(self._handlers)

    async def send(self, request: Any) -> Any:
        """Run the handler registered for type(request).

        Handler errors propagate unchanged.

        Raises:
            RoutingError: If no handler is registered for the request type.
        """
        handler = self._handlers.get(type(request))
        if handler is None:
            raise RoutingError(f"No handler registered for {type(request).__name__}")

        logger.debug(f"Dispatching {type(request).__name__}")
        return await handler.handle(request)
