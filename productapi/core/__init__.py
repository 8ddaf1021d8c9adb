"""Core domain logic for the Product API.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .errors import (
    EnvironmentSetupError,
    NotFoundError,
    ProductApiError,
    ResourceStartupError,
    RoutingError,
    SessionStateError,
    StorageError,
)
from .models import (
    ChangeSet,
    CreateProductCommand,
    DeleteProductCommand,
    GetProductQuery,
    Product,
    SessionState,
    UpdateProductCommand,
)

__all__ = [
    "ChangeSet",
    "CreateProductCommand",
    "DeleteProductCommand",
    "EnvironmentSetupError",
    "GetProductQuery",
    "NotFoundError",
    "Product",
    "ProductApiError",
    "ResourceStartupError",
    "RoutingError",
    "SessionState",
    "SessionStateError",
    "StorageError",
    "UpdateProductCommand",
]
