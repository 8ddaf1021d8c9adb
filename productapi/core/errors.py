"""Error taxonomy for the Product API.

- NotFoundError: update/delete target is absent. Surfaced, never retried.
- StorageError: connectivity or constraint failure while talking to the
  database. Surfaced, never retried.
- RoutingError: a request type has no handler. A wiring defect.
- EnvironmentSetupError: an environment session failed before going live.
- ResourceStartupError: the database resource never reported ready.
- SessionStateError: an environment session operation was called in a
  state that does not allow it (including double teardown).
"""


class ProductApiError(Exception):
    """Base class for all Product API errors."""


class NotFoundError(ProductApiError):
    """Raised when a product required by an operation does not exist."""

    def __init__(self, message: str = "Product not found", product_id: int | None = None):
        super().__init__(message)
        self.product_id = product_id


class StorageError(ProductApiError):
    """Raised when the database cannot complete a read or write."""


class RoutingError(ProductApiError):
    """Raised when no handler is registered for a request type."""


class EnvironmentSetupError(ProductApiError):
    """Raised when an environment session cannot reach the live state."""


class ResourceStartupError(EnvironmentSetupError):
    """Raised when a database resource never becomes ready."""


class SessionStateError(ProductApiError):
    """Raised on an operation that is invalid in the current session state."""


__all__ = [
    "EnvironmentSetupError",
    "NotFoundError",
    "ProductApiError",
    "ResourceStartupError",
    "RoutingError",
    "SessionStateError",
    "StorageError",
]
