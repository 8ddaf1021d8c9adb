"""Domain models for the Product API.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


# Prices are stored as NUMERIC(18, 2) in PostgreSQL; every backend accepts the same range.
PRICE_MAX_DIGITS = 18
PRICE_DECIMAL_PLACES = 2


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert a price to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_price(value: Decimal | int | float | str) -> Decimal:
    """Convert and validate a price.

    Raises:
        ValueError: If the price is not finite, has more than two decimal
            places or more than sixteen integer digits.
    """
    price = to_decimal(value)
    if not price.is_finite():
        raise ValueError(f"Price must be a finite number, got {price}")
    if price != price.quantize(Decimal(1).scaleb(-PRICE_DECIMAL_PLACES)):
        raise ValueError(
            f"Price {price} has more than {PRICE_DECIMAL_PLACES} decimal places"
        )
    if abs(price) >= Decimal(10) ** (PRICE_MAX_DIGITS - PRICE_DECIMAL_PLACES):
        raise ValueError(f"Price {price} exceeds {PRICE_MAX_DIGITS} digits")
    return price


@dataclass
class Product:
    """A catalog product.

    The id is assigned by storage when the product is first committed and
    never changes afterwards. Name and price are overwritten in place by
    the update handler.
    """

    name: str
    price: Decimal
    id: int | None = None

    def __post_init__(self) -> None:
        """Normalize and validate the price."""
        self.price = to_price(self.price)


@dataclass(frozen=True)
class CreateProductCommand:
    """Create a product; resolves to the assigned id."""

    name: str
    price: Decimal


@dataclass(frozen=True)
class GetProductQuery:
    """Read a product by id; resolves to the product or None."""

    id: int


@dataclass(frozen=True)
class UpdateProductCommand:
    """Overwrite both name and price of an existing product."""

    id: int
    name: str
    price: Decimal


@dataclass(frozen=True)
class DeleteProductCommand:
    """Delete an existing product."""

    id: int


@dataclass(frozen=True)
class ChangeSet:
    """Pending writes collected by a gateway at commit time.

    Inserts are products without ids, in the order they were added.
    The store returns the assigned ids in the same order.
    """

    inserts: tuple[Product, ...] = field(default_factory=tuple)
    updates: tuple[Product, ...] = field(default_factory=tuple)
    deletes: tuple[int, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not (self.inserts or self.updates or self.deletes)

    @property
    def size(self) -> int:
        return len(self.inserts) + len(self.updates) + len(self.deletes)


class SessionState(Enum):
    """Lifecycle states for an environment session.

    Transitions are strictly sequential:
    UNINITIALIZED → RESOURCE_STARTING → RESOURCE_READY → APP_STARTING → LIVE

    TORN_DOWN is terminal and reachable from any state.
    """

    UNINITIALIZED = "uninitialized"
    RESOURCE_STARTING = "resource_starting"
    RESOURCE_READY = "resource_ready"
    APP_STARTING = "app_starting"
    LIVE = "live"
    TORN_DOWN = "torn_down"
