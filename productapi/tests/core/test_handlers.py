"""Tests for the product request handlers.

Covers the create/read/update/delete properties: round-tripping of name
and price, absence as a valid read outcome, full overwrite on update and
NotFoundError for update/delete of missing products.
"""

from decimal import Decimal

import pytest

from productapi.core.errors import NotFoundError, StorageError
from productapi.core.handlers import (
    CreateProductHandler,
    DeleteProductHandler,
    GetProductHandler,
    UpdateProductHandler,
)
from productapi.core.models import (
    CreateProductCommand,
    DeleteProductCommand,
    GetProductQuery,
    UpdateProductCommand,
)
from productapi.tests.fakes import FakeProductStorePort


@pytest.fixture
def store() -> FakeProductStorePort:
    """Create an empty fake store."""
    return FakeProductStorePort()


# ============================================================================
# create
# ============================================================================


@pytest.mark.asyncio
async def test_create_returns_assigned_id(store: FakeProductStorePort) -> None:
    """Create returns the storage-assigned id."""
    handler = CreateProductHandler(store)

    product_id = await handler.handle(
        CreateProductCommand(name="Test Product", price=Decimal("10.99"))
    )

    assert product_id > 0
    assert store.rows[product_id].name == "Test Product"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,price",
    [
        ("Test Product", Decimal("10.99")),
        ("", Decimal("0")),
        ("Ünïcødé", Decimal("123456.78")),
        ("Negative", Decimal("-5.25")),
    ],
)
async def test_create_then_read_round_trips(
    store: FakeProductStorePort, name: str, price: Decimal
) -> None:
    """Reading a created product yields exactly the name and price given."""
    product_id = await CreateProductHandler(store).handle(
        CreateProductCommand(name=name, price=price)
    )

    product = await GetProductHandler(store).handle(GetProductQuery(id=product_id))

    assert product is not None
    assert product.id == product_id
    assert product.name == name
    assert product.price == price


@pytest.mark.asyncio
async def test_create_accepts_float_price_without_artifacts(
    store: FakeProductStorePort,
) -> None:
    """A float price is converted through its decimal string form."""
    product_id = await CreateProductHandler(store).handle(
        CreateProductCommand(name="Float", price=10.99)  # type: ignore[arg-type]
    )

    assert store.rows[product_id].price == Decimal("10.99")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "price",
    [Decimal("10.999"), Decimal("NaN"), Decimal("Infinity"), Decimal("1E+16")],
)
async def test_create_rejects_price_outside_storable_range(
    store: FakeProductStorePort, price: Decimal
) -> None:
    """Prices need at most two decimals and sixteen integer digits."""
    with pytest.raises(ValueError):
        await CreateProductHandler(store).handle(CreateProductCommand(name="X", price=price))

    assert store.applied_changes == []


@pytest.mark.asyncio
async def test_create_accepts_largest_storable_price(store: FakeProductStorePort) -> None:
    price = Decimal("9999999999999999.99")

    product_id = await CreateProductHandler(store).handle(
        CreateProductCommand(name="Max", price=price)
    )

    assert store.rows[product_id].price == price


@pytest.mark.asyncio
async def test_create_propagates_storage_error(store: FakeProductStorePort) -> None:
    """Storage failures are surfaced, not retried."""
    store.fail_next_apply = StorageError("disk full")

    with pytest.raises(StorageError):
        await CreateProductHandler(store).handle(
            CreateProductCommand(name="X", price=Decimal("1"))
        )

    assert len(store.applied_changes) == 0


# ============================================================================
# read
# ============================================================================


@pytest.mark.asyncio
async def test_read_missing_returns_none(store: FakeProductStorePort) -> None:
    """Reading a non-existent id returns None, never raises."""
    assert await GetProductHandler(store).handle(GetProductQuery(id=999)) is None


# ============================================================================
# update
# ============================================================================


@pytest.mark.asyncio
async def test_update_overwrites_both_fields(store: FakeProductStorePort) -> None:
    """Update always replaces name and price."""
    seeded = store.seed("Test Product", "10.99")

    await UpdateProductHandler(store).handle(
        UpdateProductCommand(id=seeded.id, name="Updated Product", price=Decimal("20.99"))
    )

    assert store.rows[seeded.id].name == "Updated Product"
    assert store.rows[seeded.id].price == Decimal("20.99")


@pytest.mark.asyncio
async def test_update_with_same_values_is_noop_write(store: FakeProductStorePort) -> None:
    """Updating to identical values succeeds without a store write."""
    seeded = store.seed("Same", "1.00")

    await UpdateProductHandler(store).handle(
        UpdateProductCommand(id=seeded.id, name="Same", price=Decimal("1.00"))
    )

    assert store.applied_changes == []
    assert store.rows[seeded.id].name == "Same"


@pytest.mark.asyncio
async def test_update_missing_raises_not_found(store: FakeProductStorePort) -> None:
    """Updating a non-existent id fails with NotFoundError."""
    with pytest.raises(NotFoundError, match="Product not found") as exc_info:
        await UpdateProductHandler(store).handle(
            UpdateProductCommand(id=404, name="Nope", price=Decimal("1"))
        )

    assert exc_info.value.product_id == 404
    assert store.applied_changes == []


@pytest.mark.asyncio
async def test_update_rejects_price_with_three_decimals(store: FakeProductStorePort) -> None:
    seeded = store.seed("Kept", "1.00")

    with pytest.raises(ValueError, match="decimal places"):
        await UpdateProductHandler(store).handle(
            UpdateProductCommand(id=seeded.id, name="Changed", price=Decimal("1.005"))
        )

    assert store.applied_changes == []
    assert store.rows[seeded.id].price == Decimal("1.00")


# ============================================================================
# delete
# ============================================================================


@pytest.mark.asyncio
async def test_delete_removes_row(store: FakeProductStorePort) -> None:
    """Delete removes the product so later reads return None."""
    seeded = store.seed("Doomed", "3.00")

    await DeleteProductHandler(store).handle(DeleteProductCommand(id=seeded.id))

    assert await GetProductHandler(store).handle(GetProductQuery(id=seeded.id)) is None


@pytest.mark.asyncio
async def test_delete_missing_raises_not_found(store: FakeProductStorePort) -> None:
    """Deleting a non-existent id fails with NotFoundError."""
    with pytest.raises(NotFoundError):
        await DeleteProductHandler(store).handle(DeleteProductCommand(id=1))


@pytest.mark.asyncio
async def test_delete_twice_fails_second_time(store: FakeProductStorePort) -> None:
    """The second delete of the same id fails with NotFoundError."""
    seeded = store.seed("Once", "1.00")
    handler = DeleteProductHandler(store)

    await handler.handle(DeleteProductCommand(id=seeded.id))
    with pytest.raises(NotFoundError):
        await handler.handle(DeleteProductCommand(id=seeded.id))
