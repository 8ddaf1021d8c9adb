"""Tests for the Dispatcher."""

from dataclasses import dataclass
from decimal import Decimal

import pytest

from productapi.core.dispatch import Dispatcher
from productapi.core.errors import NotFoundError, RoutingError
from productapi.core.models import (
    CreateProductCommand,
    DeleteProductCommand,
    GetProductQuery,
    UpdateProductCommand,
)
from productapi.tests.fakes import FakeProductStorePort


@dataclass(frozen=True)
class ArchiveProductCommand:
    id: int


@pytest.fixture
def store() -> FakeProductStorePort:
    return FakeProductStorePort()


@pytest.fixture
def dispatcher(store: FakeProductStorePort) -> Dispatcher:
    return Dispatcher.for_store(store)


def test_for_store_registers_exactly_four_requests(dispatcher: Dispatcher) -> None:
    """The request set is closed: create, read, update, delete."""
    assert dispatcher.request_types == frozenset(
        {CreateProductCommand, GetProductQuery, UpdateProductCommand, DeleteProductCommand}
    )


@pytest.mark.asyncio
async def test_send_routes_to_matching_handler(
    dispatcher: Dispatcher, store: FakeProductStorePort
) -> None:
    """Each request type reaches its own handler."""
    product_id = await dispatcher.send(CreateProductCommand(name="A", price=Decimal("1")))
    product = await dispatcher.send(GetProductQuery(id=product_id))

    assert product is not None
    assert product.name == "A"

    await dispatcher.send(UpdateProductCommand(id=product_id, name="B", price=Decimal("2")))
    assert store.rows[product_id].name == "B"

    await dispatcher.send(DeleteProductCommand(id=product_id))
    assert product_id not in store.rows


@pytest.mark.asyncio
async def test_send_unknown_request_raises_routing_error(dispatcher: Dispatcher) -> None:
    """A request without a handler is a wiring defect."""
    with pytest.raises(RoutingError, match="ArchiveProductCommand"):
        await dispatcher.send(ArchiveProductCommand(id=1))


@pytest.mark.asyncio
async def test_send_propagates_handler_errors_unchanged(dispatcher: Dispatcher) -> None:
    """NotFoundError passes through the dispatcher as-is."""
    with pytest.raises(NotFoundError):
        await dispatcher.send(DeleteProductCommand(id=12345))
