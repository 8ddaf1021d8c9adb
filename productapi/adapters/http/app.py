"""HTTP route layer for the Product API.

Translates HTTP requests into request objects, sends them through the
dispatcher and maps results and errors to status codes.

Endpoints:
- POST   /products        create, 201 with the new id
- GET    /products/{id}   read, 200 or 404
- PUT    /products/{id}   update, 204; 400 if body id differs from path id
- DELETE /products/{id}   delete, 204
- GET    /health          readiness (store ping), 200 or 503
- GET    /alive           liveness, always 200
"""

import functools
import json
import logging
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Annotated, Any

from aiohttp import web
from pydantic import BaseModel, Field, ValidationError

from productapi.core.dispatch import Dispatcher
from productapi.core.errors import NotFoundError, StorageError
from productapi.core.models import (
    PRICE_DECIMAL_PLACES,
    PRICE_MAX_DIGITS,
    CreateProductCommand,
    DeleteProductCommand,
    GetProductQuery,
    Product,
    UpdateProductCommand,
)
from productapi.core.ports import ProductStorePort

logger = logging.getLogger(__name__)

DISPATCHER_KEY = web.AppKey("dispatcher", Dispatcher)
STORE_KEY = web.AppKey("store", ProductStorePort)

MAX_BODY_SIZE = 1024 * 1024

# Ids are SERIAL / INTEGER keys; anything outside this range cannot exist.
MAX_PRODUCT_ID = 2**31 - 1

Price = Annotated[Decimal, Field(max_digits=PRICE_MAX_DIGITS, decimal_places=PRICE_DECIMAL_PLACES)]


class CreateProductBody(BaseModel):
    name: str
    price: Price


class UpdateProductBody(BaseModel):
    id: int
    name: str
    price: Price


class ProductBody(BaseModel):
    id: int
    name: str
    price: Decimal


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


dumps = functools.partial(json.dumps, default=_json_default)


def _json(data: Any, status: int = 200, **kwargs: Any) -> web.Response:
    return web.json_response(data, status=status, dumps=dumps, **kwargs)


def _error(status: int, message: str) -> web.Response:
    return _json({"error": message}, status=status)


def product_to_json(product: Product) -> dict[str, Any]:
    return ProductBody(id=product.id, name=product.name, price=product.price).model_dump()


async def _read_body(request: web.Request, model: type[BaseModel]) -> Any:
    """Parse and validate a JSON request body.

    Floats are parsed as Decimal so prices keep their exact value.

    Raises:
        web.HTTPBadRequest: If the body is not valid JSON or fails validation.
    """
    if request.content_length is not None and request.content_length > MAX_BODY_SIZE:
        raise web.HTTPRequestEntityTooLarge(
            max_size=MAX_BODY_SIZE, actual_size=request.content_length
        )

    text = await request.text()
    try:
        data = json.loads(text, parse_float=Decimal) if text else {}
    except json.JSONDecodeError:
        raise web.HTTPBadRequest(
            text=dumps({"error": "Invalid JSON body"}), content_type="application/json"
        )

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise web.HTTPBadRequest(
            text=dumps({"error": "Invalid request body", "details": [err["msg"] for err in e.errors()]}),
            content_type="application/json",
        )


def _product_id(request: web.Request) -> int:
    """Return the path id.

    Raises:
        web.HTTPNotFound: If the id is outside the storable key range.
    """
    product_id = int(request.match_info["id"])
    if not 1 <= product_id <= MAX_PRODUCT_ID:
        raise web.HTTPNotFound(
            text=dumps({"error": "Product not found"}), content_type="application/json"
        )
    return product_id


@web.middleware
async def error_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Map domain errors to responses.

    NotFoundError becomes 404. Anything that is not an HTTP exception
    becomes a generic 500; details are logged server-side only.
    """
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except NotFoundError as e:
        return _error(404, str(e))
    except Exception as e:
        logger.error(
            f"Error handling {request.method} {request.path}: {e}",
            exc_info=True,
        )
        return _error(500, "Internal server error")


async def create_product(request: web.Request) -> web.Response:
    body = await _read_body(request, CreateProductBody)
    product_id = await request.app[DISPATCHER_KEY].send(
        CreateProductCommand(name=body.name, price=body.price)
    )
    return _json(product_id, status=201, headers={"Location": f"/products/{product_id}"})


async def get_product(request: web.Request) -> web.Response:
    product = await request.app[DISPATCHER_KEY].send(GetProductQuery(id=_product_id(request)))
    if product is None:
        return _error(404, "Product not found")
    return _json(product_to_json(product))


async def update_product(request: web.Request) -> web.Response:
    product_id = _product_id(request)
    body = await _read_body(request, UpdateProductBody)
    if body.id != product_id:
        return _error(400, f"Body id {body.id} does not match path id {product_id}")

    await request.app[DISPATCHER_KEY].send(
        UpdateProductCommand(id=product_id, name=body.name, price=body.price)
    )
    return web.Response(status=204)


async def delete_product(request: web.Request) -> web.Response:
    await request.app[DISPATCHER_KEY].send(DeleteProductCommand(id=_product_id(request)))
    return web.Response(status=204)


async def health(request: web.Request) -> web.Response:
    try:
        await request.app[STORE_KEY].ping()
    except StorageError as e:
        logger.warning(f"Health check failed: {e}")
        return _json({"status": "unhealthy"}, status=503)
    return _json({"status": "healthy"})


async def alive(request: web.Request) -> web.Response:
    return _json({"status": "alive"})


def create_app(dispatcher: Dispatcher, store: ProductStorePort) -> web.Application:
    """Build the aiohttp application.

    Args:
        dispatcher: Routes request objects to handlers.
        store: Store pinged by the readiness endpoint.
    """
    app = web.Application(middlewares=[error_middleware], client_max_size=MAX_BODY_SIZE)
    app[DISPATCHER_KEY] = dispatcher
    app[STORE_KEY] = store

    app.router.add_post("/products", create_product)
    app.router.add_get(r"/products/{id:\d+}", get_product)
    app.router.add_put(r"/products/{id:\d+}", update_product)
    app.router.add_delete(r"/products/{id:\d+}", delete_product)
    app.router.add_get("/health", health)
    app.router.add_get("/alive", alive)
    return app
