"""Product service — store mutations followed by hub broadcasts.

Learn: Service layer separates business logic from HTTP routing.
Routes translate status codes; the service owns the ordering rule:
mutate the store first, broadcast second, and only broadcast when the
mutation actually happened.

One asyncio.Lock covers mutation + broadcast, so two concurrent
requests can't interleave (e.g. an update's event overtaking the
delete that follows it). Reads don't take the lock; the store hands
back snapshots.
"""

import asyncio
from typing import Any

import structlog

from product_updates.events.envelope import (
    Event,
    InvalidEventError,
    product_added,
    product_deleted,
    product_updated,
)
from product_updates.events.types import (
    HUB_METHODS,
    PRODUCT_ADDED,
    PRODUCT_DELETED,
)
from product_updates.realtime.hub import ProductHub
from product_updates.store import Product, ProductNotFoundError, ProductStore

logger = structlog.get_logger()


class ProductService:
    """Business logic for the product catalog."""

    def __init__(self, store: ProductStore, hub: ProductHub):
        self.store = store
        self.hub = hub
        self._lock = asyncio.Lock()

    async def get_products(self) -> list[Product]:
        products = self.store.list()
        logger.info("products.listed", count=len(products))
        return products

    async def add_product(
        self, name: str, price: float, description: str = ""
    ) -> Product:
        async with self._lock:
            product = self.store.create(name=name, price=price, description=description)
            logger.info(
                "products.added",
                product_id=product.id,
                name=product.name,
                price=product.price,
            )
            await self.hub.broadcast(product_added(product))
        return product

    async def update_product(
        self,
        product_id: int,
        name: str | None = None,
        price: float | None = None,
        description: str | None = None,
    ) -> Product:
        """Update a product and push the full post-update record.

        Raises ProductNotFoundError (and broadcasts nothing) for unknown ids.
        """
        async with self._lock:
            try:
                product = self.store.update(
                    product_id, name=name, price=price, description=description
                )
            except ProductNotFoundError:
                logger.warning("products.update_not_found", product_id=product_id)
                raise
            logger.info(
                "products.updated",
                product_id=product.id,
                name=product.name,
                price=product.price,
            )
            await self.hub.broadcast(product_updated(product))
        return product

    async def delete_product(self, product_id: int) -> Product:
        """Delete a product and push its id.

        Raises ProductNotFoundError (and broadcasts nothing) for unknown ids.
        """
        async with self._lock:
            try:
                product = self.store.delete(product_id)
            except ProductNotFoundError:
                logger.warning("products.delete_not_found", product_id=product_id)
                raise
            logger.info("products.deleted", product_id=product.id, name=product.name)
            await self.hub.broadcast(product_deleted(product.id))
        return product

    async def relay(self, method: str, args: list[Any]) -> Event:
        """Rebroadcast an event on behalf of a connected session.

        The store is not touched; this is the session-initiated twin of
        the REST-triggered broadcasts.
        """
        event_type = HUB_METHODS.get(method)
        if event_type is None:
            raise InvalidEventError(f"Unknown hub method: {method!r}")
        if len(args) != 1:
            raise InvalidEventError(f"{method} takes exactly one argument")

        if event_type == PRODUCT_DELETED:
            if isinstance(args[0], bool) or not isinstance(args[0], int):
                raise InvalidEventError(f"{method} expects a product id")
            event = product_deleted(args[0])
        elif event_type == PRODUCT_ADDED:
            event = product_added(args[0])
        else:
            event = product_updated(args[0])

        logger.info("hub.relay", method=method, event_type=event.type)
        await self.hub.broadcast(event)
        return event
