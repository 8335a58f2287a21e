"""In-memory product store.

Learn: Identifiers come from a store-internal sequence that only ever
moves forward. Deriving the next id from the collection size (len + 1)
hands a deleted product's id to the next create, so a client holding
the old id would silently start pointing at a different product.

The store itself is synchronous and does no locking. ProductService
serializes access with an asyncio.Lock, so within one event loop
every call here runs to completion without interleaving.
"""

import itertools
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from product_updates.store.models import Product


class ProductNotFoundError(LookupError):
    """No product with the given id exists in the store."""

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductStore:
    """Owns the product collection, in insertion order."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._products: list[Product] = []
        self._ids = itertools.count(1)
        self._clock = clock

    def __len__(self) -> int:
        return len(self._products)

    def list(self) -> list[Product]:
        return [p.snapshot() for p in self._products]

    def get(self, product_id: int) -> Product:
        return self._find(product_id).snapshot()

    def create(self, name: str, price: float, description: str = "") -> Product:
        product = Product(
            id=next(self._ids),
            name=name,
            price=price,
            description=description,
            last_updated=self._clock(),
        )
        self._products.append(product)
        return product.snapshot()

    def update(
        self,
        product_id: int,
        name: str | None = None,
        price: float | None = None,
        description: str | None = None,
    ) -> Product:
        """Replace the given fields and refresh last_updated.

        Fields left as None keep their current value. The id is never touched.
        """
        product = self._find(product_id)
        if name is not None:
            product.name = name
        if price is not None:
            product.price = price
        if description is not None:
            product.description = description
        product.last_updated = self._next_timestamp(product.last_updated)
        return product.snapshot()

    def delete(self, product_id: int) -> Product:
        product = self._find(product_id)
        self._products.remove(product)
        return product.snapshot()

    # ─── Internals ──────────────────────────────────────

    def _find(self, product_id: int) -> Product:
        for product in self._products:
            if product.id == product_id:
                return product
        raise ProductNotFoundError(product_id)

    def _next_timestamp(self, previous: datetime) -> datetime:
        # Coarse clocks can return the same instant twice; keep it strictly increasing
        now = self._clock()
        if now <= previous:
            now = previous + timedelta(microseconds=1)
        return now
