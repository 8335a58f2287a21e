"""Local mirror of the server's product list.

Applies pushed events to an ordered list:
- ProductAdded: append
- ReceiveProductUpdate: replace in place by id, ignore ids we don't hold
- ProductDeleted: drop every entry with that id

There are no sequence numbers, so a missed event is never detected;
only a fresh load() brings the mirror back in line.
"""

from product_updates.events.envelope import Event
from product_updates.events.types import PRODUCT_ADDED, PRODUCT_DELETED, PRODUCT_UPDATED
from product_updates.schemas.product import ProductRead


class ProductMirror:
    def __init__(self, products: list[ProductRead] | None = None):
        self.products: list[ProductRead] = list(products or [])

    def reset(self, products: list[ProductRead]) -> None:
        self.products = list(products)

    def apply(self, event: Event) -> bool:
        """Apply one event. Returns True if the local list changed."""
        if event.type == PRODUCT_ADDED:
            self.products.append(ProductRead.model_validate(event.data["product"]))
            return True

        if event.type == PRODUCT_UPDATED:
            product = ProductRead.model_validate(event.data["product"])
            for i, existing in enumerate(self.products):
                if existing.id == product.id:
                    self.products[i] = product
                    return True
            return False

        if event.type == PRODUCT_DELETED:
            product_id = event.data["id"]
            remaining = [p for p in self.products if p.id != product_id]
            changed = len(remaining) != len(self.products)
            self.products = remaining
            return changed

        return False
