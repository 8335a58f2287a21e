"""In-memory product storage."""

from product_updates.store.models import Product
from product_updates.store.product_store import ProductNotFoundError, ProductStore

__all__ = ["Product", "ProductNotFoundError", "ProductStore"]
