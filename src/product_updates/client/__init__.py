"""Python client for the product hub."""

from product_updates.client.mirror import ProductMirror
from product_updates.client.session import ClientSession, SessionState

__all__ = ["ClientSession", "ProductMirror", "SessionState"]
