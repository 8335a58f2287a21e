"""API route aggregation.

All routers registered here get mounted in main.py. Product routes live
under /api (so /api/products); the health probe sits at the root where
the hosting platform expects it.
"""

from fastapi import APIRouter

from product_updates.api.health import router as health_router
from product_updates.api.products import router as products_router

api_router = APIRouter(prefix="/api")
api_router.include_router(products_router, tags=["products"])

__all__ = ["api_router", "health_router"]
