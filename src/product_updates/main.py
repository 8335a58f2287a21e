"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance with its own store, hub and service on app.state, so tests
get a fresh catalog per app. Lifespan manages startup/shutdown (the
optional Redis backplane, closing hub sessions). Middleware, CORS and
routers are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from product_updates import __version__
from product_updates.api import api_router, health_router
from product_updates.config import Settings, settings as default_settings
from product_updates.log import configure_logging
from product_updates.middleware.request_id import RequestIdMiddleware
from product_updates.realtime.hub import ProductHub
from product_updates.realtime.websocket import build_router
from product_updates.services.product_service import ProductService
from product_updates.store import ProductStore

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` at shutdown.
    """
    settings: Settings = app.state.settings
    hub: ProductHub = app.state.product_service.hub
    logger.info(
        "product_updates.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        hub_path=settings.hub_path,
    )

    backplane = None
    if settings.redis_url:
        from product_updates.realtime.pubsub import connect_backplane

        try:
            backplane = await connect_backplane(
                settings.redis_url, settings.redis_channel, hub
            )
            logger.info("product_updates.backplane_connected", url=settings.redis_url)
        except Exception as e:
            logger.warning("product_updates.backplane_unavailable", error=str(e))
            # Single-process fan-out still works without Redis

    yield

    logger.info("product_updates.shutdown", connections=hub.connection_count)
    if backplane is not None:
        await backplane.stop()
    await hub.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or default_settings
    is_dev = settings.environment == "development"

    app = FastAPI(
        title="Product Updates",
        description="Product catalog with real-time change notifications",
        version=__version__,
        lifespan=lifespan,
        # OpenAPI docs in development only
        docs_url="/docs" if is_dev else None,
        redoc_url="/redoc" if is_dev else None,
        openapi_url="/openapi.json" if is_dev else None,
    )

    hub = ProductHub(send_timeout=settings.send_timeout_seconds)
    app.state.settings = settings
    app.state.product_service = ProductService(ProductStore(), hub)

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(CORSMiddleware, **settings.cors_options())

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router)
    app.include_router(build_router(settings.hub_path))

    return app


configure_logging(default_settings.log_level, json_output=default_settings.is_production)

# Default app instance (used by uvicorn: product_updates.main:app)
app = create_app()
