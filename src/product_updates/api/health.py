"""Health check endpoint.

Learn: Unauthenticated liveness probe for the hosting platform. Reports
a status/timestamp pair, plus the version and how many hub sessions
this process is holding.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from product_updates import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    hub = request.app.state.product_service.hub
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "connections": hub.connection_count,
    }
