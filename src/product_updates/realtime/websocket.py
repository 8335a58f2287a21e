"""WebSocket endpoint — the product hub's push channel.

Learn: Each browser tab opens one long-lived connection to the hub
path (default /productHub). The handler:
1. Accepts and registers the socket with the hub
2. Reads client messages until the client goes away:
   - {"type": "ping"} → {"type": "pong"}
   - {"type": "invoke", "method": ..., "args": [...]} → hub relay
3. Deregisters on disconnect (idempotent, the hub may already have
   dropped a stalled socket)

Outgoing events are written by the hub, not by this loop.
"""

import json
from typing import Any

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from product_updates.services.product_service import ProductService

logger = structlog.get_logger()


class WebSocketSession:
    """Adapts a Starlette WebSocket to the hub's Session protocol."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def send(self, message: dict[str, Any]) -> None:
        await self.websocket.send_text(json.dumps(message))

    async def close(self) -> None:
        if self.websocket.client_state == WebSocketState.CONNECTED:
            await self.websocket.close(code=1011)


def build_router(hub_path: str) -> APIRouter:
    router = APIRouter()

    @router.websocket(hub_path)
    async def product_hub(websocket: WebSocket):
        svc: ProductService = websocket.app.state.product_service

        await websocket.accept()
        session = WebSocketSession(websocket)
        handle = svc.hub.connect(session)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                data = message.get("text")
                if data is None:
                    # Binary frames carry nothing the hub understands
                    continue
                try:
                    msg = json.loads(data)
                except json.JSONDecodeError:
                    continue
                if not isinstance(msg, dict):
                    continue

                if msg.get("type") == "ping":
                    await session.send({"type": "pong"})
                elif msg.get("type") == "invoke":
                    args = msg.get("args") or []
                    try:
                        await svc.relay(str(msg.get("method")), list(args))
                    except (TypeError, ValueError) as e:
                        logger.info(
                            "hub.invoke_rejected",
                            session_id=handle.id,
                            method=msg.get("method"),
                            error=str(e),
                        )
                        await session.send({"type": "error", "error": str(e)})
        except WebSocketDisconnect:
            pass
        finally:
            svc.hub.disconnect(handle)

    return router
