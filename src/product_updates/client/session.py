"""Client session — one push connection mirroring the server's catalog.

Learn: The session is a small state machine:

    DISCONNECTED → connect() → CONNECTING → CONNECTED
    CONNECTED → disconnect() / transport failure → DISCONNECTED

While connected, each incoming message for a subscribed event type is
applied to the mirror, then handed to any on() callbacks. Reconnecting
is left to the websockets library (run() iterates its reconnecting
connect()). A reconnect does NOT reload the catalog: events missed
while the socket was down stay missed until load() is called again.
"""

import json
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

import httpx
import structlog
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from product_updates.client.mirror import ProductMirror
from product_updates.events.envelope import Event, InvalidEventError
from product_updates.events.types import PRODUCT_EVENTS
from product_updates.schemas.product import ProductRead

logger = structlog.get_logger()

Listener = Callable[[Event, list[ProductRead]], Any]


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def hub_url_for(api_url: str, hub_path: str) -> str:
    """http(s)://host → ws(s)://host + hub path."""
    base = api_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return base + hub_path


class ClientSession:
    """Mirror of the product list kept current by pushed events."""

    def __init__(
        self,
        api_url: str,
        hub_path: str = "/productHub",
        events: Iterable[str] = PRODUCT_EVENTS,
    ):
        self.api_url = api_url.rstrip("/")
        self.hub_url = hub_url_for(self.api_url, hub_path)
        self.state = SessionState.DISCONNECTED
        self.mirror = ProductMirror()
        self.subscribed: set[str] = set()
        self._listeners: dict[str, list[Listener]] = {}
        self._ws: ClientConnection | None = None
        for event_type in events:
            self.subscribe(event_type)

    @property
    def products(self) -> list[ProductRead]:
        return self.mirror.products

    # ─── Subscriptions ──────────────────────────────────

    def subscribe(self, event_type: str) -> None:
        if event_type not in PRODUCT_EVENTS:
            raise ValueError(f"Unknown event type: {event_type!r}")
        self.subscribed.add(event_type)

    def unsubscribe(self, event_type: str) -> None:
        self.subscribed.discard(event_type)

    def on(self, event_type: str, callback: Listener) -> None:
        """Subscribe to an event type and call back after each one is applied."""
        self.subscribe(event_type)
        self._listeners.setdefault(event_type, []).append(callback)

    def handle(self, message: dict[str, Any]) -> bool:
        """Apply one pushed message. Returns True if the mirror changed."""
        try:
            event = Event.from_message(message)
        except InvalidEventError:
            # pong, error replies, anything newer than this client
            return False
        if event.type not in self.subscribed:
            return False
        try:
            changed = self.mirror.apply(event)
        except ValueError as e:
            # pydantic's ValidationError for a product the schema rejects
            logger.warning("client.bad_event", event_type=event.type, error=str(e))
            return False
        for callback in self._listeners.get(event.type, []):
            callback(event, self.products)
        return changed

    # ─── HTTP snapshot ──────────────────────────────────

    async def load(self, client: httpx.AsyncClient | None = None) -> list[ProductRead]:
        """Replace the mirror with the server's current list."""
        if client is None:
            async with httpx.AsyncClient(base_url=self.api_url, timeout=30.0) as c:
                return await self.load(c)
        r = await client.get("/api/products")
        r.raise_for_status()
        self.mirror.reset([ProductRead.model_validate(p) for p in r.json()])
        logger.info("client.loaded", count=len(self.products))
        return self.products

    # ─── Push connection ────────────────────────────────

    async def connect(self) -> None:
        self.state = SessionState.CONNECTING
        try:
            self._ws = await connect(self.hub_url)
        except Exception:
            self.state = SessionState.DISCONNECTED
            raise
        self.state = SessionState.CONNECTED
        logger.info("client.connected", url=self.hub_url)

    async def listen(self) -> None:
        """Apply messages until the connection closes."""
        if self._ws is None:
            raise RuntimeError("Not connected. Call connect() first.")
        try:
            async for raw in self._ws:
                self._receive(raw)
        except ConnectionClosed:
            pass
        finally:
            self.state = SessionState.DISCONNECTED
            self._ws = None

    async def disconnect(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        self.state = SessionState.DISCONNECTED

    async def run(self) -> None:
        """Stay connected until cancelled, letting websockets handle reconnects."""
        self.state = SessionState.CONNECTING
        try:
            async for ws in connect(self.hub_url):
                self._ws = ws
                self.state = SessionState.CONNECTED
                logger.info("client.connected", url=self.hub_url)
                try:
                    async for raw in ws:
                        self._receive(raw)
                except ConnectionClosed:
                    pass
                self.state = SessionState.CONNECTING
                logger.warning("client.connection_lost", url=self.hub_url)
        finally:
            self._ws = None
            self.state = SessionState.DISCONNECTED

    def _receive(self, raw: str | bytes) -> None:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("client.bad_message")
            return
        if isinstance(message, dict):
            self.handle(message)
