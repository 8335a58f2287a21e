"""Test fixtures — a fresh app (and so a fresh catalog + hub) per test.

Learn: create_app() builds its own ProductStore and ProductHub, so
there is nothing to roll back between tests. HTTP tests go through
httpx's ASGITransport; WebSocket round trips use Starlette's
TestClient, since ASGITransport does not speak WebSocket.

RecordingSession stands in for a connected browser tab: it registers
with the hub like a WebSocket would and keeps every pushed message.
"""

from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from product_updates.config import Settings
from product_updates.main import create_app


class RecordingSession:
    """Hub session that records messages instead of writing to a socket."""

    def __init__(self):
        self.messages: list[dict[str, Any]] = []
        self.closed = False

    async def send(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    async def close(self) -> None:
        self.closed = True

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [m for m in self.messages if m["type"] == event_type]


@pytest.fixture()
def settings():
    return Settings(environment="development", send_timeout_seconds=0.5)


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def service(app):
    return app.state.product_service


@pytest.fixture()
def listener(service):
    """A session connected to the app's hub before the test runs."""
    session = RecordingSession()
    service.hub.connect(session)
    return session


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
