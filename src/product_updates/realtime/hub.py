"""Product hub — fan-out of product events to every connected session.

Learn: Delivery is at-most-once and best-effort:
- broadcast() sends to the sessions registered when it starts. A session
  that registers mid-broadcast may miss that event, and sessions that
  connect later never see it (no backlog, no replay).
- Each send runs concurrently with a timeout. A session that errors or
  stalls is dropped and closed; the other sessions are unaffected and
  the caller never sees the failure.
- Nothing is retried. Reconnecting is the client transport's job.

With a Redis backplane attached (multi-process deployments), broadcast()
publishes to Redis instead, and each process's backplane listener calls
deliver() for its own sessions. If the publish fails, the event is
delivered locally and the caller still sees success.
"""

import asyncio
import contextlib
import uuid
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

from product_updates.events.envelope import Event

logger = structlog.get_logger()


class Session(Protocol):
    """Anything that can receive JSON messages, e.g. a WebSocket."""

    async def send(self, message: dict[str, Any]) -> None: ...

    async def close(self) -> None: ...


class Publisher(Protocol):
    async def publish(self, event: Event) -> None: ...


@dataclass(frozen=True)
class SessionHandle:
    id: str


class ProductHub:
    """Registry of connected sessions plus the broadcast operation."""

    def __init__(self, send_timeout: float = 5.0):
        self.send_timeout = send_timeout
        self.backplane: Publisher | None = None
        self._sessions: dict[SessionHandle, Session] = {}

    @property
    def connection_count(self) -> int:
        return len(self._sessions)

    def connect(self, session: Session) -> SessionHandle:
        handle = SessionHandle(id=uuid.uuid4().hex)
        self._sessions[handle] = session
        logger.info(
            "hub.session_connected",
            session_id=handle.id,
            connections=self.connection_count,
        )
        return handle

    def disconnect(self, handle: SessionHandle) -> bool:
        """Deregister a session. Returns False if it was already gone."""
        if self._sessions.pop(handle, None) is None:
            return False
        logger.info(
            "hub.session_disconnected",
            session_id=handle.id,
            connections=self.connection_count,
        )
        return True

    async def broadcast(self, event: Event) -> None:
        if self.backplane is not None:
            try:
                await self.backplane.publish(event)
                return
            except Exception as e:
                # Other processes miss this event; this process's sessions still get it
                logger.warning(
                    "hub.backplane_publish_failed", event_type=event.type, error=str(e)
                )
        await self.deliver(event)

    async def deliver(self, event: Event) -> int:
        """Send an event to the local sessions. Returns how many received it."""
        targets = list(self._sessions.items())
        if not targets:
            return 0
        message = event.to_message()
        results = await asyncio.gather(
            *(self._send(handle, session, message) for handle, session in targets)
        )
        delivered = sum(results)
        logger.debug(
            "hub.broadcast",
            event_type=event.type,
            delivered=delivered,
            dropped=len(targets) - delivered,
        )
        return delivered

    async def close(self) -> None:
        """Disconnect and close every session (server shutdown)."""
        targets = list(self._sessions.items())
        self._sessions.clear()
        for handle, session in targets:
            await self._close_quietly(handle, session)

    # ─── Internals ──────────────────────────────────────

    async def _send(
        self, handle: SessionHandle, session: Session, message: dict[str, Any]
    ) -> bool:
        try:
            await asyncio.wait_for(session.send(message), timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("hub.session_timed_out", session_id=handle.id)
        except Exception as e:
            logger.debug("hub.session_send_failed", session_id=handle.id, error=str(e))
        if self.disconnect(handle):
            await self._close_quietly(handle, session)
        return False

    async def _close_quietly(self, handle: SessionHandle, session: Session) -> None:
        # Peer is already unreachable or stalled
        with contextlib.suppress(Exception):
            await asyncio.wait_for(session.close(), timeout=self.send_timeout)
