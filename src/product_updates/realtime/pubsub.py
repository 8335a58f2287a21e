"""Redis pub/sub backplane — one logical hub across several server processes.

Learn: Redis pub/sub is fire-and-forget. If no process is subscribed,
the message is lost, which matches the hub's at-most-once semantics.
Every process publishes its broadcasts to one channel and runs a
listener that hands whatever arrives to its local hub.deliver(), so a
mutation served by worker A still reaches sessions connected to B.

Optional: with PRODUCT_UPDATES_REDIS_URL unset the hub delivers
in-process and Redis is never contacted.
"""

import asyncio
import json

import redis.asyncio as aioredis
import structlog

from product_updates.events.envelope import Event, InvalidEventError
from product_updates.realtime.hub import ProductHub

logger = structlog.get_logger()


class RedisBackplane:
    """Publishes hub events to Redis and feeds received ones back to the hub."""

    def __init__(self, redis: aioredis.Redis, channel: str, hub: ProductHub):
        self.redis = redis
        self.channel = channel
        self.hub = hub
        self._pubsub = None
        self._listener: asyncio.Task | None = None

    async def publish(self, event: Event) -> None:
        await self.redis.publish(self.channel, json.dumps(event.to_message()))

    async def start(self) -> None:
        self._pubsub = self.redis.pubsub()
        await self._pubsub.subscribe(self.channel)
        self._listener = asyncio.create_task(self._listen())
        self._listener.add_done_callback(self._on_listener_done)
        self.hub.backplane = self

    async def stop(self) -> None:
        self._detach()
        listener_failed = False
        if self._listener is not None:
            if self._listener.done():
                listener_failed = not self._listener.cancelled()
            else:
                self._listener.cancel()
                try:
                    await self._listener
                except asyncio.CancelledError:
                    pass
            self._listener = None
        if self._pubsub is not None:
            # A dead listener means the subscription connection is gone too
            if not listener_failed:
                await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None
        await self.redis.aclose()

    def _detach(self) -> None:
        if self.hub.backplane is self:
            self.hub.backplane = None

    def _on_listener_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        # Nobody in this process reads the channel any more; deliver in-process
        self._detach()
        error = task.exception()
        logger.error(
            "backplane.listener_stopped",
            channel=self.channel,
            error=str(error) if error else "subscription ended",
        )

    async def _listen(self) -> None:
        async for message in self._pubsub.listen():
            if message["type"] != "message":
                continue
            try:
                event = Event.from_message(json.loads(message["data"]))
            except (json.JSONDecodeError, InvalidEventError) as e:
                logger.warning("backplane.bad_message", error=str(e))
                continue
            await self.hub.deliver(event)


async def connect_backplane(url: str, channel: str, hub: ProductHub) -> RedisBackplane:
    """Connect to Redis, verify it answers, and attach a started backplane to the hub."""
    redis = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
    try:
        await redis.ping()
    except Exception:
        await redis.aclose()
        raise
    backplane = RedisBackplane(redis, channel, hub)
    await backplane.start()
    return backplane
