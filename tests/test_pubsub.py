"""Redis backplane tests.

Learn: No Redis server in tests. The Redis client is an AsyncMock,
and the pub/sub object is a tiny fake whose listen() yields canned
messages the way redis.asyncio's PubSub does.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from product_updates.events.envelope import product_deleted
from product_updates.realtime.hub import ProductHub
from product_updates.realtime.pubsub import RedisBackplane

from conftest import RecordingSession


class FakePubSub:
    def __init__(self, messages):
        self.messages = messages
        self.subscribed = []
        self.closed = False

    async def subscribe(self, channel):
        self.subscribed.append(channel)

    async def unsubscribe(self, channel):
        self.subscribed.remove(channel)

    async def aclose(self):
        self.closed = True

    async def listen(self):
        for message in self.messages:
            yield message
        # Stay subscribed until cancelled, like a real connection
        await asyncio.Event().wait()


def _fake_redis(messages=()):
    redis = MagicMock()
    redis.publish = AsyncMock()
    redis.aclose = AsyncMock()
    redis.pubsub.return_value = FakePubSub(list(messages))
    return redis


@pytest.mark.asyncio
async def test_publish_sends_json_to_channel():
    hub = ProductHub()
    redis = _fake_redis()
    backplane = RedisBackplane(redis, "test:events", hub)

    await backplane.publish(product_deleted(4))

    redis.publish.assert_awaited_once_with(
        "test:events", json.dumps({"type": "ProductDeleted", "id": 4})
    )


@pytest.mark.asyncio
async def test_received_messages_are_delivered_locally():
    hub = ProductHub()
    session = RecordingSession()
    hub.connect(session)
    redis = _fake_redis([
        {"type": "subscribe", "data": 1},
        {"type": "message", "data": "not json"},
        {"type": "message", "data": json.dumps({"type": "Unknown"})},
        {"type": "message", "data": json.dumps({"type": "ProductDeleted", "id": 8})},
    ])
    backplane = RedisBackplane(redis, "test:events", hub)

    await backplane.start()
    for _ in range(20):
        if session.messages:
            break
        await asyncio.sleep(0.01)
    await backplane.stop()

    assert session.messages == [{"type": "ProductDeleted", "id": 8}]


@pytest.mark.asyncio
async def test_start_attaches_and_stop_detaches():
    hub = ProductHub()
    redis = _fake_redis()
    backplane = RedisBackplane(redis, "test:events", hub)

    await backplane.start()
    assert hub.backplane is backplane
    pubsub = redis.pubsub.return_value
    assert pubsub.subscribed == ["test:events"]

    await backplane.stop()
    assert hub.backplane is None
    assert pubsub.closed
    redis.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_hub_broadcast_goes_through_redis_when_attached():
    hub = ProductHub()
    session = RecordingSession()
    hub.connect(session)
    redis = _fake_redis()
    backplane = RedisBackplane(redis, "test:events", hub)
    await backplane.start()

    await hub.broadcast(product_deleted(2))
    await backplane.stop()

    redis.publish.assert_awaited_once()
    assert session.messages == []


class DroppedPubSub(FakePubSub):
    """A subscription whose connection dies after the first message."""

    async def unsubscribe(self, channel):
        raise ConnectionError("connection closed")

    async def listen(self):
        for message in self.messages:
            yield message
        raise ConnectionError("connection closed")


@pytest.mark.asyncio
async def test_dead_listener_detaches_and_hub_delivers_locally():
    hub = ProductHub()
    session = RecordingSession()
    hub.connect(session)
    redis = _fake_redis()
    redis.pubsub.return_value = DroppedPubSub([{"type": "subscribe", "data": 1}])
    backplane = RedisBackplane(redis, "test:events", hub)

    await backplane.start()
    for _ in range(20):
        if hub.backplane is None:
            break
        await asyncio.sleep(0.01)
    assert hub.backplane is None

    await hub.broadcast(product_deleted(5))
    assert session.messages == [{"type": "ProductDeleted", "id": 5}]
    redis.publish.assert_not_awaited()

    await backplane.stop()
    assert redis.pubsub.return_value.closed
    redis.aclose.assert_awaited_once()
