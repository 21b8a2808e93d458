"""Redis helpers for the latest heartbeat published by the periodic runner."""
from __future__ import annotations

import json

from redis.asyncio import Redis

from .schemas import HeartbeatItem

LAST_HEARTBEAT_KEY = "tickwork:{environment}:last_heartbeat"
TTL_SECONDS = 3600
PUBSUB_CHANNEL = "tickwork_heartbeats"


def _key(template: str, environment: str) -> str:
    return template.format(environment=environment)


async def cache_heartbeat(redis: Redis, item: HeartbeatItem) -> None:
    """Store the latest heartbeat for quick reads."""

    payload = json.dumps(item.model_dump(mode="json"))
    await redis.setex(_key(LAST_HEARTBEAT_KEY, item.environment), TTL_SECONDS, payload)


async def publish_heartbeat(redis: Redis, item: HeartbeatItem) -> None:
    """Publish the heartbeat to interested subscribers."""

    await redis.publish(PUBSUB_CHANNEL, json.dumps(item.model_dump(mode="json")))
