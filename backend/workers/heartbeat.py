"""Periodically record a heartbeat in DuckDB and publish it through Redis."""
from __future__ import annotations

import asyncio
import functools
import logging
from datetime import datetime, timezone

from tickwork.services.cancellation import CancellationSignal
from tickwork.services.scope import ResourceScope

from backend.cache import cache_heartbeat, publish_heartbeat
from backend.queries import record_heartbeat
from backend.schemas import HeartbeatItem

logger = logging.getLogger(__name__)


class HeartbeatJob:
    """Work unit run once per cycle with that cycle's scoped resources."""

    def __init__(self, environment: str) -> None:
        self.environment = environment
        self.sequence = 0

    async def __call__(self, scope: ResourceScope, cancel: CancellationSignal) -> None:
        conn = await scope.get("duckdb")
        redis = await scope.get("redis")

        self.sequence += 1
        item = HeartbeatItem(
            sequence=self.sequence,
            environment=self.environment,
            recorded_at=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            functools.partial(record_heartbeat, conn, item.sequence, item.environment, item.recorded_at),
        )

        if cancel.is_cancelled:
            logger.info("Cancellation requested; skipping publish of heartbeat %d", item.sequence)
            return
        await cache_heartbeat(redis, item)
        await publish_heartbeat(redis, item)
        logger.debug("Heartbeat %d published", item.sequence)
