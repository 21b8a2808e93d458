"""One-time initialization run before the periodic loop is started."""
from __future__ import annotations

import asyncio
import contextlib
import logging

from tickwork.services.cancellation import CancellationSignal

from backend.deps import get_duckdb, get_redis
from backend.queries import ensure_schema

logger = logging.getLogger(__name__)


async def warmup(cancel: CancellationSignal) -> None:
    loop = asyncio.get_running_loop()
    conn = await loop.run_in_executor(None, get_duckdb)
    await loop.run_in_executor(None, ensure_schema, conn)
    logger.info("Heartbeat table ready")

    async with contextlib.asynccontextmanager(get_redis)() as redis:
        await redis.ping()
    logger.info("Redis reachable")
