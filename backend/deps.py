"""Dependency wiring for shared infrastructure clients."""
from __future__ import annotations

import functools
import os
from pathlib import Path
from typing import AsyncIterator, Iterator, Optional

import duckdb
from fastapi import Depends, Request
from redis.asyncio import Redis

from tickwork.services.lifecycle import LifecycleController
from tickwork.services.scope import ScopedServiceProvider

from .queries import ensure_schema


DUCKDB_PATH = Path(os.getenv("TICKWORK_DUCKDB_PATH", "data/tickwork.duckdb"))
REDIS_DSN = os.getenv("TICKWORK_REDIS_DSN", "redis://localhost:6379/0")


@functools.lru_cache(maxsize=1)
def get_duckdb() -> duckdb.DuckDBPyConnection:
    """Return a process-wide DuckDB connection with the heartbeat schema in place."""

    DUCKDB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = duckdb.connect(str(DUCKDB_PATH))
    ensure_schema(conn)
    return conn


def duckdb_cursor() -> Iterator[duckdb.DuckDBPyConnection]:
    """Yield a cursor on the shared connection, closed when the scope ends."""

    cursor = get_duckdb().cursor()
    try:
        yield cursor
    finally:
        cursor.close()


async def get_redis() -> AsyncIterator[Redis]:
    """Yield an asyncio Redis client."""

    client = Redis.from_url(REDIS_DSN, encoding="utf-8", decode_responses=False)
    try:
        yield client
    finally:
        await client.aclose()


def build_provider() -> ScopedServiceProvider:
    """Scoped resources handed to every periodic cycle."""

    provider = ScopedServiceProvider()
    provider.add_scoped("duckdb", duckdb_cursor)
    provider.add_scoped("redis", get_redis)
    return provider


def get_controller(request: Request) -> Optional[LifecycleController]:
    return getattr(request.app.state, "controller", None)


RedisDep = Depends(get_redis)
DuckDBDep = Depends(duckdb_cursor)
ControllerDep = Depends(get_controller)
