"""Query layer for DuckDB and Polars analytics over recorded heartbeats."""
from __future__ import annotations

from datetime import datetime
from typing import List

import duckdb
import polars as pl

from .schemas import HeartbeatItem, HeartbeatSummary

HEARTBEAT_COLUMNS = ["sequence", "environment", "recorded_at"]


def ensure_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create the heartbeat table if it does not yet exist."""

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS heartbeats (
            sequence INTEGER,
            environment VARCHAR,
            recorded_at TIMESTAMP
        )
        """
    )


def record_heartbeat(
    conn: duckdb.DuckDBPyConnection, sequence: int, environment: str, recorded_at: datetime
) -> None:
    conn.execute(
        "INSERT INTO heartbeats (sequence, environment, recorded_at) VALUES (?, ?, ?)",
        [sequence, environment, recorded_at],
    )


def fetch_recent_heartbeats(conn: duckdb.DuckDBPyConnection, limit: int = 20) -> List[HeartbeatItem]:
    """Return the most recent heartbeats, newest first."""

    rows = conn.execute(
        "SELECT sequence, environment, recorded_at FROM heartbeats ORDER BY recorded_at DESC, sequence DESC LIMIT ?",
        [limit],
    ).fetchall()
    return [HeartbeatItem(sequence=row[0], environment=row[1], recorded_at=row[2]) for row in rows]


def summarize_heartbeats(conn: duckdb.DuckDBPyConnection) -> List[HeartbeatSummary]:
    """Aggregate heartbeats per environment using Polars."""

    rows = conn.execute("SELECT sequence, environment, recorded_at FROM heartbeats").fetchall()
    if not rows:
        return []
    frame = pl.DataFrame(rows, schema=HEARTBEAT_COLUMNS, orient="row")
    summary = (
        frame.group_by("environment")
        .agg(
            pl.len().alias("beats"),
            pl.col("recorded_at").min().alias("first_at"),
            pl.col("recorded_at").max().alias("last_at"),
        )
        .sort("environment")
    )
    return [HeartbeatSummary(**row) for row in summary.to_dicts()]
