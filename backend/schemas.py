"""Pydantic models shared across the backend services."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CycleItem(BaseModel):
    """Outcome of a single periodic cycle."""

    model_config = ConfigDict(extra="ignore")

    index: int = Field(..., ge=1, description="1-based cycle index")
    started_at: datetime
    finished_at: datetime
    duration_ms: float
    succeeded: bool
    error: Optional[str] = None


class RunnerStatus(BaseModel):
    """Snapshot of the periodic runner as seen by the host."""

    state: str
    environment: str
    run_count: int = Field(..., ge=0)
    failure_count: int = Field(..., ge=0)
    max_runs: Optional[int] = None
    interval_seconds: float
    loop_running: bool = False
    exhausted: bool = False
    last_cycle: Optional[CycleItem] = None
    history: List[CycleItem] = Field(default_factory=list)


class HeartbeatItem(BaseModel):
    """Row written by the heartbeat work unit."""

    sequence: int
    environment: str
    recorded_at: datetime


class HeartbeatResponse(BaseModel):
    items: List[HeartbeatItem]


class HeartbeatSummary(BaseModel):
    """Per-environment heartbeat aggregate."""

    environment: str
    beats: int
    first_at: datetime
    last_at: datetime
