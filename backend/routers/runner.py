"""Endpoints exposing the periodic runner's status and recorded heartbeats."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, Query

from tickwork.config import settings
from tickwork.service_layer import NotRegistered, get_history, get_status

from ..deps import ControllerDep, DuckDBDep
from ..queries import fetch_recent_heartbeats, summarize_heartbeats
from ..schemas import CycleItem, HeartbeatResponse, HeartbeatSummary, RunnerStatus

router = APIRouter()


@router.get("/status", response_model=RunnerStatus)
async def get_runner_status(controller=ControllerDep) -> RunnerStatus:
    return RunnerStatus.model_validate(get_status(controller, settings))


@router.get("/history", response_model=List[CycleItem])
async def get_runner_history(
    limit: int = Query(20, ge=1, le=500),
    controller=ControllerDep,
) -> List[CycleItem]:
    try:
        records = get_history(controller, limit=limit)
    except NotRegistered as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return [CycleItem.model_validate(record) for record in records]


@router.get("/heartbeats", response_model=HeartbeatResponse)
def get_heartbeats(limit: int = Query(20, ge=1, le=500), conn=DuckDBDep) -> HeartbeatResponse:
    return HeartbeatResponse(items=fetch_recent_heartbeats(conn, limit=limit))


@router.get("/heartbeats/summary", response_model=List[HeartbeatSummary])
def get_heartbeat_summary(conn=DuckDBDep) -> List[HeartbeatSummary]:
    return summarize_heartbeats(conn)
