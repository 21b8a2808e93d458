from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class LifecycleState(str, Enum):
    UNSTARTED = "unstarted"
    INITIALIZING = "initializing"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class LifecycleEventKind(str, Enum):
    START_BEGIN = "start_begin"
    INIT_COMPLETED = "init_completed"
    START_END = "start_end"
    CYCLE_BEGIN = "cycle_begin"
    CYCLE_END = "cycle_end"
    CYCLE_FAILED = "cycle_failed"
    EXHAUSTED = "exhausted"
    STOP_BEGIN = "stop_begin"
    STOP_END = "stop_end"


@dataclass(slots=True)
class CycleRecord:
    index: int
    started_at: datetime
    finished_at: datetime
    succeeded: bool
    error: str | None = None

    @property
    def duration_ms(self) -> float:
        return (self.finished_at - self.started_at).total_seconds() * 1000.0

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["started_at"] = self.started_at.isoformat()
        payload["finished_at"] = self.finished_at.isoformat()
        payload["duration_ms"] = self.duration_ms
        return payload


@dataclass(slots=True)
class LifecycleEvent:
    kind: LifecycleEventKind
    timestamp: datetime
    cycle_index: int | None = None
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "cycle_index": self.cycle_index,
            "detail": self.detail,
        }


@dataclass(slots=True)
class RunnerSnapshot:
    """Point-in-time view of a controller.

    ``state`` follows host calls to start and stop; ``loop_running`` and
    ``exhausted`` report whether the loop has already ended on its own.
    """

    state: LifecycleState
    environment: str
    run_count: int
    failure_count: int
    max_runs: int | None
    interval_seconds: float
    history: list[CycleRecord] = field(default_factory=list)
    loop_running: bool = False
    exhausted: bool = False

    @property
    def last_cycle(self) -> CycleRecord | None:
        return self.history[-1] if self.history else None

    def to_dict(self) -> dict[str, Any]:
        last = self.last_cycle
        return {
            "state": self.state.value,
            "environment": self.environment,
            "run_count": self.run_count,
            "failure_count": self.failure_count,
            "max_runs": self.max_runs,
            "interval_seconds": self.interval_seconds,
            "loop_running": self.loop_running,
            "exhausted": self.exhausted,
            "last_cycle": last.to_dict() if last else None,
            "history": [record.to_dict() for record in self.history],
        }
