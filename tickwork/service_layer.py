from __future__ import annotations

from typing import Iterable, Optional

from .config import Settings, settings as default_settings
from .errors import (
    CycleFailure,
    InitializationError,
    LifecycleError,
    ResourceNotRegistered,
    ScopeReleased,
    ShutdownTimeout,
    TickworkError,
)
from .services.events import Listener
from .services.lifecycle import Initializer, LifecycleController
from .services.periodic_runner import PeriodicRunner, WorkUnit
from .services.scope import ScopedResourceProvider

__all__ = [
    "CycleFailure",
    "InitializationError",
    "LifecycleError",
    "NotRegistered",
    "ResourceNotRegistered",
    "ScopeReleased",
    "ServiceError",
    "ShutdownTimeout",
    "TickworkError",
    "build_controller",
    "get_history",
    "get_status",
]


class ServiceError(TickworkError):
    pass


class NotRegistered(ServiceError):
    pass


def build_controller(
    work: WorkUnit,
    provider: ScopedResourceProvider,
    *,
    initializer: Optional[Initializer] = None,
    settings: Optional[Settings] = None,
    listeners: Iterable[Listener] = (),
) -> LifecycleController:
    cfg = settings or default_settings
    runner = PeriodicRunner.from_settings(work, provider, cfg)
    return LifecycleController.from_settings(runner, cfg, initializer=initializer, listeners=listeners)


def get_status(controller: Optional[LifecycleController], settings: Optional[Settings] = None) -> dict:
    cfg = settings or default_settings
    if controller is None:
        return {
            "state": "disabled",
            "environment": cfg.environment,
            "run_count": 0,
            "failure_count": 0,
            "max_runs": cfg.max_runs,
            "interval_seconds": cfg.interval_seconds,
            "loop_running": False,
            "exhausted": False,
            "last_cycle": None,
            "history": [],
        }
    return controller.snapshot().to_dict()


def get_history(controller: Optional[LifecycleController], limit: int = 20) -> list[dict]:
    if controller is None:
        raise NotRegistered("Periodic runner is not registered in this environment")
    records = controller.runner.history()
    return [record.to_dict() for record in records[-limit:]] if limit > 0 else []
