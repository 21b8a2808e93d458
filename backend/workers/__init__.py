"""Register the periodic heartbeat runner."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from backend.deps import build_provider
from tickwork.config import Settings, settings
from tickwork.service_layer import build_controller
from tickwork.services.events import Listener
from tickwork.services.lifecycle import Initializer, LifecycleController
from tickwork.services.scope import ScopedResourceProvider

from .heartbeat import HeartbeatJob
from .warmup import warmup

logger = logging.getLogger(__name__)


def create_controller(
    cfg: Settings = settings,
    *,
    provider: Optional[ScopedResourceProvider] = None,
    listeners: Iterable[Listener] = (),
    initializer: Optional[Initializer] = warmup,
) -> Optional[LifecycleController]:
    """Build the heartbeat controller, or ``None`` outside active environments."""

    if not cfg.is_active:
        logger.info(
            "Periodic runner disabled in %s environment (active: %s)",
            cfg.environment,
            ", ".join(cfg.active_environments),
        )
        return None
    if provider is None:
        provider = build_provider()
    return build_controller(
        HeartbeatJob(cfg.environment),
        provider,
        initializer=initializer,
        settings=cfg,
        listeners=listeners,
    )
