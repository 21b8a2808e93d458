from __future__ import annotations

import inspect
import logging
from datetime import UTC, datetime
from typing import Any, Callable, Iterable, Optional

from ..models import LifecycleEvent, LifecycleEventKind

logger = logging.getLogger(__name__)

Listener = Callable[[LifecycleEvent], Any]


def make_event(
    kind: LifecycleEventKind,
    *,
    cycle_index: Optional[int] = None,
    detail: Optional[str] = None,
) -> LifecycleEvent:
    return LifecycleEvent(kind=kind, timestamp=datetime.now(UTC), cycle_index=cycle_index, detail=detail)


async def dispatch(listeners: Iterable[Listener], event: LifecycleEvent) -> None:
    """Hand ``event`` to each listener in turn; a failing listener is only logged."""

    for listener in list(listeners):
        try:
            result = listener(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Lifecycle listener %r failed on %s", listener, event.kind.value)
