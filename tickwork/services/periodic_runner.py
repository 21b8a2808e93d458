from __future__ import annotations

import logging
from collections import deque
from datetime import UTC, datetime
from typing import Awaitable, Callable, Deque, Iterable, Optional

from ..config import Settings
from ..errors import CycleFailure
from ..models import CycleRecord, LifecycleEventKind
from .cancellation import CancellationSignal
from .events import Listener, dispatch, make_event
from .scope import ResourceScope, ScopedResourceProvider

logger = logging.getLogger(__name__)

WorkUnit = Callable[[ResourceScope, CancellationSignal], Awaitable[None]]


class PeriodicRunner:
    """Single-flight loop running ``work`` once per tick inside a fresh scope.

    The interval is measured from the end of one cycle to the start of the next.
    Cancellation is cooperative: it is checked before every cycle and during the
    interval wait, never forced into a running work unit.
    """

    def __init__(
        self,
        work: WorkUnit,
        provider: ScopedResourceProvider,
        *,
        interval_seconds: float = 5.0,
        max_runs: Optional[int] = None,
        count_failed_cycles: bool = True,
        history_size: int = 64,
        listeners: Iterable[Listener] = (),
    ) -> None:
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        if max_runs is not None and max_runs < 0:
            raise ValueError("max_runs must be >= 0 or None")
        self._work = work
        self._provider = provider
        self._interval = float(interval_seconds)
        self._max_runs = max_runs
        self._count_failed_cycles = count_failed_cycles
        self._listeners: list[Listener] = list(listeners)
        self._history: Deque[CycleRecord] = deque(maxlen=history_size)
        self._run_count = 0
        self._attempts = 0
        self._failure_count = 0
        self._last_failure: Optional[CycleFailure] = None

    @classmethod
    def from_settings(
        cls,
        work: WorkUnit,
        provider: ScopedResourceProvider,
        settings: Settings,
        *,
        listeners: Iterable[Listener] = (),
    ) -> "PeriodicRunner":
        return cls(
            work,
            provider,
            interval_seconds=settings.interval_seconds,
            max_runs=settings.max_runs,
            count_failed_cycles=settings.count_failed_cycles,
            history_size=settings.history_size,
            listeners=listeners,
        )

    @property
    def run_count(self) -> int:
        return self._run_count

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def max_runs(self) -> Optional[int]:
        return self._max_runs

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def last_failure(self) -> Optional[CycleFailure]:
        return self._last_failure

    @property
    def exhausted(self) -> bool:
        return self._max_runs is not None and self._run_count >= self._max_runs

    def history(self) -> list[CycleRecord]:
        return list(self._history)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    async def run(self, signal: CancellationSignal) -> None:
        logger.info(
            "Periodic loop started (interval=%.3fs, max_runs=%s)", self._interval, self._max_runs
        )
        while not signal.is_cancelled and not self.exhausted:
            await self._run_cycle(signal)
            if self.exhausted or await signal.wait(self._interval):
                break

        if self.exhausted:
            logger.info("Reached max_runs=%d; periodic loop finished on its own", self._max_runs)
            await dispatch(
                self._listeners,
                make_event(LifecycleEventKind.EXHAUSTED, detail=f"max_runs={self._max_runs}"),
            )
        else:
            logger.info(
                "Periodic loop observed cancellation after %d runs (reason=%s)",
                self._run_count,
                signal.reason,
            )

    async def _run_cycle(self, signal: CancellationSignal) -> None:
        index = self._attempts + 1
        started_at = datetime.now(UTC)
        logger.info("Cycle #%d started at %s", index, started_at.isoformat())
        await dispatch(self._listeners, make_event(LifecycleEventKind.CYCLE_BEGIN, cycle_index=index))

        error: Optional[Exception] = None
        try:
            async with self._provider.create_scope() as scope:
                await self._work(scope, signal)
        except Exception as exc:
            error = exc

        finished_at = datetime.now(UTC)
        self._attempts += 1
        if error is None or self._count_failed_cycles:
            self._run_count += 1

        if error is None:
            record = CycleRecord(index=index, started_at=started_at, finished_at=finished_at, succeeded=True)
            self._history.append(record)
            logger.info(
                "Cycle #%d completed at %s (%.1f ms)", index, finished_at.isoformat(), record.duration_ms
            )
            await dispatch(self._listeners, make_event(LifecycleEventKind.CYCLE_END, cycle_index=index))
            return

        failure = CycleFailure(index, error)
        self._failure_count += 1
        self._last_failure = failure
        self._history.append(
            CycleRecord(
                index=index,
                started_at=started_at,
                finished_at=finished_at,
                succeeded=False,
                error=repr(error),
            )
        )
        logger.error("Error occurred in cycle #%d", index, exc_info=error)
        await dispatch(
            self._listeners,
            make_event(LifecycleEventKind.CYCLE_FAILED, cycle_index=index, detail=repr(error)),
        )
