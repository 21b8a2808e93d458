from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional

from ..config import Settings
from ..errors import InitializationError, LifecycleError, ShutdownTimeout
from ..models import LifecycleEventKind, LifecycleState, RunnerSnapshot
from .cancellation import CancellationSignal
from .events import Listener, dispatch, make_event
from .periodic_runner import PeriodicRunner

logger = logging.getLogger(__name__)

Initializer = Callable[[CancellationSignal], Awaitable[None]]


class LifecycleController:
    """Attach a :class:`PeriodicRunner` to a host's start/stop hooks.

    ``start`` awaits the one-time initializer and then spawns the loop as a task
    whose handle is kept so ``stop`` can join it.  The task handle exists only
    while the controller also owns the loop's cancellation signal.
    """

    def __init__(
        self,
        runner: PeriodicRunner,
        *,
        initializer: Optional[Initializer] = None,
        environment: str = "Production",
        init_timeout_seconds: Optional[float] = 30.0,
        listeners: Iterable[Listener] = (),
    ) -> None:
        self._runner = runner
        self._initializer = initializer
        self._environment = environment
        self._init_timeout = init_timeout_seconds
        self._listeners: list[Listener] = []
        self._state = LifecycleState.UNSTARTED
        self._cts: Optional[CancellationSignal] = None
        self._task: Optional[asyncio.Task] = None
        for listener in listeners:
            self.add_listener(listener)

    @classmethod
    def from_settings(
        cls,
        runner: PeriodicRunner,
        settings: Settings,
        *,
        initializer: Optional[Initializer] = None,
        listeners: Iterable[Listener] = (),
    ) -> "LifecycleController":
        return cls(
            runner,
            initializer=initializer,
            environment=settings.environment,
            init_timeout_seconds=settings.init_timeout_seconds,
            listeners=listeners,
        )

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def runner(self) -> PeriodicRunner:
        return self._runner

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)
        self._runner.add_listener(listener)

    def snapshot(self) -> RunnerSnapshot:
        return RunnerSnapshot(
            state=self._state,
            environment=self._environment,
            run_count=self._runner.run_count,
            failure_count=self._runner.failure_count,
            max_runs=self._runner.max_runs,
            interval_seconds=self._runner.interval_seconds,
            history=self._runner.history(),
            loop_running=self.is_running,
            exhausted=self._runner.exhausted,
        )

    async def start(self, parent_signal: Optional[CancellationSignal] = None) -> None:
        if self._state is not LifecycleState.UNSTARTED:
            raise LifecycleError(f"start() called in state {self._state.value}")

        logger.info("Runner starting in %s environment...", self._environment)
        await dispatch(self._listeners, make_event(LifecycleEventKind.START_BEGIN, detail=self._environment))
        self._state = LifecycleState.INITIALIZING
        try:
            await self._initialize(CancellationSignal.linked(parent_signal))
        except asyncio.CancelledError:
            self._state = LifecycleState.STOPPED
            raise
        except InitializationError:
            self._state = LifecycleState.STOPPED
            raise
        except Exception as exc:
            self._state = LifecycleState.STOPPED
            logger.error("Initialization failed: %s", exc)
            raise InitializationError(f"initialization failed: {exc!r}") from exc
        logger.info("Initialization logic finished.")
        await dispatch(self._listeners, make_event(LifecycleEventKind.INIT_COMPLETED))

        self._cts = CancellationSignal.linked(parent_signal)
        self._task = asyncio.create_task(self._runner.run(self._cts), name="tickwork-periodic-loop")
        self._state = LifecycleState.RUNNING
        logger.info("Runner started.")
        await dispatch(self._listeners, make_event(LifecycleEventKind.START_END))

    async def _initialize(self, signal: CancellationSignal) -> None:
        if self._initializer is None:
            return
        try:
            await asyncio.wait_for(self._initializer(signal), timeout=self._init_timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Initialization did not complete within %.1fs", self._init_timeout)
            raise InitializationError(
                f"initialization did not complete within {self._init_timeout}s"
            ) from exc

    async def stop(
        self,
        caller_signal: Optional[CancellationSignal] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if self._state is LifecycleState.STOPPED:
            return
        if self._state is LifecycleState.UNSTARTED:
            logger.info("Runner was never started; nothing to stop.")
            self._state = LifecycleState.STOPPED
            return
        if self._state is LifecycleState.INITIALIZING:
            raise LifecycleError("stop() called while initialization is still running")

        logger.info("Runner stopping...")
        await dispatch(self._listeners, make_event(LifecycleEventKind.STOP_BEGIN))
        self._state = LifecycleState.STOPPING
        if self._cts is None or self._task is None:
            raise LifecycleError("running controller lost its loop handle")
        self._cts.cancel("stop requested")
        await self._join(self._task, caller_signal, timeout)

        self._cts = None
        self._task = None
        self._state = LifecycleState.STOPPED
        logger.info("Runner stopped.")
        await dispatch(self._listeners, make_event(LifecycleEventKind.STOP_END))

    async def _join(
        self,
        task: asyncio.Task,
        caller_signal: Optional[CancellationSignal],
        timeout: Optional[float],
    ) -> None:
        waiters: set[asyncio.Future] = {task}
        caller_waiter: Optional[asyncio.Task] = None
        if caller_signal is not None:
            caller_waiter = asyncio.create_task(caller_signal.wait())
            waiters.add(caller_waiter)
        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if caller_waiter is not None and not caller_waiter.done():
                caller_waiter.cancel()

        if task not in done:
            reason = "caller cancelled the wait" if caller_waiter in done else f"timeout after {timeout}s"
            logger.error("Periodic loop did not settle during shutdown (%s)", reason)
            raise ShutdownTimeout(f"periodic loop still running: {reason}")

        if task.cancelled():
            # The loop task itself was cancelled; it has already exited.
            logger.debug("Periodic loop ended by task cancellation")
        elif (exc := task.exception()) is not None:
            logger.error("Periodic loop ended with an unexpected error", exc_info=exc)

    async def wait_finished(self) -> None:
        """Wait for the loop to end on its own without requesting cancellation."""

        if self._task is None:
            return
        await asyncio.wait({self._task})
