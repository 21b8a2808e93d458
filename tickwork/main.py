from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from datetime import UTC, datetime

from .config import Settings
from .models import RunnerSnapshot
from .service_layer import build_controller
from .services.cancellation import CancellationSignal
from .services.scope import ResourceScope, ScopedServiceProvider

logger = logging.getLogger(__name__)


class DemoScopedService:
    async def do_scoped_stuff(self) -> None:
        logger.info("Scoped service called.")


async def _demo_connection():
    conn = {"opened_at": datetime.now(UTC), "queries": 0}
    logger.debug("Demo connection opened")
    try:
        yield conn
    finally:
        logger.debug("Demo connection closed after %d queries", conn["queries"])


def build_demo_provider() -> ScopedServiceProvider:
    provider = ScopedServiceProvider()
    provider.add_scoped("db", _demo_connection)
    provider.add_scoped("service", DemoScopedService)
    return provider


def make_demo_work(io_delay: float = 0.05, fail_every: int = 0):
    calls = 0

    async def work(scope: ResourceScope, cancel: CancellationSignal) -> None:
        nonlocal calls
        calls += 1
        conn = await scope.get("db")
        conn["queries"] += 1
        service = await scope.get("service")
        await service.do_scoped_stuff()
        await asyncio.sleep(io_delay)
        if fail_every and calls % fail_every == 0:
            raise RuntimeError(f"simulated failure on call {calls}")

    return work


async def _demo_init(cancel: CancellationSignal) -> None:
    await asyncio.sleep(0.1)


async def run_demo(settings: Settings, *, fail_every: int = 0) -> RunnerSnapshot:
    host_signal = CancellationSignal()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, host_signal.cancel, sig.name)

    controller = build_controller(
        make_demo_work(fail_every=fail_every),
        build_demo_provider(),
        initializer=_demo_init,
        settings=settings,
    )
    await controller.start(host_signal)

    finished = asyncio.create_task(controller.wait_finished())
    interrupted = asyncio.create_task(host_signal.wait())
    try:
        await asyncio.wait({finished, interrupted}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (finished, interrupted):
            task.cancel()
    await controller.stop(timeout=settings.shutdown_timeout_seconds)
    return controller.snapshot()
