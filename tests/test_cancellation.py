from __future__ import annotations

import asyncio

from tickwork.services.cancellation import CancellationSignal


def test_cancel_is_idempotent_and_keeps_first_reason() -> None:
    signal = CancellationSignal()
    assert not signal.is_cancelled
    signal.cancel("first")
    signal.cancel("second")
    assert signal.is_cancelled
    assert signal.reason == "first"


def test_linked_signal_fires_with_any_parent() -> None:
    host = CancellationSignal()
    other = CancellationSignal()
    child = CancellationSignal.linked(host, None, other)
    assert not child.is_cancelled

    other.cancel("other stopped")
    assert child.is_cancelled
    assert child.reason == "other stopped"
    assert not host.is_cancelled


def test_linked_signal_is_precancelled_when_parent_already_fired() -> None:
    parent = CancellationSignal()
    parent.cancel("shutdown")
    child = CancellationSignal.linked(parent)
    assert child.is_cancelled
    assert child.reason == "shutdown"


def test_cancelling_child_leaves_parent_active() -> None:
    parent = CancellationSignal()
    child = CancellationSignal.linked(parent)
    child.cancel()
    assert not parent.is_cancelled


def test_wait_returns_false_on_timeout_and_true_when_cancelled() -> None:
    async def scenario() -> tuple[bool, bool]:
        signal = CancellationSignal()
        timed_out = await signal.wait(0.01)
        asyncio.get_running_loop().call_later(0.01, signal.cancel)
        fired = await signal.wait(5)
        return timed_out, fired

    timed_out, fired = asyncio.run(scenario())
    assert timed_out is False
    assert fired is True


def test_callbacks_run_once_and_failures_are_isolated() -> None:
    signal = CancellationSignal()
    seen: list[str] = []

    def broken(_: CancellationSignal) -> None:
        raise RuntimeError("boom")

    signal.add_callback(broken)
    signal.add_callback(lambda s: seen.append(f"early:{s.reason}"))
    signal.cancel("stop")
    signal.cancel("again")
    signal.add_callback(lambda s: seen.append("late"))

    assert seen == ["early:stop", "late"]
