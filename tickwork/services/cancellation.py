from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CancellationSignal:
    """One-shot cooperative cancellation flag.

    Signals are passed explicitly into every suspension point.  A signal made
    with :meth:`linked` also fires when any of its parents fire, so an external
    shutdown reaches the loop without the loop knowing about the host.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._children: "weakref.WeakSet[CancellationSignal]" = weakref.WeakSet()
        self._callbacks: list[Callable[["CancellationSignal"], None]] = []

    @classmethod
    def linked(cls, *parents: Optional["CancellationSignal"]) -> "CancellationSignal":
        child = cls()
        for parent in parents:
            if parent is None:
                continue
            if parent.is_cancelled:
                child.cancel(parent.reason)
            else:
                parent._children.add(child)
        return child

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        for child in list(self._children):
            child.cancel(reason)
        self._children.clear()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception("Cancellation callback %r failed", callback)

    def add_callback(self, callback: Callable[["CancellationSignal"], None]) -> None:
        """Run ``callback`` once the signal fires, immediately if it already has."""

        if self.is_cancelled:
            callback(self)
        else:
            self._callbacks.append(callback)

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait until cancelled or ``timeout`` elapses; return whether cancelled."""

        if self.is_cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def __repr__(self) -> str:
        state = f"cancelled reason={self._reason!r}" if self.is_cancelled else "active"
        return f"<CancellationSignal {state}>"
