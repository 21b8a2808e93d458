"""Exception hierarchy shared by the runner, the controller and resource scopes."""
from __future__ import annotations


class TickworkError(RuntimeError):
    pass


class LifecycleError(TickworkError):
    """A lifecycle method was called in a state that does not allow it."""


class InitializationError(TickworkError):
    """The one-time initialization step failed or timed out; no loop was started."""


class ShutdownTimeout(TickworkError):
    """The background loop did not settle within the host's shutdown window."""


class CycleFailure(TickworkError):
    """A single cycle's work unit raised; terminal to that cycle only."""

    def __init__(self, index: int, error: BaseException) -> None:
        super().__init__(f"cycle #{index} failed: {error!r}")
        self.index = index
        self.error = error
        self.__cause__ = error


class ScopeReleased(TickworkError):
    pass


class ResourceNotRegistered(KeyError):
    pass
