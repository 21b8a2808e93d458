"""Cycle-scoped resource containers.

A :class:`ScopedServiceProvider` is a long-lived registry of named factories.
Every cycle asks it for a fresh :class:`ResourceScope`; resources are built
lazily on first :meth:`ResourceScope.get` and torn down together when the scope
is released.  Factories follow the same shapes FastAPI accepts for dependencies:
plain callables, coroutine functions, and (async) generator functions whose code
after ``yield`` runs on release.  A factory may take the scope as its single
argument to resolve other resources from the same scope.
"""
from __future__ import annotations

import contextlib
import inspect
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from ..errors import ResourceNotRegistered, ScopeReleased

logger = logging.getLogger(__name__)

Factory = Callable[..., Any]


class ScopedResourceProvider(Protocol):
    def create_scope(self) -> "ResourceScope":
        ...


class ResourceScope:
    def __init__(
        self,
        factories: Mapping[str, Factory],
        *,
        on_release: Optional[Callable[["ResourceScope"], None]] = None,
    ) -> None:
        self._factories = factories
        self._on_release = on_release
        self._instances: Dict[str, Any] = {}
        self._stack = contextlib.AsyncExitStack()
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def resolved(self) -> list[str]:
        return list(self._instances)

    async def get(self, name: str) -> Any:
        if self._released:
            raise ScopeReleased(f"Scope already released; cannot resolve {name!r}")
        if name in self._instances:
            return self._instances[name]
        try:
            factory = self._factories[name]
        except KeyError as exc:
            raise ResourceNotRegistered(name) from exc

        args = (self,) if _wants_scope(factory) else ()
        if inspect.isasyncgenfunction(factory):
            instance = await self._stack.enter_async_context(
                contextlib.asynccontextmanager(factory)(*args)
            )
        elif inspect.isgeneratorfunction(factory):
            instance = self._stack.enter_context(contextlib.contextmanager(factory)(*args))
        else:
            instance = factory(*args)
            if inspect.isawaitable(instance):
                instance = await instance
        self._instances[name] = instance
        logger.debug("Resolved scoped resource %s", name)
        return instance

    async def aclose(self) -> None:
        """Release every resource resolved in this scope; safe to call twice."""

        if self._released:
            return
        self._released = True
        try:
            await self._stack.aclose()
        finally:
            self._instances.clear()
            if self._on_release is not None:
                self._on_release(self)

    async def __aenter__(self) -> "ResourceScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class ScopedServiceProvider:
    """In-process provider handing out one :class:`ResourceScope` per request."""

    def __init__(self) -> None:
        self._factories: Dict[str, Factory] = {}
        self._outstanding = 0

    def add_scoped(self, name: str, factory: Factory) -> "ScopedServiceProvider":
        if name in self._factories:
            raise ValueError(f"Scoped resource {name!r} already registered")
        self._factories[name] = factory
        return self

    @property
    def names(self) -> list[str]:
        return sorted(self._factories)

    @property
    def outstanding(self) -> int:
        return self._outstanding

    def create_scope(self) -> ResourceScope:
        self._outstanding += 1
        return ResourceScope(dict(self._factories), on_release=self._scope_released)

    def _scope_released(self, scope: ResourceScope) -> None:
        self._outstanding -= 1


def _wants_scope(factory: Factory) -> bool:
    try:
        params = inspect.signature(factory).parameters
    except (TypeError, ValueError):  # pragma: no cover - builtins without signatures
        return False
    return len(params) == 1
