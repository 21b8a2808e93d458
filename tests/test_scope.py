from __future__ import annotations

import asyncio

import pytest

from tickwork.errors import ResourceNotRegistered, ScopeReleased
from tickwork.services.scope import ScopedServiceProvider


def test_resources_are_lazy_and_cached_per_scope() -> None:
    created: list[object] = []

    def make_client() -> object:
        client = object()
        created.append(client)
        return client

    provider = ScopedServiceProvider().add_scoped("client", make_client)

    async def scenario() -> None:
        async with provider.create_scope() as scope:
            assert created == []
            first = await scope.get("client")
            second = await scope.get("client")
            assert first is second
        async with provider.create_scope() as scope:
            third = await scope.get("client")
            assert third is not first

    asyncio.run(scenario())
    assert len(created) == 2


def test_generator_teardown_runs_in_reverse_order() -> None:
    log: list[str] = []

    def open_db():
        log.append("open db")
        try:
            yield "db"
        finally:
            log.append("close db")

    async def open_http():
        log.append("open http")
        try:
            yield "http"
        finally:
            log.append("close http")

    provider = ScopedServiceProvider().add_scoped("db", open_db).add_scoped("http", open_http)

    async def scenario() -> None:
        async with provider.create_scope() as scope:
            assert await scope.get("db") == "db"
            assert await scope.get("http") == "http"
            assert provider.outstanding == 1

    asyncio.run(scenario())
    assert log == ["open db", "open http", "close http", "close db"]
    assert provider.outstanding == 0


def test_release_is_idempotent_and_blocks_further_resolution() -> None:
    closes: list[int] = []

    async def open_conn():
        try:
            yield 1
        finally:
            closes.append(1)

    provider = ScopedServiceProvider().add_scoped("conn", open_conn)

    async def scenario() -> None:
        scope = provider.create_scope()
        await scope.get("conn")
        await scope.aclose()
        await scope.aclose()
        assert scope.released
        with pytest.raises(ScopeReleased):
            await scope.get("conn")

    asyncio.run(scenario())
    assert closes == [1]
    assert provider.outstanding == 0


def test_teardown_runs_when_body_raises() -> None:
    log: list[str] = []

    def open_db():
        try:
            yield "db"
        finally:
            log.append("closed")

    provider = ScopedServiceProvider().add_scoped("db", open_db)

    async def scenario() -> None:
        async with provider.create_scope() as scope:
            await scope.get("db")
            raise RuntimeError("work failed")

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())
    assert log == ["closed"]
    assert provider.outstanding == 0


def test_unknown_resource_raises_key_error_subclass() -> None:
    provider = ScopedServiceProvider()

    async def scenario() -> None:
        async with provider.create_scope() as scope:
            await scope.get("missing")

    with pytest.raises(ResourceNotRegistered) as info:
        asyncio.run(scenario())
    assert isinstance(info.value, KeyError)


def test_factories_can_resolve_from_their_scope_and_be_coroutines() -> None:
    async def make_settings() -> dict:
        await asyncio.sleep(0)
        return {"dsn": "memory://"}

    async def make_repo(scope):
        cfg = await scope.get("settings")
        return f"repo@{cfg['dsn']}"

    provider = ScopedServiceProvider().add_scoped("settings", make_settings).add_scoped("repo", make_repo)

    async def scenario() -> str:
        async with provider.create_scope() as scope:
            repo = await scope.get("repo")
            assert sorted(scope.resolved) == ["repo", "settings"]
            return repo

    assert asyncio.run(scenario()) == "repo@memory://"


def test_duplicate_registration_is_rejected() -> None:
    provider = ScopedServiceProvider().add_scoped("db", lambda: None)
    with pytest.raises(ValueError):
        provider.add_scoped("db", lambda: None)
    assert provider.names == ["db"]
