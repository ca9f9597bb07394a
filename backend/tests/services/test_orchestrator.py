"""Orchestrator — tests for startup sequencing, failure states and multi-instance serving.

Tests cover:
    - Successful start reaches RUNNING with a bound listener and N front apps
    - Store failure → FAILED, StorageInitError, listener never bound
    - Port in use → FAILED, ListenerBindError
    - serve() outside RUNNING is an illegal transition
    - Front instances share one store through the bus address
    - Real HTTP round-trip through uvicorn on the shared socket
"""

import asyncio
import socket

import httpx
import pytest

from wiki.config import Settings
from wiki.core.domain_types import StartupState
from wiki.core.errors import (
    IllegalTransitionError, ListenerBindError, StorageInitError,
)
from wiki.services.orchestrator import Orchestrator
from wiki.services.page_service import LocalPageService, PageServiceProxy

UNREACHABLE_URL = "sqlite+aiosqlite:////nonexistent-dir/sub/wiki.db"


def _settings(**overrides) -> Settings:
    values = {
        "http_host": "127.0.0.1",
        "http_port": 0,
        "database_url": "sqlite+aiosqlite:///:memory:",
        "front_instances": 2,
        "service_transport": "bus",
        "service_timeout_seconds": 2.0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
async def orchestrator_factory():
    created: list[Orchestrator] = []

    def make(**overrides) -> Orchestrator:
        orchestrator = Orchestrator(_settings(**overrides))
        created.append(orchestrator)
        return orchestrator

    yield make
    for orchestrator in created:
        await orchestrator.shutdown()


async def test_start_reaches_running(orchestrator_factory):
    orchestrator = orchestrator_factory()
    await orchestrator.start()
    assert orchestrator.state is StartupState.RUNNING
    assert orchestrator.listener is not None
    assert orchestrator.listener.getsockname()[1] > 0
    assert len(orchestrator.apps) == 2
    assert orchestrator.store.ready
    assert orchestrator.bus.consumer_count("wikidb.queue") == 1


async def test_each_front_gets_its_own_proxy(orchestrator_factory):
    orchestrator = orchestrator_factory(front_instances=3)
    await orchestrator.start()
    services = [app.state.page_service for app in orchestrator.apps]
    assert all(isinstance(s, PageServiceProxy) for s in services)
    assert len({id(s) for s in services}) == 3
    assert [app.state.instance for app in orchestrator.apps] == [0, 1, 2]


async def test_local_transport_registers_no_consumers(orchestrator_factory):
    orchestrator = orchestrator_factory(service_transport="local")
    await orchestrator.start()
    assert orchestrator.bus.consumer_count("wikidb.queue") == 0
    assert isinstance(orchestrator.apps[0].state.page_service, LocalPageService)


async def test_store_failure_never_binds_listener(orchestrator_factory, monkeypatch):
    orchestrator = orchestrator_factory(database_url=UNREACHABLE_URL)
    bind_calls = []
    monkeypatch.setattr(
        orchestrator, "_bind_listener", lambda: bind_calls.append(1),
    )
    with pytest.raises(StorageInitError):
        await orchestrator.start()
    assert orchestrator.state is StartupState.FAILED
    assert orchestrator.listener is None
    assert orchestrator.apps == []
    assert bind_calls == []


async def test_port_in_use_is_listener_bind_error(orchestrator_factory):
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    try:
        port = blocker.getsockname()[1]
        orchestrator = orchestrator_factory(http_port=port)
        with pytest.raises(ListenerBindError) as exc:
            await orchestrator.start()
        assert exc.value.port == port
        assert orchestrator.state is StartupState.FAILED
        assert orchestrator.listener is None
        # store came up before the bind attempt
        assert orchestrator.store.ready
    finally:
        blocker.close()


async def test_serve_before_running_is_illegal(orchestrator_factory):
    orchestrator = orchestrator_factory()
    with pytest.raises(IllegalTransitionError):
        await orchestrator.serve()


async def test_start_twice_is_illegal(orchestrator_factory):
    orchestrator = orchestrator_factory()
    await orchestrator.start()
    with pytest.raises(IllegalTransitionError):
        await orchestrator.start()
    assert orchestrator.state is StartupState.RUNNING


async def test_fronts_share_store_through_bus(orchestrator_factory):
    orchestrator = orchestrator_factory()
    await orchestrator.start()
    first, second = orchestrator.apps

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=first), base_url="http://test",
    ) as client:
        response = await client.post("/save", data={
            "title": "Shared", "markdown": "# Shared", "newPage": "yes", "id": "-1",
        })
        assert response.status_code == 303

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=second), base_url="http://test",
    ) as client:
        response = await client.get("/")
        assert '<a href="/wiki/Shared">Shared</a>' in response.text


async def test_serves_http_on_bound_socket(orchestrator_factory):
    orchestrator = orchestrator_factory()
    await orchestrator.start()
    port = orchestrator.listener.getsockname()[1]

    serving = asyncio.create_task(orchestrator.serve())
    try:
        for _ in range(100):
            if orchestrator._servers and all(s.started for s in orchestrator._servers):
                break
            await asyncio.sleep(0.05)
        async with httpx.AsyncClient(
            base_url=f"http://127.0.0.1:{port}", trust_env=False,
        ) as client:
            response = await client.get("/")
        assert response.status_code == 200
        assert "The wiki is currently empty!" in response.text
    finally:
        for server in orchestrator._servers:
            server.should_exit = True
        await asyncio.wait_for(serving, timeout=5.0)
