"""API conftest — HTTP clients over a front app wired to a real store."""

import pytest
from httpx import ASGITransport, AsyncClient

from wiki.main import create_app
from wiki.services.page_service import (
    LocalPageService, PageServiceConsumer, PageServiceProxy,
)


@pytest.fixture
def local_app(store):
    return create_app(LocalPageService(store, timeout_seconds=2.0))


@pytest.fixture
async def client(local_app):
    async with AsyncClient(
        transport=ASGITransport(app=local_app), base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def bus_client(store, bus):
    """Client whose front reaches the store only through the event bus."""
    PageServiceConsumer(store).register(bus, "wikidb.queue")
    app = create_app(PageServiceProxy(bus, "wikidb.queue", timeout_seconds=2.0))
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as ac:
        yield ac
