"""Services conftest — page-service clients on both transports."""

import pytest

from wiki.services.page_service import (
    LocalPageService, PageServiceConsumer, PageServiceProxy,
)

TEST_ADDRESS = "wikidb.test"


@pytest.fixture(params=["local", "bus"])
async def page_service(request, store, bus):
    """Same assertions run against the in-process and bus-backed service."""
    if request.param == "local":
        return LocalPageService(store, timeout_seconds=2.0)
    PageServiceConsumer(store).register(bus, TEST_ADDRESS)
    return PageServiceProxy(bus, TEST_ADDRESS, timeout_seconds=2.0)
