"""Root conftest — shared store and bus fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database (StaticPool, one connection)
    - Tests never read a developer's .env DATABASE_URL
"""

import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from wiki.infrastructure.database import DatabaseSessionManager  # noqa: E402
from wiki.infrastructure.event_bus import EventBus  # noqa: E402
from wiki.services.page_store import PageStore  # noqa: E402

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_manager():
    manager = DatabaseSessionManager(MEMORY_URL)
    yield manager
    await manager.dispose()


@pytest.fixture
async def store(db_manager):
    """Initialized PageStore over the in-memory database."""
    page_store = PageStore(db_manager)
    await page_store.initialize()
    return page_store


@pytest.fixture
async def bus():
    event_bus = EventBus()
    yield event_bus
    await event_bus.close()
