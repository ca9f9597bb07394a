"""Command Line — export output and startup failure exit status."""

import asyncio
import json
import logging

import pytest
from click.testing import CliRunner

from wiki.cli import cli
from wiki.infrastructure.database import DatabaseSessionManager
from wiki.infrastructure import observability
from wiki.services.page_store import PageStore

UNREACHABLE_URL = "sqlite+aiosqlite:////nonexistent-dir/sub/wiki.db"


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI installs a root handler bound to the runner's captured stderr."""
    level = logging.root.level
    yield
    if observability._handler is not None:
        logging.root.removeHandler(observability._handler)
        observability._handler = None
    logging.root.setLevel(level)


async def _seed(url: str, pages: list[tuple[str, str]]) -> None:
    db = DatabaseSessionManager(url)
    try:
        store = PageStore(db)
        await store.initialize()
        for name, content in pages:
            await store.create_page(name, content)
    finally:
        await db.dispose()


@pytest.fixture
def seeded_url(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'wiki.db'}"
    asyncio.run(_seed(url, [("Zulu", "# Z"), ("Alpha", "# A")]))
    return url


def test_export_writes_pages_in_id_order(seeded_url, tmp_path):
    output = tmp_path / "pages.json"
    result = CliRunner().invoke(
        cli, ["export", "--database-url", seeded_url, "--output", str(output)],
    )
    assert result.exit_code == 0, result.output
    pages = json.loads(output.read_text(encoding="utf-8"))
    assert [p["name"] for p in pages] == ["Zulu", "Alpha"]
    assert pages[0] == {"id": 1, "name": "Zulu", "content": "# Z"}


def test_export_to_stdout(seeded_url):
    result = CliRunner().invoke(cli, ["export", "--database-url", seeded_url])
    assert result.exit_code == 0
    assert '"name": "Alpha"' in result.output


def test_export_unreachable_store_fails():
    result = CliRunner().invoke(cli, ["export", "--database-url", UNREACHABLE_URL])
    assert result.exit_code == 1
    assert "Storage initialization failed" in result.output


def test_serve_with_unreachable_store_exits_1():
    result = CliRunner().invoke(cli, [
        "serve", "--database-url", UNREACHABLE_URL,
        "--host", "127.0.0.1", "--port", "0",
    ])
    assert result.exit_code == 1


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output
