"""Command Line — `wiki serve` runs the orchestrator, `wiki export` dumps every page.

Invariants:
    - Startup failure logs its cause and exits with status 1; nothing keeps running
    - export reads through the PageService contract, never the ORM directly
    - Engine and bus are disposed on every exit path
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from wiki.config import Settings, get_settings
from wiki.core.errors import WikiError
from wiki.infrastructure.database import DatabaseSessionManager
from wiki.infrastructure.observability import setup_logging
from wiki.schemas.page import PageData
from wiki.services.orchestrator import Orchestrator
from wiki.services.page_service import LocalPageService
from wiki.services.page_store import PageStore

logger = logging.getLogger(__name__)


def _load_settings(**overrides) -> Settings:
    settings = get_settings()
    updates = {k: v for k, v in overrides.items() if v is not None}
    if updates:
        settings = Settings(**{**settings.model_dump(), **updates})
    setup_logging(settings.log_level, settings.log_format)
    return settings


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """Wiki - markdown pages behind an async page service."""
    pass


@cli.command()
@click.option("--host", default=None, help="Listener host.")
@click.option("--port", type=int, default=None, help="Listener port.")
@click.option("--instances", type=int, default=None, help="HTTP front instances.")
@click.option("--database-url", default=None, help="Store connection string.")
def serve(host, port, instances, database_url):
    """Start the store, then the HTTP front."""
    settings = _load_settings(
        http_host=host, http_port=port,
        front_instances=instances, database_url=database_url,
    )
    sys.exit(asyncio.run(_serve(settings)))


async def _serve(settings: Settings) -> int:
    orchestrator = Orchestrator(settings)
    try:
        await orchestrator.start()
    except WikiError as e:
        logger.error(
            f"Wiki failed to start: {e.message}",
            exc_info=e.__cause__ is not None,
            extra={"error_code": e.code},
        )
        await orchestrator.shutdown()
        return 1
    try:
        await orchestrator.serve()
    finally:
        await orchestrator.shutdown()
    return 0


@cli.command()
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
    default=None, help="Write JSON here instead of stdout.",
)
@click.option("--database-url", default=None, help="Store connection string.")
def export(output, database_url):
    """Export every page (id, name, content) as JSON, ordered by id."""
    settings = _load_settings(database_url=database_url)
    try:
        pages = asyncio.run(_export(settings))
    except WikiError as e:
        logger.error(f"Export failed: {e.message}", extra={"error_code": e.code})
        raise click.ClickException(e.message)

    text = json.dumps(
        [p.model_dump() for p in pages], indent=2, ensure_ascii=False,
    )
    if output:
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"Exported {len(pages)} pages to {output}", err=True)
    else:
        click.echo(text)


async def _export(settings: Settings) -> list[PageData]:
    db = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    try:
        store = PageStore(db)
        await store.initialize()
        service = LocalPageService(store, settings.service_timeout_seconds)
        return await service.fetch_all_pages_data()
    finally:
        await db.dispose()


if __name__ == "__main__":
    cli()
