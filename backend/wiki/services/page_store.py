"""Page Store — durable CRUD over the pages table through an async session manager.

Invariants:
    - initialize() must succeed before any other operation (ServiceUnavailable otherwise)
    - Each operation is exactly one statement on its own session, committed on its own
    - Duplicate names are rejected by the unique constraint, never by a prior lookup
    - save_page on a missing id raises NotFoundError; delete_page on a missing id is a no-op
    - create_page with content=None stores EMPTY_PAGE_MARKDOWN

Design Decisions:
    - No locking here: concurrent creates race at the database's unique index and
      exactly one wins
    - IntegrityError caught inside the session block so it becomes DuplicateNameError
      before the session manager's generic mapping sees it
"""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from wiki.core.domain_types import EMPTY_PAGE_MARKDOWN, PageId
from wiki.core.errors import (
    DuplicateNameError, ErrorContext, NotFoundError, ServiceUnavailable,
)
from wiki.infrastructure.database import DatabaseSessionManager
from wiki.models.page import Page
from wiki.schemas.page import PageData, PageLookup

logger = logging.getLogger(__name__)


class PageStore:
    """Owns the pages schema and every statement issued against it."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        """Bootstrap the schema. Raises StorageInitError."""
        await self._db.create_schema()
        self._ready = True
        logger.info("Page store initialized")

    def _require_ready(self, action: str) -> None:
        if not self._ready:
            raise ServiceUnavailable(
                "page store is not initialized",
                ErrorContext(action=action),
            )

    async def list_pages(self) -> list[str]:
        self._require_ready("list_pages")
        async with self._db.session() as db:
            result = await db.execute(select(Page.name).order_by(Page.name))
            return list(result.scalars().all())

    async def fetch_page(self, name: str) -> PageLookup:
        """Look a page up by name. Unknown names are a found=False result."""
        self._require_ready("fetch_page")
        async with self._db.session() as db:
            result = await db.execute(
                select(Page.id, Page.content).where(Page.name == name),
            )
            row = result.one_or_none()
        if row is None:
            return PageLookup.missing(name)
        return PageLookup(
            found=True, name=name, id=row.id, raw_content=row.content,
        )

    async def create_page(
        self, name: str, content: str | None = None,
    ) -> PageId:
        self._require_ready("create_page")
        body = EMPTY_PAGE_MARKDOWN if content is None else content
        page = Page(name=name, content=body)
        async with self._db.session() as db:
            try:
                db.add(page)
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                logger.warning(
                    f"Duplicate page name rejected: {name}",
                    extra={"page": name, "error_code": "DUPLICATE_NAME"},
                )
                raise DuplicateNameError(
                    name, ErrorContext(action="create_page"),
                ) from e
        page_id = PageId(page.id)
        logger.info(f"Page created: {name} ({page_id})", extra={"page": name})
        return page_id

    async def save_page(self, page_id: PageId, content: str) -> None:
        self._require_ready("save_page")
        async with self._db.session() as db:
            result = await db.execute(
                update(Page).where(Page.id == page_id).values(content=content),
            )
            await db.commit()
        if result.rowcount == 0:
            raise NotFoundError(page_id, ErrorContext(action="save_page"))

    async def delete_page(self, page_id: PageId) -> None:
        """Delete by id. Missing ids are silently accepted."""
        self._require_ready("delete_page")
        async with self._db.session() as db:
            result = await db.execute(delete(Page).where(Page.id == page_id))
            await db.commit()
        if result.rowcount == 0:
            logger.debug(f"Delete of absent page {page_id} ignored")

    async def fetch_all_pages_data(self) -> list[PageData]:
        self._require_ready("fetch_all_pages_data")
        async with self._db.session() as db:
            result = await db.execute(select(Page).order_by(Page.id))
            return [PageData.model_validate(p) for p in result.scalars().all()]
