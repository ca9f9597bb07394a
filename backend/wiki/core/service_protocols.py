"""Boundary Protocols — the page-service contract between HTTP front and store.

Invariants:
    - HTTP front depends ONLY on PageService, never on a concrete implementation
    - Every PageService implementation raises the same error taxonomy (core/errors.py)
    - fetch_page never raises for an unknown name — it returns PageLookup(found=False)
    - delete_page never raises for an unknown id

Design Decisions:
    - Protocol over ABC: structural subtyping, LocalPageService and PageServiceProxy
      share no base class
    - Async in Protocol: implementations do IO (DB directly, or a bus round-trip)
"""

from typing import Protocol

from wiki.core.domain_types import PageId
from wiki.schemas.page import PageData, PageLookup


class PageService(Protocol):
    """Contract for page operations — implemented in-process or over the bus."""
    async def list_pages(self) -> list[str]: ...
    async def fetch_page(self, name: str) -> PageLookup: ...
    async def create_page(self, name: str, content: str | None = None) -> PageId: ...
    async def save_page(self, page_id: PageId, content: str) -> None: ...
    async def delete_page(self, page_id: PageId) -> None: ...
    async def fetch_all_pages_data(self) -> list[PageData]: ...


class PageStoreLike(PageService, Protocol):
    """Store contract — the page operations plus schema bootstrap."""
    async def initialize(self) -> None: ...
