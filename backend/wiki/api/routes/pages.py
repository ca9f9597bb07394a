"""Page Routes — the wiki's five HTTP endpoints, one page-service call each.

Invariants:
    - Each handler issues at most one PageService call, then renders or redirects
    - Routes depend on the PageService contract only (app.state.page_service)
    - Every mutating POST answers 303 See Other; GET success is 200 text/html
    - Markdown is rendered here, at view time; the store only ever sees raw markdown
    - Errors are not caught here — the global handlers turn them into a bare 500

Design Decisions:
    - Form fields accept the editor's names (title/markdown) and the short
      aliases (name/content) so hand-written forms work too
    - /wiki/{page:path}: servers decode %2F before routing, so names containing
      "/" must match across segments
"""

import logging
from datetime import datetime, timezone
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from wiki.core.domain_types import EMPTY_PAGE_MARKDOWN, PageId
from wiki.core.errors import ErrorContext, InvalidRequestError
from wiki.core.render_markdown import render_markdown
from wiki.core.service_protocols import PageService
from wiki.infrastructure.templates import TemplateRenderer

logger = logging.getLogger(__name__)
router = APIRouter(tags=["pages"])

INDEX_TITLE = "Wiki home"


def get_page_service(request: Request) -> PageService:
    return request.app.state.page_service


def get_renderer(request: Request) -> TemplateRenderer:
    return request.app.state.renderer


def _see_other(location: str) -> RedirectResponse:
    return RedirectResponse(location, status_code=303)


def _page_location(name: str) -> str:
    return "/wiki/" + quote(name, safe="")


def _parse_page_id(raw: str | None) -> PageId:
    try:
        return PageId(int(raw))
    except (TypeError, ValueError):
        raise InvalidRequestError(
            f"Invalid page id: {raw!r}", "id",
            ErrorContext(debug_info={"id": raw}),
        )


@router.get("/", response_class=HTMLResponse)
async def index(
    service: PageService = Depends(get_page_service),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    """List all pages by name."""
    pages = await service.list_pages()
    html = await renderer.render(
        "index.html", {"title": INDEX_TITLE, "pages": pages},
    )
    return HTMLResponse(html)


@router.get("/wiki/{page:path}", response_class=HTMLResponse)
async def view_page(
    page: str,
    service: PageService = Depends(get_page_service),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    """Render a page; unknown names render an editable blank page."""
    lookup = await service.fetch_page(page)
    raw_content = lookup.raw_content if lookup.found else EMPTY_PAGE_MARKDOWN
    html = await renderer.render("page.html", {
        "title": page,
        "id": lookup.id,
        "newPage": "no" if lookup.found else "yes",
        "rawContent": raw_content,
        "content": render_markdown(raw_content),
        "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
    })
    return HTMLResponse(html)


@router.post("/create")
async def create_page(name: str | None = Form(None)):
    """Redirect to the (possibly new) page. No service call."""
    if not name or not name.strip():
        return _see_other("/")
    return _see_other(_page_location(name))


@router.post("/save")
async def save_page(
    title: str | None = Form(None),
    name: str | None = Form(None),
    markdown: str | None = Form(None),
    content: str | None = Form(None),
    id: str | None = Form(None),
    newPage: str | None = Form(None),
    service: PageService = Depends(get_page_service),
):
    """Create or update a page depending on newPage, then redirect to it."""
    page_name = title if title is not None else name
    if not page_name:
        raise InvalidRequestError("Missing page title", "title")
    body = markdown if markdown is not None else content

    if newPage == "yes":
        await service.create_page(page_name, body)
    else:
        if body is None:
            raise InvalidRequestError(
                "Missing markdown", "markdown", ErrorContext(page_name=page_name),
            )
        await service.save_page(_parse_page_id(id), body)
    return _see_other(_page_location(page_name))


@router.post("/delete")
async def delete_page(
    id: str | None = Form(None),
    service: PageService = Depends(get_page_service),
):
    """Delete by id (idempotent) and return to the index."""
    await service.delete_page(_parse_page_id(id))
    return _see_other("/")
