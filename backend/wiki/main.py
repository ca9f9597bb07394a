"""Wiki HTTP Front — FastAPI application factory.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map every failure to a bare HTML 500
    - The app holds no page state: app.state carries only the PageService and renderer
    - One app per front instance; the orchestrator builds them after the store is ready

Design Decisions:
    - Factory over module-level app: each front instance gets its own PageService
      client, and nothing can serve requests before the orchestrator says so
    - No lifespan hook: store bring-up is sequenced by the orchestrator, not by uvicorn
    - No OpenAPI/docs routes: the HTTP surface is exactly the five page routes
"""

from fastapi import FastAPI

from wiki.api.error_handlers import register_error_handlers
from wiki.api.routes import pages
from wiki.core.service_protocols import PageService
from wiki.infrastructure.templates import TemplateRenderer


def create_app(
    page_service: PageService,
    renderer: TemplateRenderer | None = None,
    instance: int = 0,
) -> FastAPI:
    """Build one HTTP front instance bound to a PageService."""
    app = FastAPI(
        title="Wiki",
        version="1.0.0",
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )
    app.state.page_service = page_service
    app.state.renderer = renderer or TemplateRenderer()
    app.state.instance = instance

    app.include_router(pages.router)
    register_error_handlers(app)
    return app
