"""Error Handlers — global exception handlers for the wiki front end.

Invariants:
    - WikiError → bare HTML 500, error code logged server-side
    - RequestValidationError (malformed form) → bare HTML 500, details logged
    - Exception (catch-all) → bare HTML 500 with traceback logged
    - Response bodies never carry messages, codes, or stack traces

Design Decisions:
    - Three-layer handler: domain (WikiError), validation (FastAPI), catch-all (Exception)
    - Routes never catch errors themselves; the single failure shape lives here
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse

from wiki.core.errors import WikiError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_HTML = (
    "<!DOCTYPE html><html><head><title>Internal Server Error</title></head>"
    "<body><h1>Internal Server Error</h1></body></html>"
)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_wiki_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _internal_error() -> HTMLResponse:
    return HTMLResponse(
        INTERNAL_ERROR_HTML,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _register_wiki_error_handler(app: FastAPI) -> None:

    @app.exception_handler(WikiError)
    async def wiki_error_handler(request: Request, exc: WikiError):
        """Handle all wiki domain/infrastructure errors."""
        logger.error(
            f"WikiError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return _internal_error()


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"error_code": "INVALID_REQUEST", "path": request.url.path},
        )
        return _internal_error()


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True, extra={"path": request.url.path},
        )
        return _internal_error()
