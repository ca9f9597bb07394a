"""Error Hierarchy — typed, categorized exceptions for all wiki failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Every error surfaces to HTTP clients as a bare 500 (http_status), details stay in logs
    - to_payload() / error_from_payload() round-trip the error type across the bus by code
    - DuplicateNameError keeps its own type and code even though it renders as 500

Design Decisions:
    - Single hierarchy with WikiError base: one FastAPI handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"
    RENDER = "render"
    STARTUP = "startup"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    page_name: str | None = None
    page_id: int | None = None
    action: str | None = None
    debug_info: dict[str, Any] | None = None


class WikiError(Exception):
    """Base exception for all wiki errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_payload(self) -> dict:
        """Serializable form used in bus replies."""
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "page_name": self.context.page_name,
            "page_id": self.context.page_id,
            "action": self.context.action,
        }


# ─── Domain Errors ──────────────────────────────────────────────

class DuplicateNameError(WikiError):
    """A page with this name already exists."""
    def __init__(self, name: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.page_name = name
        super().__init__(
            f"Page '{name}' already exists",
            "DUPLICATE_NAME", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx,
        )
        self.name = name


class NotFoundError(WikiError):
    """No page has the requested id."""
    def __init__(self, page_id: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.page_id = page_id
        super().__init__(
            f"Page {page_id} not found",
            "PAGE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, ctx,
        )
        self.page_id = page_id


class InvalidRequestError(WikiError):
    """Form field or service payload missing or malformed."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_REQUEST", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context,
        )
        self.field = field


class RenderError(WikiError):
    """Template or markdown rendering failed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Rendering failed: {message}",
            "RENDER_FAILED", ErrorCategory.RENDER,
            ErrorSeverity.ERROR, context,
        )


# ─── Infrastructure Errors ──────────────────────────────────────

class StorageInitError(WikiError):
    """Backing store unreachable or schema bootstrap failed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage initialization failed: {message}",
            "STORAGE_INIT_FAILED", ErrorCategory.STARTUP,
            ErrorSeverity.CRITICAL, context,
        )


class ServiceUnavailable(WikiError):
    """Page service did not answer (timeout, no consumer, not ready)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Page service unavailable: {message}",
            "SERVICE_UNAVAILABLE", ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context,
        )


class DatabaseError(WikiError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context,
        )
        self.operation = operation


class ListenerBindError(WikiError):
    """HTTP listener could not be bound."""
    def __init__(self, host: str, port: int, context: ErrorContext | None = None):
        super().__init__(
            f"Could not bind HTTP listener on {host}:{port}",
            "LISTENER_BIND_FAILED", ErrorCategory.STARTUP,
            ErrorSeverity.CRITICAL, context,
        )
        self.host = host
        self.port = port


class IllegalTransitionError(WikiError):
    """Orchestrator asked to move between states the lifecycle does not connect."""
    def __init__(self, current: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Illegal startup transition {current} -> {target}",
            "ILLEGAL_TRANSITION", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context,
        )
        self.current = current
        self.target = target


# ─── Wire mapping ───────────────────────────────────────────────

_MESSAGE_ERRORS: dict[str, type[WikiError]] = {
    "RENDER_FAILED": RenderError,
    "STORAGE_INIT_FAILED": StorageInitError,
    "SERVICE_UNAVAILABLE": ServiceUnavailable,
}


def error_from_payload(payload: dict) -> WikiError:
    """Rebuild a typed error from a bus reply payload.

    Codes without a dedicated class come back as a plain WikiError with the
    original code, category and severity preserved.
    """
    code = payload.get("code", "INTERNAL_ERROR")
    message = payload.get("message", "")
    ctx = ErrorContext(
        page_name=payload.get("page_name"),
        page_id=payload.get("page_id"),
        action=payload.get("action"),
    )
    if code == "DUPLICATE_NAME":
        return DuplicateNameError(ctx.page_name or "", ctx)
    if code == "PAGE_NOT_FOUND":
        return NotFoundError(ctx.page_id if ctx.page_id is not None else -1, ctx)
    if code == "INVALID_REQUEST":
        return InvalidRequestError(message, "payload", ctx)
    if code in _MESSAGE_ERRORS or code == "DATABASE_ERROR":
        if code == "DATABASE_ERROR":
            error = DatabaseError("", "remote", ctx)
        else:
            error = _MESSAGE_ERRORS[code]("", ctx)
        error.message = message
        error.args = (message,)
        return error
    try:
        category = ErrorCategory(payload.get("category", "internal"))
    except ValueError:
        category = ErrorCategory.INTERNAL
    try:
        severity = ErrorSeverity(payload.get("severity", "error"))
    except ValueError:
        severity = ErrorSeverity.ERROR
    return WikiError(message, code, category, severity, ctx)
