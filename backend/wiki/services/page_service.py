"""Page Service — in-process and message-passing implementations of the PageService contract.

Invariants:
    - Every call is bounded by a timeout; no answer in time is ServiceUnavailable
    - Store errors reach the caller with their original type and code, on both paths
    - PageServiceConsumer never raises to the bus: every outcome becomes a ServiceReply
    - Action -> handler mapping is an explicit dict (unknown actions get UNKNOWN_ACTION)
    - A timed-out call keeps running to completion in the store; its result is dropped

Design Decisions:
    - LocalPageService for single-process deployments and tests: direct awaits, same
      timeout and error semantics as the bus path
    - PageServiceProxy/PageServiceConsumer talk JSON text over EventBus so the front
      and the store could live in different processes behind the same address
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import ValidationError

from wiki.core.domain_types import PageAction, PageId
from wiki.core.errors import (
    ErrorCategory, ErrorContext, ErrorSeverity, InvalidRequestError,
    ServiceUnavailable, WikiError, error_from_payload,
)
from wiki.core.service_protocols import PageStoreLike
from wiki.infrastructure.event_bus import EventBus, Registration
from wiki.schemas.messages import (
    CreatePagePayload, DeletePagePayload, FetchPagePayload, SavePagePayload,
    ServiceReply, ServiceRequest,
)
from wiki.schemas.page import PageData, PageLookup

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ─── In-process ─────────────────────────────────────────────────

class LocalPageService:
    """Direct-call PageService over a store living in the same process."""

    def __init__(self, store: PageStoreLike, timeout_seconds: float = 5.0):
        self._store = store
        self._timeout = timeout_seconds
        self._late: set[asyncio.Task] = set()

    async def _call(self, action: PageAction, op: Awaitable[T]) -> T:
        # shield: a caller timing out must not cancel the store statement
        task = asyncio.ensure_future(op)
        try:
            return await asyncio.wait_for(asyncio.shield(task), self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Page service call {action.value} timed out",
                extra={"action": action.value},
            )
            self._late.add(task)
            task.add_done_callback(
                lambda t: self._drop_late_outcome(action, t),
            )
            raise ServiceUnavailable(
                f"{action.value} did not complete within {self._timeout}s",
                ErrorContext(action=action.value),
            )

    def _drop_late_outcome(self, action: PageAction, task: asyncio.Task) -> None:
        """Collect a timed-out call's result so its failure is never left unretrieved."""
        self._late.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(
                f"Dropping late failure of {action.value}: {error!r}",
                extra={"action": action.value},
            )
        else:
            logger.debug(
                f"Dropping late result of {action.value}",
                extra={"action": action.value},
            )

    async def list_pages(self) -> list[str]:
        return await self._call(PageAction.LIST_PAGES, self._store.list_pages())

    async def fetch_page(self, name: str) -> PageLookup:
        return await self._call(
            PageAction.FETCH_PAGE, self._store.fetch_page(name),
        )

    async def create_page(self, name: str, content: str | None = None) -> PageId:
        return await self._call(
            PageAction.CREATE_PAGE, self._store.create_page(name, content),
        )

    async def save_page(self, page_id: PageId, content: str) -> None:
        await self._call(
            PageAction.SAVE_PAGE, self._store.save_page(page_id, content),
        )

    async def delete_page(self, page_id: PageId) -> None:
        await self._call(PageAction.DELETE_PAGE, self._store.delete_page(page_id))

    async def fetch_all_pages_data(self) -> list[PageData]:
        return await self._call(
            PageAction.FETCH_ALL_PAGES_DATA, self._store.fetch_all_pages_data(),
        )


# ─── Bus consumer (store side) ──────────────────────────────────

class PageServiceConsumer:
    """Decodes bus requests, calls the store, encodes replies."""

    def __init__(self, store: PageStoreLike):
        self._store = store

        # every mapping explicit: adding an operation requires editing this dict
        self._handlers: dict[str, Callable[[dict], Awaitable[Any]]] = {
            PageAction.LIST_PAGES.value: self._list_pages,
            PageAction.FETCH_PAGE.value: self._fetch_page,
            PageAction.CREATE_PAGE.value: self._create_page,
            PageAction.SAVE_PAGE.value: self._save_page,
            PageAction.DELETE_PAGE.value: self._delete_page,
            PageAction.FETCH_ALL_PAGES_DATA.value: self._fetch_all_pages_data,
        }

    def register(self, bus: EventBus, address: str) -> Registration:
        return bus.consumer(address, self.handle)

    async def handle(self, body: str) -> str:
        """Bus entry point: JSON request text in, JSON reply text out."""
        return (await self._dispatch(body)).model_dump_json()

    async def _dispatch(self, body: str) -> ServiceReply:
        try:
            request = ServiceRequest.model_validate_json(body)
        except ValidationError as e:
            logger.warning(f"Malformed page service request: {e}")
            return ServiceReply.failure(
                InvalidRequestError("Malformed request envelope", "body").to_payload(),
            )

        handler = self._handlers.get(request.action)
        if not handler:
            return _failure(
                "UNKNOWN_ACTION", f"Action '{request.action}' does not exist.",
                action=request.action,
            )
        try:
            result = await handler(request.payload)
        except ValidationError as e:
            logger.warning(
                f"Invalid payload for {request.action}: {e}",
                extra={"action": request.action},
            )
            return ServiceReply.failure(InvalidRequestError(
                f"Invalid payload for {request.action}", "payload",
                ErrorContext(action=request.action),
            ).to_payload())
        except WikiError as e:
            return ServiceReply.failure(e.to_payload())
        except Exception as e:
            logger.error(
                f"Unhandled error in {request.action}: {e}",
                exc_info=True, extra={"action": request.action},
            )
            return _failure(
                "INTERNAL_ERROR", "An unexpected error occurred",
                action=request.action, severity=ErrorSeverity.CRITICAL,
            )
        return ServiceReply.success(result)

    async def _list_pages(self, payload: dict) -> list[str]:
        return await self._store.list_pages()

    async def _fetch_page(self, payload: dict) -> dict:
        body = FetchPagePayload.model_validate(payload)
        lookup = await self._store.fetch_page(body.name)
        return lookup.model_dump(mode="json")

    async def _create_page(self, payload: dict) -> int:
        body = CreatePagePayload.model_validate(payload)
        return await self._store.create_page(body.name, body.content)

    async def _save_page(self, payload: dict) -> None:
        body = SavePagePayload.model_validate(payload)
        await self._store.save_page(PageId(body.id), body.content)

    async def _delete_page(self, payload: dict) -> None:
        body = DeletePagePayload.model_validate(payload)
        await self._store.delete_page(PageId(body.id))

    async def _fetch_all_pages_data(self, payload: dict) -> list[dict]:
        pages = await self._store.fetch_all_pages_data()
        return [p.model_dump(mode="json") for p in pages]


def _failure(
    code: str, message: str, action: str | None = None,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
) -> ServiceReply:
    return ServiceReply.failure({
        "code": code,
        "message": message,
        "category": ErrorCategory.INTERNAL.value,
        "severity": severity.value,
        "action": action,
    })


# ─── Bus proxy (front side) ─────────────────────────────────────

class PageServiceProxy:
    """PageService that reaches the store through a bus address."""

    def __init__(self, bus: EventBus, address: str, timeout_seconds: float = 5.0):
        self._bus = bus
        self._address = address
        self._timeout = timeout_seconds

    @property
    def address(self) -> str:
        return self._address

    async def _send(self, action: PageAction, payload: dict | None = None) -> Any:
        request = ServiceRequest(action=action.value, payload=payload or {})
        body = await self._bus.request(
            self._address, request.model_dump_json(), self._timeout,
        )
        reply = ServiceReply.model_validate_json(body)
        if not reply.ok:
            raise error_from_payload(reply.error)
        return reply.result

    async def list_pages(self) -> list[str]:
        return list(await self._send(PageAction.LIST_PAGES))

    async def fetch_page(self, name: str) -> PageLookup:
        result = await self._send(PageAction.FETCH_PAGE, {"name": name})
        return PageLookup.model_validate(result)

    async def create_page(self, name: str, content: str | None = None) -> PageId:
        result = await self._send(
            PageAction.CREATE_PAGE, {"name": name, "content": content},
        )
        return PageId(int(result))

    async def save_page(self, page_id: PageId, content: str) -> None:
        await self._send(
            PageAction.SAVE_PAGE, {"id": page_id, "content": content},
        )

    async def delete_page(self, page_id: PageId) -> None:
        await self._send(PageAction.DELETE_PAGE, {"id": page_id})

    async def fetch_all_pages_data(self) -> list[PageData]:
        result = await self._send(PageAction.FETCH_ALL_PAGES_DATA)
        return [PageData.model_validate(p) for p in result]
