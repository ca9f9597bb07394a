"""Event Bus — in-process message passing with named addresses and request/reply.

Invariants:
    - Message bodies are str (JSON text): sender and consumer never share objects
    - Several consumers may register on one address; requests rotate round-robin
    - request() always resolves within its timeout — ServiceUnavailable otherwise
    - A request to an address with no consumer fails immediately with ServiceUnavailable
    - A caller giving up (timeout, disconnect) never cancels the consumer's work;
      the late reply is dropped

Design Decisions:
    - One asyncio.Queue + worker task per consumer: senders enqueue and await a
      future, the worker spawns one task per message so slow requests do not
      block the consumer's queue
    - Transport kept behind a small request()/consumer() surface so a networked
      queue can replace it without touching PageServiceProxy/PageServiceConsumer
"""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable

from wiki.core.errors import ErrorContext, ServiceUnavailable

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str], Awaitable[str]]

_consumer_ids = itertools.count(1)


class Registration:
    """A consumer bound to an address. unregister() stops it."""

    def __init__(self, bus: "EventBus", address: str, handler: MessageHandler):
        self.id = next(_consumer_ids)
        self.address = address
        self._bus = bus
        self._handler = handler
        self._queue: asyncio.Queue[tuple[str, asyncio.Future]] = asyncio.Queue()
        self._inflight: set[asyncio.Task] = set()
        self._worker = asyncio.create_task(
            self._run(), name=f"bus-consumer-{address}-{self.id}",
        )

    def deliver(self, body: str, reply: asyncio.Future) -> None:
        self._queue.put_nowait((body, reply))

    async def _run(self) -> None:
        while True:
            body, reply = await self._queue.get()
            task = asyncio.create_task(self._handle(body, reply))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _handle(self, body: str, reply: asyncio.Future) -> None:
        try:
            result = await self._handler(body)
        except Exception as e:
            logger.error(
                f"Consumer on {self.address} failed: {e}",
                exc_info=True, extra={"address": self.address},
            )
            if not reply.done():
                reply.set_exception(e)
            return
        if reply.done():
            logger.debug(
                f"Dropping late reply on {self.address}",
                extra={"address": self.address},
            )
            return
        reply.set_result(result)

    async def unregister(self) -> None:
        self._bus._remove(self)
        self._worker.cancel()
        for task in list(self._inflight):
            task.cancel()
        await asyncio.gather(self._worker, *self._inflight, return_exceptions=True)


class EventBus:
    """Address-based request/reply bus."""

    def __init__(self):
        self._consumers: dict[str, list[Registration]] = {}
        self._rotation: dict[str, int] = {}

    def consumer(self, address: str, handler: MessageHandler) -> Registration:
        """Register handler on address. Must be called with a running loop."""
        registration = Registration(self, address, handler)
        self._consumers.setdefault(address, []).append(registration)
        logger.info(
            f"Consumer {registration.id} registered on {address}",
            extra={"address": address},
        )
        return registration

    def consumer_count(self, address: str) -> int:
        return len(self._consumers.get(address, []))

    def _remove(self, registration: Registration) -> None:
        consumers = self._consumers.get(registration.address, [])
        if registration in consumers:
            consumers.remove(registration)
        if not consumers:
            self._consumers.pop(registration.address, None)
            self._rotation.pop(registration.address, None)

    def _next_consumer(self, address: str) -> Registration | None:
        consumers = self._consumers.get(address)
        if not consumers:
            return None
        index = self._rotation.get(address, 0) % len(consumers)
        self._rotation[address] = index + 1
        return consumers[index]

    async def request(self, address: str, body: str, timeout: float) -> str:
        """Send body to one consumer on address and await its reply."""
        target = self._next_consumer(address)
        if target is None:
            raise ServiceUnavailable(
                f"no consumer registered on {address}",
                ErrorContext(debug_info={"address": address}),
            )
        reply: asyncio.Future = asyncio.get_running_loop().create_future()
        target.deliver(body, reply)
        try:
            return await asyncio.wait_for(reply, timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Request to {address} timed out after {timeout}s",
                extra={"address": address},
            )
            raise ServiceUnavailable(
                f"no reply from {address} within {timeout}s",
                ErrorContext(debug_info={"address": address}),
            )

    async def close(self) -> None:
        registrations = [r for rs in self._consumers.values() for r in rs]
        for registration in registrations:
            await registration.unregister()
