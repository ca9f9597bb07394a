"""Orchestrator — sequences store bring-up before the HTTP listener is bound.

Invariants:
    - start() is one linear sequence of fallible steps; the first failure ends it
    - The listener is bound only after PageStore.initialize() has succeeded, so no
      request can ever reach an uninitialized schema
    - Store failure → FAILED with StorageInitError; the listener is never created
    - Bind failure → FAILED with ListenerBindError; the store stays up but the
      process is considered failed to start
    - Every state change goes through core/startup_state.advance()

Design Decisions:
    - One listening socket, bound once by the orchestrator: a bind failure is
      detected here, before any uvicorn server exists
    - Front instances are separate FastAPI apps + uvicorn servers sharing dup()s of
      that socket in one event loop; each holds its own PageService client pointed
      at the same bus address
    - Page service consumers are registered on the bus only once the store is ready
"""

import asyncio
import logging
import socket

import uvicorn
from fastapi import FastAPI

from wiki.config import Settings
from wiki.core.domain_types import ServiceTransport, StartupState
from wiki.core.errors import (
    ErrorContext, IllegalTransitionError, ListenerBindError, StorageInitError,
    WikiError,
)
from wiki.core.service_protocols import PageService
from wiki.core.startup_state import advance, can_transition
from wiki.infrastructure.database import DatabaseSessionManager
from wiki.infrastructure.event_bus import EventBus, Registration
from wiki.infrastructure.templates import TemplateRenderer
from wiki.main import create_app
from wiki.services.page_service import (
    LocalPageService, PageServiceConsumer, PageServiceProxy,
)
from wiki.services.page_store import PageStore

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 2048


class Orchestrator:
    """Drives IDLE → STORE_STARTING → STORE_READY → FRONT_STARTING → RUNNING."""

    def __init__(self, settings: Settings, bus: EventBus | None = None):
        self.settings = settings
        self.bus = bus or EventBus()
        self.db: DatabaseSessionManager | None = None
        self.store: PageStore | None = None
        self.listener: socket.socket | None = None
        self.apps: list[FastAPI] = []
        self._state = StartupState.IDLE
        self._registrations: list[Registration] = []
        self._servers: list[uvicorn.Server] = []

    @property
    def state(self) -> StartupState:
        return self._state

    def _transition(self, target: StartupState) -> None:
        self._state = advance(self._state, target)
        logger.info(
            f"Startup state -> {target.value}", extra={"state": target.value},
        )

    async def start(self) -> None:
        """Bring up store then front. Raises the first failure's WikiError."""
        try:
            self._transition(StartupState.STORE_STARTING)
            await self._start_store()
            self._transition(StartupState.STORE_READY)

            self._transition(StartupState.FRONT_STARTING)
            self._start_front()
            self._transition(StartupState.RUNNING)
        except WikiError as e:
            if can_transition(self._state, StartupState.FAILED):
                self._transition(StartupState.FAILED)
            logger.critical(
                f"Startup failed: {e.message}",
                extra={"error_code": e.code, "state": self._state.value},
            )
            raise

    # ─── Store stage ───────────────────────────────────────────

    async def _start_store(self) -> None:
        try:
            self.db = DatabaseSessionManager(
                self.settings.database_url,
                pool_size=self.settings.database_pool_size,
                max_overflow=self.settings.database_max_overflow,
            )
        except Exception as e:
            raise StorageInitError(
                f"invalid store configuration: {e}",
                ErrorContext(debug_info={"stage": "engine"}),
            ) from e
        self.store = PageStore(self.db)
        await self.store.initialize()

        if self._transport is ServiceTransport.BUS:
            consumer = PageServiceConsumer(self.store)
            for _ in range(self.settings.service_consumers):
                self._registrations.append(
                    consumer.register(self.bus, self.settings.db_queue_address),
                )

    @property
    def _transport(self) -> ServiceTransport:
        return ServiceTransport(self.settings.service_transport)

    def page_service_client(self) -> PageService:
        """A fresh PageService client for one front instance."""
        timeout = self.settings.service_timeout_seconds
        if self._transport is ServiceTransport.LOCAL:
            return LocalPageService(self.store, timeout)
        return PageServiceProxy(
            self.bus, self.settings.db_queue_address, timeout,
        )

    # ─── Front stage ───────────────────────────────────────────

    def _start_front(self) -> None:
        self.listener = self._bind_listener()
        self.apps = [
            create_app(self.page_service_client(), TemplateRenderer(), instance=i)
            for i in range(self.settings.front_instances)
        ]
        host, port = self.listener.getsockname()[:2]
        logger.info(
            f"HTTP listener bound on {host}:{port} "
            f"({len(self.apps)} front instances)",
        )

    def _bind_listener(self) -> socket.socket:
        host, port = self.settings.http_host, self.settings.http_port
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
            sock.listen(LISTEN_BACKLOG)
        except OSError as e:
            sock.close()
            logger.error(f"Could not bind {host}:{port}: {e}")
            raise ListenerBindError(host, port) from e
        sock.set_inheritable(True)
        return sock

    # ─── Running ───────────────────────────────────────────────

    async def serve(self) -> None:
        """Serve every front instance until shutdown is requested."""
        if self._state is not StartupState.RUNNING:
            raise IllegalTransitionError(self._state.value, "serve")
        self._servers = [
            uvicorn.Server(uvicorn.Config(
                app,
                lifespan="off",
                log_config=None,
                log_level=self.settings.log_level.lower(),
            ))
            for app in self.apps
        ]
        await asyncio.gather(*(
            server.serve(sockets=[self.listener.dup()])
            for server in self._servers
        ))

    async def shutdown(self) -> None:
        for server in self._servers:
            server.should_exit = True
        if self.listener is not None:
            self.listener.close()
            self.listener = None
        for registration in self._registrations:
            await registration.unregister()
        self._registrations.clear()
        await self.bus.close()
        if self.db is not None:
            await self.db.dispose()
        logger.info("Orchestrator shut down")
