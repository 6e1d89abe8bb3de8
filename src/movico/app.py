"""Movico application class.

Mutable during setup (controllers, views, middleware, error handlers).
Prepared once, before the first request: the request router registers
every route, and the route table is compiled read-only.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from collections.abc import Callable, Iterable
from typing import Any

from movico._internal.asgi import Receive, Scope, Send
from movico._internal.types import ErrorHandler
from movico.config import AppConfig
from movico.middleware.protocol import Middleware
from movico.routing.app_router import RequestRouter
from movico.routing.controller import Controller
from movico.routing.router import Router
from movico.server.handler import handle_request
from movico.serving.engine import EngineFactory
from movico.templating.views import View, ViewMap

logger = logging.getLogger("movico.server")


class _ClosedListener:
    """Listener handed to the shutdown handler under ASGI lifespan.

    The server has already stopped accepting connections by the time
    lifespan shutdown runs.
    """

    __slots__ = ()

    def close(self) -> None:
        pass


class App:
    """The movico application.

    Usage::

        app = App(
            AppConfig.from_env(),
            controllers=[UserController(service=users)],
            views={"/about": "about.html"},
        )
        app.run()

    Preparation happens in ASGI lifespan startup, or on the first request
    when the server does not speak lifespan. A lock plus a double-check
    makes sure only one of them runs it.
    """

    __slots__ = (
        "_controllers",
        "_engine_factory",
        "_error_handlers",
        "_middleware",
        "_middleware_list",
        "_prepare_lock",
        "_preparing",
        "_ready",
        "_request_router",
        "_views",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        controllers: Iterable[Controller[Any]] = (),
        views: ViewMap | None = None,
        middleware: Iterable[Middleware] = (),
        engine_factory: EngineFactory | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig.from_env()
        self._controllers: list[Controller[Any]] = list(controllers)
        self._views: dict[str, View] = dict(views or {})
        self._middleware_list: list[Middleware] = list(middleware)
        self._engine_factory = engine_factory
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._prepare_lock = threading.Lock()
        self._preparing: Future[None] | None = None
        self._ready = False

        # Compiled state, set during prepare()
        self._request_router: RequestRouter | None = None
        self._middleware: tuple[Middleware, ...] = ()

    # -- Setup --

    def add_controller(self, controller: Controller[Any]) -> None:
        """Append a controller; controllers register in the order added."""
        self._check_not_ready()
        self._controllers.append(controller)

    def add_view(self, path: str, view: View) -> None:
        """Serve *view* at *path* (outside development)."""
        self._check_not_ready()
        self._views[path] = view

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware run around every request."""
        self._check_not_ready()
        self._middleware_list.append(middleware)

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_ready()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Compiled state --

    @property
    def request_router(self) -> RequestRouter:
        """The request router. Raises ``RuntimeError`` before preparation."""
        if self._request_router is None:
            msg = "The app has not been prepared yet"
            raise RuntimeError(msg)
        return self._request_router

    @property
    def router(self) -> Router:
        return self.request_router.router

    @property
    def ready(self) -> bool:
        return self._ready

    async def prepare(self) -> None:
        """Register every route and compile the route table. Runs once.

        Pounce workers are threads, each with its own event loop, sharing
        one app. The lock only guards which caller owns preparation; the
        others await the owner's future from their own loop.
        """
        if self._ready:
            return
        with self._prepare_lock:
            if self._ready:
                return
            pending = self._preparing
            if pending is None:
                owned = self._preparing = Future()
        if pending is not None:
            await asyncio.wrap_future(pending)
            return

        try:
            request_router = RequestRouter(
                self.config,
                controllers=self._controllers,
                views=self._views,
                engine_factory=self._engine_factory,
            )
            await request_router.initialize()
            request_router.router.compile()
        except BaseException as exc:
            with self._prepare_lock:
                self._preparing = None
            owned.set_exception(exc)
            raise

        self._request_router = request_router
        self._middleware = tuple(self._middleware_list)
        self._ready = True
        owned.set_result(None)
        logger.info(
            "App ready (%s, %d routes)",
            self.config.environment,
            len(request_router.router.routes),
        )

    # -- Serving --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start the server (dev or production based on the environment).

        - **Development**: single worker with auto-reload
        - **Production**: multi-worker
        """
        _host = host or self.config.host
        _port = port or self.config.port

        if self.config.debug:
            from movico.server.dev import run_dev_server

            run_dev_server(
                self,
                _host,
                _port,
                reload=self.config.reload,
                log_level=self.config.log_level,
            )
        else:
            from movico.server.production import run_production_server

            run_production_server(
                self,
                host=_host,
                port=_port,
                workers=self.config.workers,
                log_format=self.config.log_format,
                log_level=self.config.log_level,
            )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly, then delegates HTTP scopes
        to the request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        await self.prepare()
        await handle_request(
            scope,
            receive,
            send,
            router=self.router,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            debug=self.config.debug,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Startup prepares the app; shutdown runs the request router's
        shutdown handler and reports its exit code back to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.prepare()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                if await self.shutdown() == 0:
                    await send({"type": "lifespan.shutdown.complete"})
                else:
                    await send({"type": "lifespan.shutdown.failed", "message": "Shutdown failed"})
                return

    async def shutdown(self) -> int:
        """Run the shutdown handler for an already-stopped server.

        Returns the exit code the handler chose: 0 on a clean shutdown,
        1 if a step failed. A second call is a no-op returning 0.
        """
        if self._request_router is None:
            return 0
        exit_codes: list[int] = []
        handler = self._request_router.shutdown_handler(_ClosedListener(), exit=exit_codes.append)
        await handler()
        return exit_codes[0] if exit_codes else 0

    # -- Internal --

    def _check_not_ready(self) -> None:
        if self._ready:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Add controllers, views, and middleware before calling app.run()."
            )
            raise RuntimeError(msg)
