"""RequestRouter — assembles the route table and owns shutdown.

``initialize()`` registers everything, in a fixed order:

1. user controllers, in the order supplied;
2. the serving routes (``ServingController``);
3. server-rendered views, except in development;
4. the 404 fallback.

A failing phase is logged and the remaining phases still run, so the
application starts degraded rather than not at all. Specific routes
always win over the serving wildcard, whatever their phase.
"""

import logging
import sys
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Protocol

from kida import Environment as TemplateEnvironment

from movico._internal.invoke import invoke
from movico.config import AppConfig, Environment
from movico.http.request import Request
from movico.http.response import Response
from movico.routing.controller import Controller
from movico.routing.route import HTTPMethod, Route
from movico.routing.router import Router
from movico.serving.controller import ServingController
from movico.serving.dev_assets import DevAssetServer
from movico.serving.engine import EngineFactory
from movico.templating.document import NOT_FOUND_PAGE, check_document, mount
from movico.templating.integration import create_environment
from movico.templating.views import View, ViewMap, render_view

logger = logging.getLogger("movico.router")


class Listener(Protocol):
    """The network listener stopped first during shutdown."""

    def close(self) -> Any: ...


async def not_found(request: Request) -> Response:
    """Fallback for every request no route matches."""
    return Response(body=NOT_FOUND_PAGE, status=404)


class RequestRouter:
    """Builds the route table for one application and tears it down.

    Usage::

        app_router = RequestRouter(config, controllers=[UserController()], views=views)
        await app_router.initialize()
        app_router.router.compile()
    """

    __slots__ = (
        "_config",
        "_controllers",
        "_dev_assets",
        "_initialized",
        "_router",
        "_serving",
        "_shutting_down",
        "_template_env",
        "_views",
    )

    def __init__(
        self,
        config: AppConfig,
        *,
        controllers: Iterable[Controller[Any]] = (),
        views: ViewMap | None = None,
        engine_factory: EngineFactory | None = None,
        router: Router | None = None,
    ) -> None:
        self._config = config
        self._router = router if router is not None else Router()
        self._controllers = list(controllers)
        self._views = dict(views or {})
        self._dev_assets = DevAssetServer(
            check_document(config.document, config.mount_id),
            engine_config=config.engine,
            factory=engine_factory,
        )
        self._serving = ServingController(config, self._dev_assets)
        self._template_env: TemplateEnvironment | None = None
        self._initialized = False
        self._shutting_down = False

    @property
    def router(self) -> Router:
        return self._router

    @property
    def dev_assets(self) -> DevAssetServer:
        return self._dev_assets

    @property
    def serving(self) -> ServingController:
        return self._serving

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    async def initialize(self) -> None:
        """Register controllers, serving, views and the fallback.

        Raises ``RuntimeError`` if called a second time.
        """
        if self._initialized:
            msg = "RequestRouter.initialize() has already run"
            raise RuntimeError(msg)
        self._initialized = True

        logger.info("Initializing controllers and views...")
        await self._register_controllers()
        logger.info("Controllers registered.")
        await self._register_serving()
        logger.info("Serving routes registered.")
        self._register_views()
        logger.info("Views registered.")
        self._register_fallback()
        logger.info("Fallback registered.")

    async def _register_controllers(self) -> None:
        try:
            for controller in self._controllers:
                await controller.register(self._router, environment=self._config.environment)
                logger.info("Registered controller %s", type(controller).__name__)
        except Exception:
            logger.exception("Failed to register controllers")

    async def _register_serving(self) -> None:
        try:
            await self._serving.register(self._router, environment=self._config.environment)
        except Exception:
            logger.exception("Failed to register serving routes")

    def _register_views(self) -> None:
        if self._config.environment is Environment.DEVELOPMENT:
            logger.info("Skipping view rendering in development mode (the asset engine handles it).")
            return

        try:
            if any(isinstance(view, str) for view in self._views.values()):
                self._template_env = create_environment(self._config)
            for path, view in self._views.items():
                logger.info("Registering view for path: %s", path)
                self._router.add(
                    Route(
                        path=path,
                        handler=self._view_handler(path, view),
                        methods=frozenset({HTTPMethod.GET.value}),
                        name=f"view:{path}",
                    )
                )
        except Exception:
            logger.exception("Failed to register views")

    def _view_handler(self, path: str, view: View) -> Callable[[Request], Awaitable[Response]]:
        config = self._config

        async def render(request: Request) -> Response:
            try:
                markup = await render_view(view, request.url, self._template_env)
            except Exception:
                logger.exception("Error rendering view for path %s", path)
                raise
            return Response(body=mount(config.document, markup, config.mount_id))

        return render

    def _register_fallback(self) -> None:
        try:
            self._router.set_fallback(not_found)
        except Exception:
            logger.exception("Failed to register fallback")

    def shutdown_handler(
        self,
        listener: Listener,
        *,
        exit: Callable[[int], Any] = sys.exit,
    ) -> Callable[[], Awaitable[None]]:
        """Build the process shutdown handler.

        The handler stops *listener*, then (in development) the asset
        engine, then calls ``exit(0)``; ``exit(1)`` if either step
        raised. Only the first invocation does anything.
        """

        async def handle_shutdown() -> None:
            if self._shutting_down:
                logger.info("Shutdown already in progress.")
                return
            self._shutting_down = True
            logger.info("Shutdown handler triggered.")

            try:
                await invoke(listener.close)
            except Exception as exc:
                logger.error("Error during server shutdown: %s", exc)
                exit(1)
                return

            try:
                if self._config.environment is Environment.DEVELOPMENT:
                    logger.info("Shutting down asset engine...")
                    await self._dev_assets.shutdown()
            except Exception:
                logger.exception("Error shutting down asset engine")
                exit(1)
                return

            logger.info("Server shut down gracefully.")
            exit(0)

        return handle_shutdown
