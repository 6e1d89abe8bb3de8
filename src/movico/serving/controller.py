"""Serving routes for the client application.

Two catch-all ``GET *`` routes, one per environment, so exactly one is
ever registered:

- production serves the build output and answers every other path with
  the entry document (single-page-app fallback);
- development hands requests to the asset engine and answers the rest
  with the engine-transformed document.

Both sit under the wildcard, so any more specific route (a controller
endpoint or a server-rendered view) is matched first.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from movico.config import AppConfig, Environment
from movico.http.request import Request
from movico.http.response import Response
from movico.middleware.protocol import Next
from movico.middleware.static import StaticFiles, send_file
from movico.routing.controller import Controller
from movico.routing.descriptor import RouteDescriptor
from movico.routing.route import HTTPMethod
from movico.serving.dev_assets import DevAssetServer
from movico.store import PropertyStore

logger = logging.getLogger("movico.serving")


async def log_request(request: Request, next: Next) -> Response:
    """Log each request that reaches the asset engine."""
    logger.debug("%s %s", request.method, request.url)
    return await next(request)


class ServingController(Controller[PropertyStore]):
    """Registers the production and development serving routes."""

    def __init__(self, config: AppConfig, dev_assets: DevAssetServer) -> None:
        super().__init__()
        self._config = config
        self._dev_assets = dev_assets

    @property
    def dev_assets(self) -> DevAssetServer:
        return self._dev_assets

    @property
    def dist_dir(self) -> Path:
        return Path(self._config.dist_dir)

    @property
    def routes(self) -> Sequence[RouteDescriptor]:
        return (
            RouteDescriptor(
                method=HTTPMethod.GET,
                path="*",
                handlers=(StaticFiles(self.dist_dir, index=self._config.entry_file),),
                endpoint=self.send_entry,
                on_error=self._production_error,
                env_scope=Environment.PRODUCTION,
                name="serving.production",
            ),
            RouteDescriptor(
                method=HTTPMethod.GET,
                path="*",
                handlers=(log_request, self._dev_assets.middleware),
                endpoint=self.render_document,
                on_error=self._development_error,
                env_scope=Environment.DEVELOPMENT,
                name="serving.development",
            ),
        )

    async def send_entry(self, request: Request) -> Response:
        """Answer with the built entry document."""
        return await send_file(self.dist_dir / self._config.entry_file)

    async def render_document(self, request: Request) -> Response:
        """Answer with the document transformed for this URL."""
        html = await self._dev_assets.transform_template(request.url)
        return Response(body=html)

    def _production_error(self, exc: BaseException, request: Request) -> None:
        logger.error("Error serving %s: %s", request.url, exc)

    async def _development_error(self, exc: BaseException, request: Request) -> None:
        logger.error("Error rendering %s: %s", request.url, exc)
        await self._dev_assets.fix_stacktrace(exc)
