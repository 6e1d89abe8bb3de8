"""Asset engine boundary and the built-in source engine.

The dev asset server treats the engine as an opaque collaborator: an
async factory builds one from a config mapping, and the rest of the
application only ever calls the three members of ``AssetEngine``.

``SourceEngine`` is the engine used when none is supplied. It serves
project sources as they are on disk, never cached, and adds a small
client module to every document it transforms.
"""

from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import anyio

from movico.errors import EngineError
from movico.http.request import Request
from movico.http.response import Response
from movico.middleware.protocol import Middleware, Next
from movico.middleware.static import StaticFiles
from movico.templating.document import inject_before

CLIENT_PATH = "/@movico/client.js"

CLIENT_SOURCE = """\
const origin = new URL(import.meta.url).origin;
console.debug(`[movico] development client loaded from ${origin}`);
window.addEventListener("error", (event) => {
  console.error("[movico] uncaught error:", event.error ?? event.message);
});
"""


@runtime_checkable
class AssetEngine(Protocol):
    """What the application needs from an asset-transform engine."""

    @property
    def middleware(self) -> Middleware: ...

    async def transform_index_html(self, url: str, html: str) -> str: ...

    async def close(self) -> None: ...


# async (config) -> engine
type EngineFactory = Callable[[Mapping[str, Any]], Awaitable[AssetEngine]]


def merge_engine_config(
    overrides: Mapping[str, Any] | None = None,
    cwd: str | Path | None = None,
) -> dict[str, Any]:
    """Merge caller overrides over the engine defaults.

    ``root`` falls back to *cwd* (the process working directory when
    omitted); ``server`` always runs in middleware mode unless the
    caller says otherwise. Every other key passes through unchanged.
    """
    overrides = dict(overrides or {})
    root = overrides.get("root") or cwd or Path.cwd()
    server = {"middleware_mode": True, **dict(overrides.get("server") or {})}
    return {**overrides, "root": str(root), "server": server}


# Key and certificate files the source engine refuses to serve
SOURCE_DENY: tuple[str, ...] = ("*.pem", "*.crt", "*.key", "*.p12", "*.pfx")


class SourceEngine:
    """Serves files from ``root`` untransformed and without caching.

    HTML files are never served directly; documents go through
    ``transform_index_html`` so the client module is always present.
    Dotfiles, dot-directories and key or certificate files are never
    served.
    """

    __slots__ = ("_closed", "_root", "_static")

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._static = StaticFiles(
            self._root,
            index=None,
            cache_control="no-cache",
            exclude_suffixes=(".html", ".htm"),
            serve_hidden=False,
            deny=SOURCE_DENY,
        )
        self._closed = False

    @property
    def root(self) -> Path:
        return self._root

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def middleware(self) -> Middleware:
        return self._serve

    async def transform_index_html(self, url: str, html: str) -> str:
        if self._closed:
            msg = f"Cannot transform {url!r}: the source engine is closed"
            raise EngineError(msg)
        script = f'<script type="module" src="{CLIENT_PATH}"></script>'
        return inject_before(html, script)

    async def close(self) -> None:
        self._closed = True

    async def _serve(self, request: Request, next: Next) -> Response:
        if request.path == CLIENT_PATH and request.method in ("GET", "HEAD"):
            return Response(
                body=CLIENT_SOURCE,
                content_type="text/javascript; charset=utf-8",
            ).with_header("Cache-Control", "no-cache")
        return await self._static(request, next)


async def create_source_engine(config: Mapping[str, Any]) -> SourceEngine:
    """Default ``EngineFactory``.

    Raises ``EngineError`` if the configured root is not a directory.
    """
    root = anyio.Path(config["root"])
    if not await root.is_dir():
        msg = f"Asset root {str(root)!r} is not a directory"
        raise EngineError(msg)
    return SourceEngine(await root.resolve())
