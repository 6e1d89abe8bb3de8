"""Development server with hot reload.

Starts a pounce ASGI server with the live movico App object.
Uses single-worker mode with reload enabled for development.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from movico.app import App


def run_dev_server(
    app: App,
    host: str,
    port: int,
    *,
    reload: bool = True,
    reload_include: tuple[str, ...] = (".html", ".css", ".js"),
    reload_dirs: tuple[str, ...] = (),
    app_path: str | None = None,
    log_level: str = "info",
) -> None:
    """Start a pounce dev server with the given movico App.

    Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``),
    but movico has a live ``App`` object. We use ``pounce.Server``
    directly with the ASGI callable.

    Args:
        app: ASGI callable (movico App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Enable auto-reload on file changes (default True).
        reload_include: Extra file extensions to watch when reload is
            active.
        reload_dirs: Extra directories to watch alongside cwd.
        app_path: Optional ``"module:attribute"`` import string. When
            provided, pounce reimports the app on each reload cycle.
        log_level: Server log level.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=reload,
        reload_include=reload_include,
        reload_dirs=reload_dirs,
        log_level=log_level,
    )
    server = Server(config, app, app_path=app_path)
    server.run()
