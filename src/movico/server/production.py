"""Production server.

Starts a multi-worker pounce server serving the built client
application. No reload, structured logs by default.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from movico.app import App


def run_production_server(
    app: App,
    host: str = "0.0.0.0",
    port: int = 3000,
    workers: int = 0,  # 0 = auto-detect from CPU count
    *,
    log_format: str = "json",
    log_level: str = "info",
    max_connections: int = 1000,
    keep_alive_timeout: float = 5.0,
    request_timeout: float = 30.0,
) -> None:
    """Run a movico app in production mode.

    Args:
        app: Movico App instance.
        host: Bind address (default: 0.0.0.0 for all interfaces).
        port: Bind port (default: 3000).
        workers: Worker count (0 = auto-detect from CPU count).
        log_format: Log format ("json" or "text").
        log_level: Log level (debug, info, warning, error, critical).
        max_connections: Maximum concurrent connections.
        keep_alive_timeout: Keep-alive connection timeout (seconds).
        request_timeout: Individual request timeout (seconds).
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=workers,
        log_format=log_format,
        log_level=log_level,
        max_connections=max_connections,
        keep_alive_timeout=keep_alive_timeout,
        request_timeout=request_timeout,
    )
    server = Server(config, app)
    server.run()
