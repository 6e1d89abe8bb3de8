"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    StaticFiles -- Serve files from a directory, falling through on misses
"""

from movico.middleware.chain import compose
from movico.middleware.protocol import Middleware, Next
from movico.middleware.static import StaticFiles, send_file

__all__ = [
    "Middleware",
    "Next",
    "StaticFiles",
    "compose",
    "send_file",
]
