"""ASGI handler — translates ASGI scope/messages to movico types.

The only component that touches raw ASGI requests directly. Converts the
scope to a typed Request, runs application middleware around route
dispatch, and sends the Response back through ASGI send().
"""

from collections.abc import Callable
from typing import Any

from movico._internal.asgi import Receive, Scope, Send
from movico.errors import HTTPError
from movico.http.request import Request
from movico.http.response import Response, negotiate
from movico.middleware.chain import compose
from movico.middleware.protocol import Middleware
from movico.routing.router import Router
from movico.server.errors import handle_http_error, handle_internal_error
from movico.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Middleware, ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    async def dispatch(req: Request) -> Response:
        try:
            # HEAD is answered by the GET route, without a body
            method = "GET" if req.method == "HEAD" else req.method
            match = router.match(method, req.path)
        except HTTPError:
            # Unmatched path or method: the fallback answers if installed
            if router.fallback is None:
                raise
            return negotiate(await router.fallback(req))

        routed = Request(
            method=req.method,
            path=req.path,
            headers=req.headers,
            query=req.query,
            path_params=match.path_params,
            http_version=req.http_version,
            client=req.client,
            _receive=req._receive,
            _cache=req._cache,
        )
        return await match.route.handler(routed)

    try:
        response = await compose(middleware, dispatch)(request)
    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers, debug)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, debug)

    await send_response(response, send, head=request.method == "HEAD")
