"""Error handling pipeline for movico requests.

Maps HTTPError exceptions and unexpected failures to appropriate
Response objects, using registered error handlers or sensible defaults.
"""

import html
import inspect
import logging
import traceback
from collections.abc import Callable
from typing import Any

from movico.errors import HTTPError
from movico.http.request import Request
from movico.http.response import Response, negotiate

logger = logging.getLogger("movico.server")


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc) args.
    Supports both sync and async error handlers.
    """
    params = list(inspect.signature(handler).parameters.values())

    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result
    return negotiate(result)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    # Try exact exception type, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # Keep the exception's status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"

    response = Response(body=html.escape(detail), status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def render_traceback(exc: BaseException, request: Request) -> str:
    """Minimal HTML page with the formatted traceback, for development."""
    formatted = "".join(traceback.format_exception(exc))
    return (
        "<!DOCTYPE html>"
        '<html lang="en">'
        "<head><title>500 - Internal Server Error</title></head>"
        "<body>"
        f"<h1>{html.escape(type(exc).__name__)}: {html.escape(str(exc))}</h1>"
        f"<p>{html.escape(request.method)} {html.escape(request.url)}</p>"
        f"<pre>{html.escape(formatted)}</pre>"
        "</body>"
        "</html>"
    )


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(500) or error_handlers.get(type(exc))
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        if response.status == 200:
            response = response.with_status(500)
        return response

    if debug:
        return Response(body=render_traceback(exc, request), status=500)
    return Response(body="Internal Server Error", status=500)
