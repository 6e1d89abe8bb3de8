"""Middleware chain composition.

Folds an ordered sequence of middleware around a terminal handler so
that the first middleware runs first and each ``next`` call moves one
step inward.
"""

from collections.abc import Awaitable, Callable, Sequence

from movico.http.request import Request
from movico.http.response import Response
from movico.middleware.protocol import Middleware, Next


def compose(
    middleware: Sequence[Middleware],
    handler: Callable[[Request], Awaitable[Response]],
) -> Next:
    """Wrap *handler* in *middleware*, outermost first."""
    composed: Next = handler
    for mw in reversed(middleware):

        async def step(request: Request, _mw: Middleware = mw, _next: Next = composed) -> Response:
            return await _mw(request, _next)

        composed = step
    return composed
