"""Route descriptors — declarative records of one route each.

A controller lists its routes as ``RouteDescriptor`` values; the
registration algorithm in ``movico.routing.controller`` turns them into
bound routes. Descriptors carry behaviour (handlers, hooks, guards) but
no state, so they are frozen.

Usage::

    RouteDescriptor(
        method=HTTPMethod.POST,
        path="/api/users",
        handlers=(require_json,),
        validate=check_user_payload,
        on_error=report_to_telemetry,
        endpoint=create_user,
    )
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from movico.config import Environment
from movico.http.request import Request
from movico.middleware.protocol import Middleware
from movico.routing.route import HTTPMethod

# A handler slot holds a middleware, or an awaitable resolving to one
type HandlerSpec = Middleware | Awaitable[Middleware]

# (request) -> None, sync or async; raising rejects the request
type Validator = Callable[[Request], Any]

# (error, request) -> None, sync or async; side effects only
type ErrorHook = Callable[[BaseException, Request], Any]

# () -> bool, sync or async; evaluated once at registration
type RegistrationGuard = Callable[[], Any]


@dataclass(frozen=True, slots=True)
class RouteDescriptor:
    """One entry in a controller's route table.

    Attributes:
        method: HTTP verb. Strings are accepted and checked against
            ``HTTPMethod`` when the route is registered.
        path: Path pattern — exact (``/about``), parameterised
            (``/users/{id:int}``), or wildcard (``*``).
        endpoint: Terminal handler ``(request) -> response value``.
        handlers: Middleware run before the endpoint, in order.
        validate: Runs before the handlers; raising short-circuits to the
            error path without reaching the endpoint.
        on_error: Called with any error the endpoint raises, before the
            error propagates. Never suppresses propagation.
        should_register: Evaluated once at registration; false skips
            the route for the life of the process.
        env_scope: Restricts registration to one environment.
        name: Optional route name, for introspection.
    """

    method: HTTPMethod | str
    path: str
    endpoint: Callable[[Request], Any]
    handlers: Sequence[HandlerSpec] = ()
    validate: Validator | None = None
    on_error: ErrorHook | None = None
    should_register: RegistrationGuard | None = None
    env_scope: Environment | None = None
    name: str | None = None

    @property
    def label(self) -> str:
        """``METHOD path`` for log lines."""
        return f"{str(self.method).upper()} {self.path}"
