"""HTTPMethod, Route and RouteMatch."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from movico.errors import ConfigurationError
from movico.http.request import Request
from movico.http.response import Response


class HTTPMethod(StrEnum):
    """The closed set of verbs a route descriptor may declare."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"

    @classmethod
    def coerce(cls, value: HTTPMethod | str) -> HTTPMethod:
        """Return *value* as an ``HTTPMethod``, case-insensitively.

        Raises ``ConfigurationError`` for anything outside the set.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            msg = f"Method: {value!r} is not recognized as an HTTP method"
            raise ConfigurationError(msg) from None


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:    ``/users``        (is_param=False)
    Param:     ``/{id}``         (is_param=True, param_name="id")
    Typed:     ``/{id:int}``     (is_param=True, param_type="int")
    Wildcard:  ``/*``            (is_param=True, param_name="wildcard", param_type="path")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Route:
    """A bound route: a path pattern, its methods, and the composed handler."""

    path: str
    handler: Callable[[Request], Awaitable[Response]]
    methods: frozenset[str]
    name: str | None = None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
