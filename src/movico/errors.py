"""Movico exception hierarchy.

Shared across the route table, controllers, the request handler, the
dev asset server, and the property store so every module raises and
catches the same types.
"""

from dataclasses import dataclass


class MovicoError(Exception):
    """Base for all movico-specific errors."""


class ConfigurationError(MovicoError):
    """Raised when the application is wired incorrectly.

    Programming errors, not runtime conditions: an unknown HTTP method
    on a route descriptor, an unrecognised environment name, or an HTML
    document without a mount element. Never swallowed.
    """


class EngineError(MovicoError):
    """The asset engine failed to start or to transform a document."""


@dataclass(frozen=True, slots=True)
class HTTPError(MovicoError):
    """An error that maps directly to an HTTP status code.

    Raised by the route table, middleware, validators, or endpoints.
    The ASGI handler catches these and turns them into responses.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — route exists but not for this HTTP method."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class ValidationError(HTTPError):
    """422 — a request validator or a property validator rejected a value."""

    def __init__(self, detail: str = "Validation failed") -> None:
        super().__init__(status=422, detail=detail)
