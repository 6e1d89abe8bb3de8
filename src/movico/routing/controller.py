"""Controllers — registrars that bind route descriptors to the route table.

Subclass ``Controller`` and list routes; ``register()`` applies the
registration algorithm, in declaration order:

1. ``should_register`` false → skip (logged, not an error).
2. ``env_scope`` set and not the active environment → skip.
3. Method outside ``HTTPMethod`` → ``ConfigurationError`` (fatal).
4. Pending handlers resolved concurrently, order preserved.
5. ``validate`` prepended as a synthetic middleware.
6. Chain + wrapped endpoint bound at ``(method, path)``.

``register()`` is not idempotent: calling it twice binds every route
twice (the route table keeps the first binding). Call it once per
process.
"""

import inspect
import logging
from collections.abc import Sequence
from typing import Any

import anyio

from movico._internal.invoke import invoke
from movico.config import Environment
from movico.http.request import Request
from movico.http.response import Response, negotiate
from movico.middleware.chain import compose
from movico.middleware.protocol import Middleware, Next
from movico.routing.descriptor import HandlerSpec, RouteDescriptor, Validator
from movico.routing.route import HTTPMethod, Route
from movico.routing.router import Router
from movico.store import PropertyStore

logger = logging.getLogger("movico.controller")


class Controller[S: PropertyStore]:
    """Owns a list of route descriptors and binds them to a router.

    The optional *service* is a ``PropertyStore`` holding the business
    state the controller's endpoints work with.

    Usage::

        class UserController(Controller[UserStore]):
            @property
            def routes(self) -> Sequence[RouteDescriptor]:
                return (
                    RouteDescriptor(HTTPMethod.GET, "/api/users/{id}", self.show),
                )

            async def show(self, request: Request) -> dict[str, Any]:
                ...
    """

    def __init__(self, *, service: S | None = None) -> None:
        self.service = service

    @property
    def routes(self) -> Sequence[RouteDescriptor]:
        """The descriptors this controller registers. Override in subclasses."""
        return ()

    def on_register(self) -> None:
        """Hook run at the start of ``register()``. Override as needed."""

    async def register(self, router: Router, *, environment: Environment) -> None:
        """Bind every applicable descriptor to *router*.

        Raises ``ConfigurationError`` for a descriptor with an unknown
        HTTP method; descriptors before it stay bound.
        """
        self.on_register()
        for descriptor in self.routes:
            await self._register_route(router, descriptor, environment)

    async def _register_route(
        self,
        router: Router,
        descriptor: RouteDescriptor,
        environment: Environment,
    ) -> None:
        if descriptor.should_register is not None and not await invoke(
            descriptor.should_register
        ):
            logger.info("Skipping route: %s", descriptor.label)
            _discard_pending(descriptor.handlers)
            return

        if descriptor.env_scope is not None and descriptor.env_scope != environment:
            logger.debug(
                "Skipping route: %s (Env: %s, active: %s)",
                descriptor.label,
                descriptor.env_scope,
                environment,
            )
            _discard_pending(descriptor.handlers)
            return

        method = HTTPMethod.coerce(descriptor.method)
        chain = await resolve_handlers(descriptor.handlers)
        if descriptor.validate is not None:
            chain.insert(0, _validation_middleware(descriptor.validate))

        logger.info(
            "Registering route: %s %s (Env: %s)",
            method,
            descriptor.path,
            descriptor.env_scope or "all",
        )
        router.add(
            Route(
                path=descriptor.path,
                handler=compose(chain, _wrap_endpoint(descriptor)),
                methods=frozenset({method.value}),
                name=descriptor.name,
            )
        )


async def resolve_handlers(specs: Sequence[HandlerSpec]) -> list[Middleware]:
    """Await every pending handler concurrently, preserving declared order."""
    resolved: list[Any] = list(specs)

    async def _resolve(index: int, pending: Any) -> None:
        resolved[index] = await pending

    async with anyio.create_task_group() as tg:
        for index, spec in enumerate(specs):
            if inspect.isawaitable(spec):
                tg.start_soon(_resolve, index, spec)

    return resolved


def _discard_pending(specs: Sequence[HandlerSpec]) -> None:
    """Close un-awaited coroutines of a route that will never be bound."""
    for spec in specs:
        if inspect.iscoroutine(spec):
            spec.close()


def _validation_middleware(validate: Validator) -> Middleware:
    async def run_validation(request: Request, next: Next) -> Response:
        await invoke(validate, request)
        return await next(request)

    return run_validation


def _wrap_endpoint(descriptor: RouteDescriptor) -> Next:
    endpoint = descriptor.endpoint
    on_error = descriptor.on_error
    label = descriptor.label

    async def endpoint_handler(request: Request) -> Response:
        try:
            return negotiate(await invoke(endpoint, request))
        except Exception as exc:
            if on_error is not None:
                try:
                    await invoke(on_error, exc, request)
                except Exception:
                    logger.exception("Error hook for %s failed", label)
            raise

    return endpoint_handler
