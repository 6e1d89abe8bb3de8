"""Development asset server — one lazily created asset engine per app.

The engine is expensive to start, so it is created on first use and
shared by every request after that. Requests that arrive while creation
is still running wait on the same creation task instead of starting
their own.

States::

    UNINITIALIZED --instance()--> INITIALIZING --ok--> READY --shutdown()--> CLOSED
          ^                            |                                       |
          +----------failure-----------+                                       |
                                       ^------------instance()-----------------+

A shutdown() during INITIALIZING lets the creation finish, then closes
the new engine and moves to CLOSED instead of READY.

``state`` is the single authority; the engine handle exists exactly while
the server is ``READY``.
"""

import asyncio
import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any

from movico._internal.invoke import invoke
from movico.errors import EngineError
from movico.http.request import Request
from movico.http.response import Response
from movico.middleware.protocol import Middleware, Next
from movico.serving.engine import (
    AssetEngine,
    EngineFactory,
    create_source_engine,
    merge_engine_config,
)

logger = logging.getLogger("movico.dev")


class AssetServerState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"


def _retrieve_exception(task: asyncio.Task[Any]) -> None:
    # Every waiter may have been cancelled; mark the failure as observed.
    if not task.cancelled():
        task.exception()


class DevAssetServer:
    """Owns the asset engine used in development.

    Usage::

        assets = DevAssetServer(config.document, engine_config=config.engine)
        html = await assets.transform_template("/users/42")
        ...
        await assets.shutdown()
    """

    __slots__ = (
        "_closing",
        "_config",
        "_creation",
        "_document",
        "_engine",
        "_factory",
        "_state",
    )

    def __init__(
        self,
        document: str,
        *,
        engine_config: Mapping[str, Any] | None = None,
        factory: EngineFactory | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self._document = document
        self._config = MappingProxyType(merge_engine_config(engine_config, cwd))
        self._factory: EngineFactory = factory or create_source_engine
        self._state = AssetServerState.UNINITIALIZED
        self._engine: AssetEngine | None = None
        self._creation: asyncio.Task[AssetEngine] | None = None
        # Set by shutdown() while a creation is pending
        self._closing = False

    @property
    def state(self) -> AssetServerState:
        return self._state

    @property
    def config(self) -> Mapping[str, Any]:
        """The merged config handed to the engine factory."""
        return self._config

    @property
    def current(self) -> AssetEngine | None:
        """The live engine, or None unless the server is READY."""
        if self._state is AssetServerState.READY:
            return self._engine
        return None

    async def instance(self) -> AssetEngine:
        """Return the engine, creating it on first use.

        Concurrent callers share one creation. If it fails, each of them
        sees the same exception and the next call starts a new attempt.
        Cancelling a caller does not cancel the creation.
        """
        if self._state is AssetServerState.READY and self._engine is not None:
            return self._engine

        if self._state is AssetServerState.INITIALIZING and self._creation is not None:
            logger.debug("Asset engine is being initialized; awaiting the pending creation")
        else:
            logger.info("Creating asset engine (root: %s)", self._config["root"])
            self._state = AssetServerState.INITIALIZING
            self._closing = False
            self._creation = asyncio.get_running_loop().create_task(self._create())
            self._creation.add_done_callback(_retrieve_exception)

        return await asyncio.shield(self._creation)

    async def _create(self) -> AssetEngine:
        try:
            engine = await self._factory(self._config)
        except BaseException as exc:
            self._state = AssetServerState.UNINITIALIZED
            self._creation = None
            if isinstance(exc, Exception):
                logger.error("Failed to create asset engine: %s", exc)
            raise
        if self._closing:
            self._closing = False
            self._state = AssetServerState.CLOSED
            self._creation = None
            logger.info("Asset engine finished starting after shutdown; closing it")
            await _close(engine)
            msg = "The asset server was shut down while the engine was starting"
            raise EngineError(msg)
        self._engine = engine
        self._state = AssetServerState.READY
        logger.info("Asset engine ready")
        return engine

    async def transform_template(self, url: str) -> str:
        """Rewrite the held document for *url* through the engine."""
        engine = await self.instance()
        return await engine.transform_index_html(url, self._document)

    async def get_middleware(self) -> Middleware:
        """The engine's request middleware."""
        engine = await self.instance()
        return engine.middleware

    async def middleware(self, request: Request, next: Next) -> Response:
        """Route handler delegating to the engine, created on demand."""
        engine = await self.instance()
        return await engine.middleware(request, next)

    async def fix_stacktrace(self, exc: BaseException) -> None:
        """Let the live engine rewrite *exc*'s traceback, if it can."""
        engine = self.current
        if engine is None:
            return
        fixer = getattr(engine, "fix_stacktrace", None)
        if fixer is not None:
            await invoke(fixer, exc)

    async def shutdown(self) -> None:
        """Close the live engine. Safe to call any number of times.

        Without a live engine this returns at once, including while a
        creation is pending; that creation is neither awaited nor
        cancelled, but the engine it produces is closed on arrival and
        its waiters get ``EngineError``. Errors from the engine's
        ``close()`` are logged and swallowed.
        """
        engine = self.current
        if engine is None:
            if self._state is AssetServerState.INITIALIZING:
                self._closing = True
            logger.info("Asset engine is not running (state: %s)", self._state.value)
            return

        logger.info("Shutting down asset engine")
        self._engine = None
        self._state = AssetServerState.CLOSED
        self._creation = None
        await _close(engine)


async def _close(engine: AssetEngine) -> None:
    try:
        await engine.close()
    except Exception:
        logger.exception("Error shutting down asset engine")
    else:
        logger.info("Asset engine shut down")
