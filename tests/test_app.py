"""Tests for movico.app — App lifecycle, the request pipeline, and ASGI entry."""

import asyncio
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

from movico.app import App
from movico.config import AppConfig, Environment
from movico.errors import ConfigurationError, NotFound, ValidationError
from movico.http.request import Request
from movico.http.response import Response
from movico.middleware.protocol import Next
from movico.routing.controller import Controller
from movico.routing.descriptor import RouteDescriptor
from movico.routing.route import HTTPMethod
from movico.serving.dev_assets import AssetServerState
from movico.store import PropertyStore
from movico.testing import TestClient


class Users(Controller[PropertyStore]):
    @property
    def routes(self) -> Sequence[RouteDescriptor]:
        return (
            RouteDescriptor(HTTPMethod.GET, "/api/users/{id:int}", self.show),
            RouteDescriptor(
                HTTPMethod.POST, "/api/users", self.create, validate=self.check_payload
            ),
            RouteDescriptor(HTTPMethod.GET, "/api/boom", self.boom),
        )

    def show(self, request: Request) -> dict[str, Any]:
        user = self.service.get(request.path_params["id"]) if self.service else None
        if not user:
            raise NotFound("No such user")
        return {"id": request.path_params["id"], "name": user}

    async def create(self, request: Request) -> tuple[dict[str, Any], int]:
        payload = await request.json()
        assert self.service is not None
        self.service.set(str(payload["id"]), payload["name"])
        return payload, 201

    async def check_payload(self, request: Request) -> None:
        payload = await request.json()
        if "name" not in payload:
            raise ValidationError("name is required")

    def boom(self, request: Request) -> str:
        raise RuntimeError("kaboom")


class ScopedA(Controller[PropertyStore]):
    @property
    def routes(self) -> Sequence[RouteDescriptor]:
        return (
            RouteDescriptor(
                HTTPMethod.GET, "/a", lambda r: "dev-a", env_scope=Environment.DEVELOPMENT
            ),
            RouteDescriptor(
                HTTPMethod.GET, "/a", lambda r: "prod-a", env_scope=Environment.PRODUCTION
            ),
        )


class FakeEngine:
    def __init__(self) -> None:
        self.closed = 0

    @property
    def middleware(self) -> Any:
        async def serve(request: Request, next: Next) -> Response:
            if request.path == "/src/main.ts":
                return Response("compiled", content_type="text/javascript")
            return await next(request)

        return serve

    async def transform_index_html(self, url: str, html: str) -> str:
        return html.replace("</head>", f'<meta name="url" content="{url}"></head>')

    async def close(self) -> None:
        self.closed += 1


class EngineFactory:
    def __init__(self) -> None:
        self.engines: list[FakeEngine] = []

    async def __call__(self, config: Mapping[str, Any]) -> FakeEngine:
        await asyncio.sleep(0.01)
        engine = FakeEngine()
        self.engines.append(engine)
        return engine


@pytest.fixture
def dist(tmp_path: Path) -> Path:
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "index.html").write_text("<!DOCTYPE html><title>built</title>")
    (dist / "main.js").write_text("bundle();")
    return dist


def _production(dist: Path, **kwargs: Any) -> App:
    return App(AppConfig(environment=Environment.PRODUCTION, dist_dir=dist), **kwargs)


class TestSetup:
    def test_error_decorator(self) -> None:
        app = App(AppConfig())

        @app.error(404)
        def missing() -> str:
            return "gone"

        assert 404 in app._error_handlers

    def test_add_middleware(self) -> None:
        app = App(AppConfig())

        async def noop(request: Request, next: Next) -> Response:
            return await next(request)

        app.add_middleware(noop)
        assert app._middleware_list == [noop]

    def test_default_config_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOVICO_ENV", "production")
        assert App().config.environment is Environment.PRODUCTION

    def test_router_before_prepare(self) -> None:
        with pytest.raises(RuntimeError):
            App(AppConfig()).router  # noqa: B018

    async def test_mutation_after_prepare_rejected(self) -> None:
        app = App(AppConfig())
        await app.prepare()
        with pytest.raises(RuntimeError):
            app.add_view("/late", lambda: "late")

    def test_prepare_once_across_threads(self) -> None:
        registered: list[str] = []
        entered = threading.Barrier(2)

        class Slow(Controller[PropertyStore]):
            @property
            def routes(self) -> Sequence[RouteDescriptor]:
                return (
                    RouteDescriptor(
                        HTTPMethod.GET, "/slow", lambda r: "slow", should_register=self.guard
                    ),
                )

            async def guard(self) -> bool:
                registered.append(threading.current_thread().name)
                await asyncio.sleep(0.05)
                return True

        app = App(AppConfig(), controllers=[Slow()])
        errors: list[BaseException] = []

        def worker() -> None:
            entered.wait()
            try:
                asyncio.run(app.prepare())
            except BaseException as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker, name=f"worker-{i}") for i in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert not any(thread.is_alive() for thread in threads)
        assert errors == []
        assert len(registered) == 1
        assert app.ready
        assert [route.path for route in app.router.routes] == ["/slow", "*"]

    async def test_failed_prepare_can_be_retried(self) -> None:
        app = App(AppConfig(document="<html><body></body></html>"))
        for _ in range(2):
            with pytest.raises(ConfigurationError):
                await app.prepare()
        assert not app.ready

    async def test_prepare_once_under_concurrency(self) -> None:
        app = App(AppConfig())
        await asyncio.gather(*(app.prepare() for _ in range(5)))
        assert app.ready
        assert app.router.compiled
        assert len(app.router.routes) == 1


class TestProduction:
    async def test_controller_route(self, dist: Path) -> None:
        app = _production(dist, controllers=[Users(service=PropertyStore({"1": "ada"}))])
        async with TestClient(app) as client:
            response = await client.get("/api/users/1")
        assert response.status == 200
        assert response.json() == {"id": "1", "name": "ada"}

    async def test_validation_failure_is_422(self, dist: Path) -> None:
        store = PropertyStore()
        app = _production(dist, controllers=[Users(service=store)])
        async with TestClient(app) as client:
            response = await client.post("/api/users", json={"id": 2})
        assert response.status == 422
        assert len(store) == 0

    async def test_create(self, dist: Path) -> None:
        store = PropertyStore()
        app = _production(dist, controllers=[Users(service=store)])
        async with TestClient(app) as client:
            response = await client.post("/api/users", json={"id": 2, "name": "grace"})
        assert response.status == 201
        assert store.get("2") == "grace"

    async def test_build_files_and_spa_fallback(self, dist: Path) -> None:
        async with TestClient(_production(dist)) as client:
            asset = await client.get("/main.js")
            page = await client.get("/users/7/settings")
        assert asset.text == "bundle();"
        assert page.status == 200
        assert "<title>built</title>" in page.text

    async def test_views_rendered(self, dist: Path) -> None:
        app = _production(dist, views={"/about": lambda: "<h1>About</h1>"})
        async with TestClient(app) as client:
            response = await client.get("/about")
        assert response.status == 200
        assert '<div id="root"><h1>About</h1></div>' in response.text

    async def test_unmatched_method_gets_404_page(self, dist: Path) -> None:
        async with TestClient(_production(dist)) as client:
            response = await client.delete("/anything")
        assert response.status == 404
        assert "404 - Page Not Found" in response.text

    async def test_head_uses_get_route(self, dist: Path) -> None:
        async with TestClient(_production(dist)) as client:
            response = await client.head("/main.js")
        assert response.status == 200
        assert response.body == b""

    async def test_internal_error_hidden(self, dist: Path) -> None:
        app = _production(dist, controllers=[Users()])
        async with TestClient(app) as client:
            response = await client.get("/api/boom")
        assert response.status == 500
        assert response.text == "Internal Server Error"

    async def test_error_handler_for_status(self, dist: Path) -> None:
        app = _production(dist, controllers=[Users(service=PropertyStore())])

        @app.error(404)
        def missing(request: Request) -> str:
            return f"nothing at {request.path}"

        async with TestClient(app) as client:
            response = await client.get("/api/users/9")
        assert response.status == 404
        assert response.text == "nothing at /api/users/9"

    async def test_global_middleware_wraps_everything(self, dist: Path) -> None:
        async def stamp(request: Request, next: Next) -> Response:
            response = await next(request)
            return response.with_header("X-Served-By", "movico")

        async with TestClient(_production(dist, middleware=[stamp])) as client:
            response = await client.delete("/nowhere")
        assert response.status == 404
        assert response.header("x-served-by") == "movico"

    async def test_dual_scope_route(self, dist: Path) -> None:
        async with TestClient(_production(dist, controllers=[ScopedA()])) as client:
            response = await client.get("/a")
        assert response.text == "prod-a"


class TestDevelopment:
    async def test_dual_scope_route(self) -> None:
        app = App(AppConfig(), controllers=[ScopedA()], engine_factory=EngineFactory())
        async with TestClient(app) as client:
            response = await client.get("/a")
        assert response.text == "dev-a"

    async def test_document_transformed_per_url(self) -> None:
        factory = EngineFactory()
        app = App(AppConfig(), engine_factory=factory)
        async with TestClient(app) as client:
            response = await client.get("/users/1?tab=2")
        assert response.status == 200
        assert '<meta name="url" content="/users/1?tab=2">' in response.text

    async def test_engine_serves_assets(self) -> None:
        app = App(AppConfig(), engine_factory=EngineFactory())
        async with TestClient(app) as client:
            response = await client.get("/src/main.ts")
        assert response.text == "compiled"

    async def test_concurrent_first_requests_share_engine(self) -> None:
        factory = EngineFactory()
        app = App(AppConfig(), engine_factory=factory)
        async with TestClient(app) as client:
            responses = await asyncio.gather(*(client.get(f"/page/{i}") for i in range(8)))
        assert all(r.status == 200 for r in responses)
        assert len(factory.engines) == 1

    async def test_views_not_served(self) -> None:
        app = App(
            AppConfig(), views={"/about": lambda: "<h1>About</h1>"}, engine_factory=EngineFactory()
        )
        async with TestClient(app) as client:
            response = await client.get("/about")
        assert "<h1>About</h1>" not in response.text
        assert '<meta name="url" content="/about">' in response.text

    async def test_internal_error_shows_traceback(self) -> None:
        app = App(AppConfig(), controllers=[Users()], engine_factory=EngineFactory())
        async with TestClient(app) as client:
            response = await client.get("/api/boom")
        assert response.status == 500
        assert "RuntimeError: kaboom" in response.text
        assert "Traceback" in response.text

    async def test_shutdown_closes_engine(self) -> None:
        factory = EngineFactory()
        app = App(AppConfig(), engine_factory=factory)
        client = TestClient(app)
        async with client:
            await client.get("/")
        assert factory.engines[0].closed == 1
        assert app.request_router.dev_assets.state is AssetServerState.CLOSED
        assert client.exit_code == 0


class TestLifespan:
    async def _run_lifespan(self, app: App, messages: list[str]) -> list[dict[str, Any]]:
        queue = [{"type": message} for message in messages]
        sent: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            return queue.pop(0)

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        return sent

    async def test_startup_and_shutdown(self) -> None:
        app = App(AppConfig(), engine_factory=EngineFactory())
        sent = await self._run_lifespan(app, ["lifespan.startup", "lifespan.shutdown"])
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
        assert app.ready

    async def test_startup_failure_reported(self) -> None:
        app = App(AppConfig(document="<html><body></body></html>"))
        sent = await self._run_lifespan(app, ["lifespan.startup"])
        assert sent[0]["type"] == "lifespan.startup.failed"

    async def test_shutdown_without_startup(self) -> None:
        app = App(AppConfig())
        sent = await self._run_lifespan(app, ["lifespan.shutdown"])
        assert sent == [{"type": "lifespan.shutdown.complete"}]
