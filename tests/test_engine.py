"""Tests for movico.serving.engine — config merge and the source engine."""

from pathlib import Path
from typing import Any

import pytest

from movico.errors import EngineError
from movico.http.request import Request
from movico.http.response import Response
from movico.serving.engine import (
    CLIENT_PATH,
    AssetEngine,
    SourceEngine,
    create_source_engine,
    merge_engine_config,
)


async def _receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


def _request(path: str, method: str = "GET") -> Request:
    scope = {"type": "http", "method": method, "path": path, "headers": [], "query_string": b""}
    return Request.from_asgi(scope, _receive)


async def _fallthrough(request: Request) -> Response:
    return Response("fell through", status=299)


class TestMergeEngineConfig:
    def test_defaults(self) -> None:
        config = merge_engine_config(None, cwd="/srv")
        assert config == {"root": "/srv", "server": {"middleware_mode": True}}

    def test_root_override(self) -> None:
        assert merge_engine_config({"root": "/web"}, cwd="/srv")["root"] == "/web"

    def test_empty_root_falls_back(self) -> None:
        assert merge_engine_config({"root": ""}, cwd="/srv")["root"] == "/srv"

    def test_server_merge_caller_wins(self) -> None:
        config = merge_engine_config({"server": {"middleware_mode": False, "hmr": True}}, cwd="/")
        assert config["server"] == {"middleware_mode": False, "hmr": True}

    def test_extra_keys_pass_through(self) -> None:
        assert merge_engine_config({"mode": "spa"}, cwd="/")["mode"] == "spa"

    def test_default_cwd(self) -> None:
        assert merge_engine_config()["root"] == str(Path.cwd())


class TestCreateSourceEngine:
    async def test_creates(self, tmp_path: Path) -> None:
        engine = await create_source_engine({"root": str(tmp_path)})
        assert isinstance(engine, SourceEngine)
        assert isinstance(engine, AssetEngine)
        assert engine.root == tmp_path.resolve()

    async def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(EngineError, match="not a directory"):
            await create_source_engine({"root": str(tmp_path / "nope")})


class TestSourceEngine:
    async def test_injects_client_script(self, tmp_path: Path) -> None:
        engine = SourceEngine(tmp_path)
        html = await engine.transform_index_html("/", "<html><head></head><body></body></html>")
        assert f'<script type="module" src="{CLIENT_PATH}"></script></head>' in html

    async def test_transform_after_close_fails(self, tmp_path: Path) -> None:
        engine = SourceEngine(tmp_path)
        await engine.close()
        assert engine.closed
        with pytest.raises(EngineError):
            await engine.transform_index_html("/", "<html></html>")

    async def test_serves_client_module(self, tmp_path: Path) -> None:
        engine = SourceEngine(tmp_path)
        response = await engine.middleware(_request(CLIENT_PATH), _fallthrough)
        assert response.status == 200
        assert response.content_type.startswith("text/javascript")
        assert response.header("Cache-Control") == "no-cache"

    async def test_serves_source_files_uncached(self, tmp_path: Path) -> None:
        (tmp_path / "main.js").write_text("console.log(1)")
        engine = SourceEngine(tmp_path)
        response = await engine.middleware(_request("/main.js"), _fallthrough)
        assert response.text == "console.log(1)"
        assert response.header("Cache-Control") == "no-cache"

    async def test_html_falls_through(self, tmp_path: Path) -> None:
        (tmp_path / "index.html").write_text("<html></html>")
        engine = SourceEngine(tmp_path)
        response = await engine.middleware(_request("/index.html"), _fallthrough)
        assert response.status == 299

    async def test_directory_falls_through(self, tmp_path: Path) -> None:
        (tmp_path / "index.html").write_text("<html></html>")
        engine = SourceEngine(tmp_path)
        response = await engine.middleware(_request("/"), _fallthrough)
        assert response.status == 299

    async def test_missing_falls_through(self, tmp_path: Path) -> None:
        engine = SourceEngine(tmp_path)
        response = await engine.middleware(_request("/users/1"), _fallthrough)
        assert response.status == 299

    async def test_dotfile_falls_through(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("SECRET=1")
        engine = SourceEngine(tmp_path)
        response = await engine.middleware(_request("/.env"), _fallthrough)
        assert response.status == 299

    async def test_dot_directory_falls_through(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "config").write_text("[core]")
        engine = SourceEngine(tmp_path)
        response = await engine.middleware(_request("/.git/config"), _fallthrough)
        assert response.status == 299

    @pytest.mark.parametrize("name", ["server.pem", "cert.CRT", "tls.key"])
    async def test_key_material_falls_through(self, tmp_path: Path, name: str) -> None:
        (tmp_path / name).write_text("-----BEGIN-----")
        engine = SourceEngine(tmp_path)
        response = await engine.middleware(_request(f"/{name}"), _fallthrough)
        assert response.status == 299
