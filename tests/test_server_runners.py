"""Tests for movico.server.dev and movico.server.production — pounce wiring."""

from unittest.mock import MagicMock, patch

from movico.app import App
from movico.config import AppConfig, Environment
from movico.server.dev import run_dev_server
from movico.server.production import run_production_server


class TestDevServer:
    @patch("pounce.server.Server")
    def test_single_worker_with_reload(self, mock_server: MagicMock) -> None:
        app = App(AppConfig())
        run_dev_server(app, "127.0.0.1", 3000, app_path="myapp:app")

        config, passed_app = mock_server.call_args[0]
        assert passed_app is app
        assert config.host == "127.0.0.1"
        assert config.port == 3000
        assert config.workers == 1
        assert config.reload is True
        assert mock_server.call_args[1] == {"app_path": "myapp:app"}
        mock_server.return_value.run.assert_called_once()


class TestProductionServer:
    @patch("pounce.server.Server")
    def test_workers_and_limits(self, mock_server: MagicMock) -> None:
        app = App(AppConfig(environment=Environment.PRODUCTION))
        run_production_server(app, port=8080, workers=4, max_connections=50)

        config, passed_app = mock_server.call_args[0]
        assert passed_app is app
        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.workers == 4
        assert config.max_connections == 50
        mock_server.return_value.run.assert_called_once()
