"""Tests for movico.config — Environment parsing and AppConfig."""

import dataclasses

import pytest

from movico.config import ENV_VAR, AppConfig, Environment
from movico.errors import ConfigurationError


class TestEnvironment:
    @pytest.mark.parametrize("value", [None, ""])
    def test_unset_means_development(self, value: str | None) -> None:
        assert Environment.parse(value) is Environment.DEVELOPMENT

    @pytest.mark.parametrize("value", ["production", "PRODUCTION", " Production "])
    def test_case_and_whitespace_insensitive(self, value: str) -> None:
        assert Environment.parse(value) is Environment.PRODUCTION

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigurationError, match="staging"):
            Environment.parse("staging")

    def test_str_value(self) -> None:
        assert str(Environment.DEVELOPMENT) == "development"


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()

        assert cfg.host == "127.0.0.1"
        assert cfg.port == 3000
        assert cfg.environment is Environment.DEVELOPMENT
        assert cfg.debug is True
        assert cfg.mount_id == "root"
        assert cfg.dist_dir == "dist"
        assert cfg.entry_file == "index.html"
        assert dict(cfg.engine) == {}

    def test_production_is_not_debug(self) -> None:
        assert AppConfig(environment=Environment.PRODUCTION).debug is False

    def test_frozen(self) -> None:
        cfg = AppConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.port = 9000  # type: ignore[misc]


class TestFromEnv:
    def test_reads_environment(self) -> None:
        cfg = AppConfig.from_env({ENV_VAR: "production", "HOST": "0.0.0.0", "PORT": "8080"})
        assert cfg.environment is Environment.PRODUCTION
        assert cfg.host == "0.0.0.0"
        assert cfg.port == 8080

    def test_empty_environ(self) -> None:
        cfg = AppConfig.from_env({})
        assert cfg.environment is Environment.DEVELOPMENT
        assert cfg.port == 3000

    def test_overrides_win(self) -> None:
        cfg = AppConfig.from_env({"PORT": "8080"}, port=9000, entry_file="app.html")
        assert cfg.port == 9000
        assert cfg.entry_file == "app.html"

    def test_bad_port(self) -> None:
        with pytest.raises(ConfigurationError, match="PORT must be an integer"):
            AppConfig.from_env({"PORT": "eighty"})

    def test_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_VAR, "production")
        assert AppConfig.from_env().environment is Environment.PRODUCTION
