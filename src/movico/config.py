"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, read once at
process start, and passed through component constructors. Nothing else
in movico reads the process environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType
from typing import Any

from movico.errors import ConfigurationError
from movico.templating.document import DEFAULT_DOCUMENT, DEFAULT_MOUNT_ID

ENV_VAR = "MOVICO_ENV"


class Environment(StrEnum):
    """The runtime environment that scopes route registration."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: str | None) -> Environment:
        """Parse an environment name; unset or empty means development."""
        if not value:
            return cls.DEVELOPMENT
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(e.value for e in cls)
            msg = f"Unknown environment {value!r}. Expected one of: {allowed}"
            raise ConfigurationError(msg) from None


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(environment=Environment.PRODUCTION, port=3000)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    environment: Environment = Environment.DEVELOPMENT

    # HTML document served to the browser
    document: str = DEFAULT_DOCUMENT
    mount_id: str = DEFAULT_MOUNT_ID

    # Production build output
    dist_dir: str | Path = "dist"
    entry_file: str = "index.html"

    # Server-rendered views (kida templates)
    view_dir: str | Path = "views"

    # Asset engine overrides, merged over the defaults (caller wins)
    engine: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    # Reload / workers
    reload: bool = True
    workers: int = 0  # 0 = auto-detect from CPU count (production only)

    # Logging (forwarded to pounce)
    log_level: str = "info"
    log_format: str = "text"

    @property
    def debug(self) -> bool:
        """True in the development environment."""
        return self.environment is Environment.DEVELOPMENT

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> AppConfig:
        """Build a config from process environment variables.

        Reads ``MOVICO_ENV`` (default ``development``), ``HOST`` and
        ``PORT``. Keyword *overrides* win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {"environment": Environment.parse(env.get(ENV_VAR))}
        if env.get("HOST"):
            values["host"] = env["HOST"]
        if env.get("PORT"):
            try:
                values["port"] = int(env["PORT"])
            except ValueError:
                msg = f"PORT must be an integer, got {env['PORT']!r}"
                raise ConfigurationError(msg) from None
        values.update(overrides)
        return cls(**values)
