"""Serving — the client application in production and development.

Production serves the build output directly. Development runs every
request past an asset engine owned by ``DevAssetServer``, created on
first use and closed at shutdown.
"""

from movico.serving.controller import ServingController
from movico.serving.dev_assets import AssetServerState, DevAssetServer
from movico.serving.engine import (
    AssetEngine,
    EngineFactory,
    SourceEngine,
    create_source_engine,
    merge_engine_config,
)

__all__ = [
    "AssetEngine",
    "AssetServerState",
    "DevAssetServer",
    "EngineFactory",
    "ServingController",
    "SourceEngine",
    "create_source_engine",
    "merge_engine_config",
]
