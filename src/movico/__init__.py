"""Movico — server shell for single-page applications.

Serves a client application built by an asset toolchain: the build
output in production, an on-demand asset engine in development, and
controllers plus server-rendered views alongside either.

Basic usage::

    from movico import App, AppConfig, Controller, HTTPMethod, RouteDescriptor

    class Health(Controller):
        @property
        def routes(self):
            return (RouteDescriptor(HTTPMethod.GET, "/api/health", lambda request: {"ok": True}),)

    app = App(AppConfig.from_env(), controllers=[Health()])
    app.run()
"""

from importlib import import_module

__version__ = "0.1.0-dev"
__all__ = [
    "ABSENT",
    "App",
    "AppConfig",
    "ConfigurationError",
    "Controller",
    "DevAssetServer",
    "EngineError",
    "Environment",
    "HTTPError",
    "HTTPMethod",
    "MethodNotAllowed",
    "Middleware",
    "MovicoError",
    "Next",
    "NotFound",
    "PropertyStore",
    "Request",
    "RequestRouter",
    "Response",
    "RouteDescriptor",
    "ServingController",
    "ValidationError",
    "current_location",
]

# Public name -> defining module, imported on first access
_LAZY: dict[str, str] = {
    "ABSENT": "movico.store",
    "App": "movico.app",
    "AppConfig": "movico.config",
    "ConfigurationError": "movico.errors",
    "Controller": "movico.routing.controller",
    "DevAssetServer": "movico.serving.dev_assets",
    "EngineError": "movico.errors",
    "Environment": "movico.config",
    "HTTPError": "movico.errors",
    "HTTPMethod": "movico.routing.route",
    "MethodNotAllowed": "movico.errors",
    "Middleware": "movico.middleware.protocol",
    "MovicoError": "movico.errors",
    "Next": "movico.middleware.protocol",
    "NotFound": "movico.errors",
    "PropertyStore": "movico.store",
    "Request": "movico.http.request",
    "RequestRouter": "movico.routing.app_router",
    "Response": "movico.http.response",
    "RouteDescriptor": "movico.routing.descriptor",
    "ServingController": "movico.serving.controller",
    "ValidationError": "movico.errors",
    "current_location": "movico.context",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import movico`` fast while providing a clean top-level API.
    """
    module_name = _LAZY.get(name)
    if module_name is None:
        msg = f"module 'movico' has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(import_module(module_name), name)
