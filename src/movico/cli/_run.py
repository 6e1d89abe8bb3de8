"""``movico run`` — development or production server command.

Resolves an import string to a movico App and starts either the
development server (single worker, auto-reload) or the production
server (multi-worker).
"""

import argparse
import os
import sys

from movico.cli._resolve import resolve_app
from movico.config import ENV_VAR, Environment


def run_server(args: argparse.Namespace) -> None:
    """Start the movico server (dev or production mode).

    ``--production`` sets the environment variable before the app is
    imported, so an app built with ``AppConfig.from_env()`` registers its
    production routes. An app hard-wired to development is rejected.
    """
    if args.production:
        os.environ[ENV_VAR] = Environment.PRODUCTION.value

    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if args.production and app.config.debug:
        print(
            f"Error: {args.app} is configured for development; "
            f"build its config with AppConfig.from_env() to honour --production",
            file=sys.stderr,
        )
        raise SystemExit(1)

    host = args.host or app.config.host
    port = args.port or app.config.port

    if not app.config.debug:
        from movico.server.production import run_production_server

        run_production_server(
            app,
            host=host,
            port=port,
            workers=args.workers if args.workers is not None else app.config.workers,
            log_format=app.config.log_format,
            log_level=app.config.log_level,
        )
    else:
        from movico.server.dev import run_dev_server

        run_dev_server(
            app,
            host,
            port,
            reload=app.config.reload,
            log_level=app.config.log_level,
            app_path=args.app,
        )
