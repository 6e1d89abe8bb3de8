"""Movico CLI — runs an application with the dev or production server.

Entry point registered as ``movico`` in ``pyproject.toml``::

    [project.scripts]
    movico = "movico.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``movico`` command."""
    parser = argparse.ArgumentParser(
        prog="movico",
        description="Movico — server shell for single-page applications.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- movico run -------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start dev or production server")
    run_parser.add_argument(
        "app",
        help="Import string (e.g. myapp:app)",
    )
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--production",
        action="store_true",
        help="Run in production mode (sets MOVICO_ENV=production before import)",
    )
    run_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker count (0=auto-detect, production only)",
    )

    # -- movico routes ----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List the app's registered routes")
    routes_parser.add_argument(
        "app",
        help="Import string (e.g. myapp:app)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from movico.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from movico.cli._routes import show_routes

        show_routes(args)
