"""``movico routes`` — list registered routes.

Resolves an import string to a movico App, prepares it, and prints the
route table in binding order: METHOD, PATH and route name.
"""

import argparse
import asyncio
import sys

from movico.cli._resolve import resolve_app


def show_routes(args: argparse.Namespace) -> None:
    """Print the route table for ``args.app``."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    asyncio.run(app.prepare())
    routes = app.router.routes
    if not routes:
        print("No routes registered.")
        return

    rows = [
        (", ".join(sorted(route.methods)), route.path, route.name or "-") for route in routes
    ]
    max_methods = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    max_path = max(4, *(len(r[1]) for r in rows))  # "PATH" header

    fmt = f"{{:<{max_methods}}}  {{:<{max_path}}}  {{}}"
    print(f"Environment: {app.config.environment}")
    print(fmt.format("METHOD", "PATH", "NAME"))
    sep_len = max_methods + max_path + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for methods_str, path, name in rows:
        print(fmt.format(methods_str, path, name))
