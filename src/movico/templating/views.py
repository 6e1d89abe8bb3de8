"""Server-rendered views.

A view is either the name of a kida template or a zero-argument
callable (``def`` or ``async def``) returning markup. Both render
inside a location context for the request URL; templates also get the
URL as ``location``.

Usage::

    views = {
        "/about": "about.html",
        "/status": lambda: f"<p>{current_location()}</p>",
    }
"""

from collections.abc import Callable, Mapping
from typing import Any

from kida import Environment

from movico._internal.invoke import invoke
from movico.context import location_context
from movico.templating.integration import render_template

type View = str | Callable[[], Any]

# path -> view
type ViewMap = Mapping[str, View]


async def render_view(view: View, url: str, env: Environment | None = None) -> str:
    """Render *view* for *url* and return its markup.

    Raises ``TypeError`` for a template view when no environment is given.
    """
    with location_context(url):
        if isinstance(view, str):
            if env is None:
                msg = f"Cannot render template view {view!r} without a template environment"
                raise TypeError(msg)
            return render_template(env, view, {"location": url})
        markup = await invoke(view)
        return markup if isinstance(markup, str) else str(markup)
