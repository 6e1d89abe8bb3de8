"""Location context for server-rendered views.

A view renders for one URL. The URL is held in a ``ContextVar`` for
the duration of the render so view code can read it without it being
passed down explicitly.

Thread safety:
    ``ContextVar`` is task-local under asyncio. No locks needed.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

location_var: ContextVar[str] = ContextVar("movico_location")
"""The URL being rendered. Set by ``location_context``."""


def current_location() -> str:
    """Return the URL of the view being rendered.

    Raises ``LookupError`` if called outside a view render.
    """
    return location_var.get()


@contextmanager
def location_context(url: str) -> Iterator[str]:
    """Make *url* the current location until the block exits."""
    token = location_var.set(url)
    try:
        yield url
    finally:
        location_var.reset(token)
