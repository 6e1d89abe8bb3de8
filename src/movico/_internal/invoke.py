"""Invoke helpers — call sync or async callables uniformly.

Endpoints, validators, error hooks, registration guards, and views can
each be ``def`` or ``async def``. This module keeps the sync/async check
in exactly one place.

Usage::

    from movico._internal.invoke import invoke

    result = await invoke(validate, request)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
