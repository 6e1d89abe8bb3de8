"""Shared type aliases used across movico modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Error handler registered with App.error(): (request, error?) -> response value
ErrorHandler: TypeAlias = Callable[..., Any]
