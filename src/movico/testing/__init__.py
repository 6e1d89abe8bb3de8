"""Test utilities for movico applications.

::

    from movico.testing import TestClient
"""

from movico.testing.client import TestClient

__all__ = ["TestClient"]
