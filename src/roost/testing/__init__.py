"""Test utilities for roost applications.

    from roost.testing import TestClient, mock_http
"""

from roost.testing.client import TestClient, TestResponse
from roost.testing.mock import mock_http

__all__ = ["TestClient", "TestResponse", "mock_http"]
