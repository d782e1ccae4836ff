"""Middleware protocol and built-in middleware."""

from roost.middleware.protocol import Middleware, Next

__all__ = ["Middleware", "Next"]
