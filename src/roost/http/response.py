"""Mutable HTTP response state.

Middleware and controllers shape the response through the request
``Context`` (``ctx.body = ...``, ``ctx.status = ...``). The sender turns
the final state into ASGI messages.

Body negotiation:

- ``None``: empty; the status stays 404 unless it was set explicitly
- ``str``: ``text/html`` when it starts with ``<``, else ``text/plain``
- ``bytes``: ``application/octet-stream``
- mapping or list: JSON
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class Response:
    """Response state for one request."""

    body: Any = None
    _status: int | None = None
    headers: dict[str, str] = field(default_factory=dict)
    content_type: str | None = None

    @property
    def status(self) -> int:
        if self._status is not None:
            return self._status
        return 404 if self.body is None else 200

    @status.setter
    def status(self, value: int) -> None:
        self._status = value

    @property
    def status_set(self) -> bool:
        return self._status is not None

    def set_header(self, name: str, value: str) -> None:
        self.headers[name.lower()] = value

    def get_header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def render(self) -> tuple[bytes, str]:
        """Encode the body; returns ``(payload, content_type)``."""
        body = self.body
        if body is None:
            payload, default_type = b"", "text/plain; charset=utf-8"
        elif isinstance(body, bytes):
            payload, default_type = body, "application/octet-stream"
        elif isinstance(body, str):
            payload = body.encode("utf-8")
            if body.lstrip().startswith("<"):
                default_type = "text/html; charset=utf-8"
            else:
                default_type = "text/plain; charset=utf-8"
        elif isinstance(body, (Mapping, list, tuple)):
            payload = json_module.dumps(body, default=str).encode("utf-8")
            default_type = "application/json"
        else:
            payload, default_type = str(body).encode("utf-8"), "text/plain; charset=utf-8"
        return payload, self.content_type or default_type
