"""Built-in middleware: request id and access log.

Both are registered in the ``middleware`` bucket under reserved names and
always run ahead of user middleware. Reserved names are left out of the
boot log.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from roost.errors import HTTPError

if TYPE_CHECKING:
    from roost.context import Context
    from roost.middleware.protocol import Middleware, Next
    from roost.runtime import Roost


def request_id(runtime: Roost, settings: Mapping[str, Any]) -> Middleware:
    """Reuse the incoming request id header or mint one, and echo it back."""
    header = settings.get("header", runtime.options.request_id_header)

    async def roost_request_id(ctx: Context, next: Next) -> None:
        rid = ctx.get(header) or uuid.uuid4().hex
        ctx.state["request_id"] = rid
        ctx.set(header, rid)
        await next(ctx)

    return roost_request_id


def access_log(runtime: Roost, settings: Mapping[str, Any]) -> Middleware:
    """Log method, path, status and duration of every request."""
    enabled = settings.get("enabled", runtime.options.logger.access_log)

    async def roost_logger(ctx: Context, next: Next) -> None:
        if not enabled:
            await next(ctx)
            return
        start = time.perf_counter()
        status = 500
        try:
            await next(ctx)
            status = ctx.status
        except HTTPError as exc:
            status = exc.status
            raise
        finally:
            elapsed = (time.perf_counter() - start) * 1000
            runtime.pretty_log(f"{ctx.method} {ctx.path} {status} {elapsed:.1f}ms", type="access")

    return roost_logger


BUILTIN_MIDDLEWARE = {
    "roost_request_id": request_id,
    "roost_logger": access_log,
}

BUILTIN_MIDDLEWARE_ORDER = ("roost_request_id", "roost_logger")

RESERVED_MODULES: dict[str, frozenset[str]] = {
    "middleware": frozenset(BUILTIN_MIDDLEWARE),
}


def filter_builtin_modules(category: str, names: Iterable[str]) -> list[str]:
    """Drop reserved built-in names from *names*."""
    reserved = RESERVED_MODULES.get(category, frozenset())
    return [name for name in names if name not in reserved]
