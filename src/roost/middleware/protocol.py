"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(ctx: Context, next: Next) -> None:
        ...
        await next(ctx)

No base class required. Middleware shapes the response by mutating the
context (``ctx.body``, ``ctx.status``, ``ctx.set(...)``) before or after
awaiting ``next``.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from roost.context import Context

# The next handler in the middleware chain
Next: TypeAlias = Callable[[Context], Awaitable[None]]


class Middleware(Protocol):
    """Protocol for roost middleware. Functions and callable objects both fit::

        async def timing(ctx: Context, next: Next) -> None:
            start = time.monotonic()
            await next(ctx)
            ctx.set("X-Time", f"{time.monotonic() - start:.3f}")
    """

    async def __call__(self, ctx: Context, next: Next) -> None: ...
