"""The underlying ASGI application.

Owns the middleware chain, context construction and the top-level error
listeners; ``listen()`` starts the uvicorn transport. The runtime drives
it; application code rarely touches it directly.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextvars import Token
from typing import Any, TypeAlias

from roost._internal.asgi import Receive, Scope, Send
from roost.context import Context, context_var
from roost.errors import HTTPError
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Middleware, Next
from roost.server.errors import apply_http_error, apply_internal_error
from roost.server.sender import Messages, encode_response, send_messages
from roost.server.transport import HTTPServer, ListenOptions, ReadyCallback

logger = logging.getLogger("roost.server")

ContextHook: TypeAlias = Callable[[Context], Any]
ErrorListener: TypeAlias = Callable[[Exception, Context | None], Any]


async def _end_of_chain(ctx: Context) -> None:
    return None


class Application:
    """ASGI 3 application with a ``(ctx, next)`` middleware chain.

    Errors raised while handling a request never leave ``__call__``:
    ``HTTPError`` maps to its status, anything else to a 500 that is also
    reported to every ``on_error`` listener.
    """

    __slots__ = ("_context_hooks", "_error_listeners", "_middleware", "debug")

    def __init__(self, *, debug: bool = False) -> None:
        self.debug = debug
        self._middleware: list[Middleware] = []
        self._context_hooks: list[ContextHook] = []
        self._error_listeners: list[ErrorListener] = []

    # -- Registration --

    def use(self, middleware: Middleware) -> Middleware:
        """Append *middleware* to the chain."""
        if not callable(middleware):
            msg = f"middleware must be callable, got {type(middleware).__name__}"
            raise TypeError(msg)
        self._middleware.append(middleware)
        return middleware

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        return tuple(self._middleware)

    def on_context(self, hook: ContextHook) -> ContextHook:
        """Run *hook* on every context this application creates."""
        self._context_hooks.append(hook)
        return hook

    def on_error(self, listener: ErrorListener) -> ErrorListener:
        """Call *listener* with every unhandled request error."""
        self._error_listeners.append(listener)
        return listener

    # -- Contexts --

    def create_context(self, request: Request, response: Response) -> Context:
        """Build the context for *request*, with every hook applied."""
        ctx = Context(self, request, response)
        for hook in self._context_hooks:
            hook(ctx)
        return ctx

    def emit_error(self, exc: Exception, ctx: Context | None = None) -> None:
        for listener in self._error_listeners:
            try:
                listener(exc, ctx)
            except Exception:
                logger.exception("error listener %r failed", listener)
        if not self._error_listeners:
            logger.error("unhandled error", exc_info=exc)

    # -- Request handling --

    async def handle(self, ctx: Context) -> None:
        """Run *ctx* through the middleware chain, mapping errors."""
        token: Token[Context] = context_var.set(ctx)
        try:
            await self._compose()(ctx)
        except HTTPError as exc:
            apply_http_error(ctx, exc)
        except Exception as exc:
            apply_internal_error(ctx, exc, debug=self.debug)
            self.emit_error(exc, ctx)
        finally:
            context_var.reset(token)

    def _compose(self) -> Next:
        handler: Next = _end_of_chain
        for mw in reversed(self._middleware):

            async def step(ctx: Context, _mw: Middleware = mw, _next: Next = handler) -> None:
                await _mw(ctx, _next)

            handler = step
        return handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        request = Request.from_asgi(scope, receive)
        ctx = self.create_context(request, Response())
        await self.handle(ctx)
        await send_messages(self.encode(ctx), send)

    def encode(self, ctx: Context) -> Messages:
        """Encode the response of *ctx*, falling back to a bare 500.

        A failure here (a body that cannot be serialized, a header outside
        latin-1) is reported to the error listeners like any other
        request error. The fallback starts from a fresh ``Response``, so
        nothing set by the request survives into it.
        """
        head = ctx.method == "HEAD"
        try:
            return encode_response(ctx.response, head=head)
        except Exception as exc:
            ctx.response = Response()
            apply_internal_error(ctx, exc, debug=self.debug)
            self.emit_error(exc, ctx)
            return encode_response(ctx.response, head=head)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        # Boot happens in Roost.listen(), before the server starts
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Transport --

    async def listen(
        self,
        options: ListenOptions,
        callback: ReadyCallback | None = None,
    ) -> HTTPServer:
        """Start serving; *callback* runs once connections are accepted."""
        server = HTTPServer(self, options)
        await server.start(callback)
        return server
