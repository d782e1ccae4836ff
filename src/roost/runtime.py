"""The roost runtime.

One ``Roost`` instance per process owns the options, the module registry,
the plugin runner and the ASGI application. Its lifecycle is::

    runtime = Roost("blog", {"root_path": "/srv/blog"})
    server = await runtime.listen(3000)    # plugins first, then the socket

Boot is fail-fast: invalid options and convention violations raise before
any socket is bound, and there is no degraded mode.
"""

from __future__ import annotations

import asyncio
import json
import traceback
from collections.abc import Callable, Iterable, MutableMapping
from datetime import datetime
from typing import Any

from roost.application import Application
from roost.bridge import bind_runtime
from roost.config import SUPPORTED_SERVER_TYPE, Options, merge_options
from roost.context import Context, ServiceBinding
from roost.errors import ConfigurationError
from roost.logger import build_logger, debug_log, log_at
from roost.middleware.builtin import filter_builtin_modules
from roost.plugins import Plugin, PluginRunner, builtin_plugins
from roost.registry import ModuleRegistry
from roost.server.transport import HTTPServer, normalize_listen_args
from roost.signals import PLUGIN_READY, READY, Signals


class Roost:
    """The runtime orchestrator.

    Construction merges options, validates the server type, builds the
    application and registers the built-in plugins. ``listen()`` runs the
    plugins, one at a time, then starts the transport.
    """

    __slots__ = (
        "_signals",
        "app",
        "http_server",
        "logger",
        "module",
        "name",
        "options",
        "plugins",
    )

    def __init__(self, name: str, options: MutableMapping[str, Any] | None = None) -> None:
        self.name = name
        self.options: Options = merge_options(name, options)
        self.logger: Any = self.options.custom_logger or build_logger(self.options.logger)
        # Filled by the loader plugin, frozen once the plugin phase ends
        self.module = ModuleRegistry()
        self.http_server: HTTPServer | None = None
        self._signals = Signals()

        if self.options.server_type != SUPPORTED_SERVER_TYPE:
            msg = (
                f"Only the {SUPPORTED_SERVER_TYPE!r} server type is supported, "
                f"got {self.options.server_type!r}"
            )
            raise ConfigurationError(msg)
        self.app = Application(debug=self.options.debug)
        self.app.on_context(self._bind_context)

        bind_runtime(self)

        self.plugins = PluginRunner()
        for plugin in builtin_plugins():
            self.plugins.add(plugin)

        self.app.on_error(self._handle_app_error)

    # -- Plugins and signals --

    def plugin(self, func: Plugin) -> Plugin:
        """Register a user plugin; runs after the built-in ones. Decorator-friendly."""
        return self.plugins.add(func)

    def on(self, event: str, handler: Callable[..., Any]) -> Callable[..., Any]:
        return self._signals.on(event, handler)

    def emit(self, event: str, *args: Any) -> int:
        return self._signals.emit(event, *args)

    async def boot(self) -> None:
        """Run the plugin phase once, freeze the registry, emit ``pluginReady``.

        Called by ``listen()``; later calls return immediately. A failed
        boot is terminal: calling it again raises :class:`PluginError`.
        """
        if self.plugins.done:
            return
        await self.plugins.run(self, timeout=self.options.plugins.timeout)
        if self.options.plugins.freeze_registry:
            self.module.freeze()
        self.emit(PLUGIN_READY)

    # -- Server --

    async def listen(self, *args: Any) -> HTTPServer:
        """Boot, then start accepting connections.

        Accepts ``listen(port)``, ``listen(port, host)``,
        ``listen({"port": ..., "host": ..., "path": ...})`` or
        ``listen(socket_path)``, each with an optional trailing callback
        receiving the server handle.
        """
        await self.boot()

        options, callback = normalize_listen_args(args)

        def on_listening(server: HTTPServer) -> None:
            self.http_server = server
            self.emit(READY, self)
            self.pretty_log(f"{self.name} is starting at {server.url}")
            if callback is not None:
                callback(server)

        self.http_server = await self.app.listen(options, on_listening)
        return self.http_server

    def run(self, *args: Any) -> None:
        """Listen and serve until the server exits. Blocking."""

        async def serve() -> None:
            server = await self.listen(*args)
            await server.wait()

        asyncio.run(serve())

    def mock_context(self, req: dict[str, Any] | None = None) -> Context:
        """Build a request context outside of any real request.

        *req* may set ``method``, ``url``, ``headers``, ``query`` and
        ``body``. The context is built exactly like a real one, service
        binding included, so jobs and tests can call request logic
        directly::

            ctx = runtime.mock_context({"url": "/user?id=1"})
            profile = await ctx.service.user.profile(ctx.query["id"])
        """
        from roost.testing.mock import mock_http

        request, response = mock_http(req)
        return self.app.create_context(request, response)

    # -- Module registry --

    def merge_module(self, type: str, modules: Any) -> None:
        """Merge a name -> module mapping into bucket *type*.

        A value that is not a mapping is ignored without error.
        """
        self.module.merge(type, modules)

    def set_module(self, type: str, key: str, value: Any) -> None:
        self.module.set(type, key, value)

    def set_array_module(self, type: str, modules: Iterable[Any]) -> None:
        """Store an ordered sequence as bucket *type*, e.g. the middleware order."""
        self.module.set_array(type, modules)

    def log_module_msg(self, type: str, modules: Any) -> None:
        """Log the names in *modules*, minus reserved built-in names."""
        if not modules:
            return
        names = filter_builtin_modules(type, list(modules))
        if names:
            self.pretty_log(json.dumps(names), type=type, init=True)

    # -- Logging --

    def pretty_log(
        self,
        msg: str,
        *,
        type: str = "",
        level: str = "info",
        init: bool = False,
    ) -> None:
        """Log *msg* with ``[init]`` and ``[type]`` prefixes.

        Debug mode prints a timestamped line to the terminal; otherwise the
        message goes to the leveled logger.
        """
        prefix = ("[init] " if init else "") + (f"[{type}] " if type else "")
        if self.options.debug:
            stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            debug_log(f"[{stamp}] [debug] {prefix}{msg}", level)
        else:
            log_at(self.logger, level, prefix + msg)

    # -- Internal --

    def _bind_context(self, ctx: Context) -> None:
        ctx.runtime = self
        ctx.service = ServiceBinding(ctx, self.module)

    def _handle_app_error(self, exc: Exception, ctx: Context | None) -> None:
        detail = "".join(traceback.format_exception(exc)).rstrip()
        where = f" {ctx.method} {ctx.path}" if ctx is not None else ""
        self.pretty_log(f"[asgi error]{where} {detail}", level="error")

    def __repr__(self) -> str:
        return f"<Roost {self.name!r} plugins={len(self.plugins)} buckets={list(self.module)}>"
