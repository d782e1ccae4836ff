"""Sequential plugin runner.

Plugins are callables taking the runtime; ``async def`` and plain ``def``
both work. They run one at a time in registration order, and ``run()``
returns only after the last one has finished: that return is the barrier
``Roost.listen()`` waits on before starting the transport.

No timeout is applied by default, so a plugin that never finishes stalls
boot. ``PluginOptions.timeout`` bounds each plugin, and ``cancel()``
aborts a run in progress; both surface as :class:`PluginError`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, TypeAlias

import anyio

from roost._internal.invoke import invoke
from roost.errors import PluginError

if TYPE_CHECKING:
    from roost.runtime import Roost

logger = logging.getLogger("roost.plugins")

Plugin: TypeAlias = Callable[["Roost"], Any]


class PluginRunner:
    """Ordered list of plugins with a run-to-completion barrier."""

    __slots__ = ("_cancel_scope", "_done", "_plugins", "_started")

    def __init__(self) -> None:
        self._plugins: list[Plugin] = []
        self._cancel_scope: anyio.CancelScope | None = None
        self._done = False
        self._started = False

    def add(self, plugin: Plugin) -> Plugin:
        """Append *plugin*. Returns it, so ``add`` works as a decorator."""
        if not callable(plugin):
            msg = f"plugin must be callable, got {type(plugin).__name__}"
            raise TypeError(msg)
        self._plugins.append(plugin)
        return plugin

    def __len__(self) -> int:
        return len(self._plugins)

    def __iter__(self) -> Iterator[Plugin]:
        return iter(tuple(self._plugins))

    @property
    def done(self) -> bool:
        """True once every plugin has finished."""
        return self._done

    async def run(self, runtime: Roost, *, timeout: float | None = None) -> None:
        """Run every plugin in order, one at a time.

        Plugins added while the run is in progress (for instance by a
        module the loader imports) run after the current one.

        A runner runs once. Built-in plugins install middleware and
        routes, so a failed run cannot be retried: a second call raises
        :class:`PluginError`.
        """
        if self._started:
            msg = "plugins already ran on this runtime; a failed boot cannot be retried"
            raise PluginError(msg)
        self._started = True
        with anyio.CancelScope() as scope:
            self._cancel_scope = scope
            position = 0
            while position < len(self._plugins):
                await self._run_one(position, self._plugins[position], runtime, timeout)
                position += 1
        self._cancel_scope = None

        if scope.cancel_called:
            msg = f"plugin run cancelled after {position} of {len(self._plugins)} plugin(s)"
            raise PluginError(msg)
        self._done = True

    def cancel(self) -> None:
        """Abort the run in progress, if any."""
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()

    async def _run_one(
        self,
        position: int,
        plugin: Plugin,
        runtime: Roost,
        timeout: float | None,
    ) -> None:
        name = getattr(plugin, "__qualname__", repr(plugin))
        logger.debug("plugin #%d %s", position, name)
        try:
            with anyio.fail_after(timeout):
                await invoke(plugin, runtime)
        except TimeoutError as exc:
            if timeout is None:
                raise
            msg = f"plugin #{position} ({name}) did not finish within {timeout}s"
            raise PluginError(msg) from exc
