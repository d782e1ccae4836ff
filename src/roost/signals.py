"""Named runtime signals.

``Roost`` emits ``"pluginReady"`` once every plugin has finished and
``"ready"`` once the transport accepts connections. Handlers are plain
callables run synchronously, in subscription order.

Signals are notifications only. Boot ordering is enforced by
``Roost.listen()`` awaiting the plugin phase, never by a handler.
"""

import threading
from collections.abc import Callable
from typing import Any

PLUGIN_READY = "pluginReady"
READY = "ready"


class Signals:
    """Tiny synchronous event emitter."""

    __slots__ = ("_handlers", "_lock")

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[..., Any]]] = {}
        self._lock = threading.Lock()

    def on(self, event: str, handler: Callable[..., Any]) -> Callable[..., Any]:
        """Subscribe *handler* to *event*. Returns the handler."""
        with self._lock:
            self._handlers.setdefault(event, []).append(handler)
        return handler

    def off(self, event: str, handler: Callable[..., Any]) -> None:
        with self._lock:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

    def emit(self, event: str, *args: Any) -> int:
        """Call every handler of *event*; returns how many ran."""
        with self._lock:
            handlers = list(self._handlers.get(event, ()))
        for handler in handlers:
            handler(*args)
        return len(handlers)
