"""Bridge between module-level, decorator-driven code and the runtime.

Code imported by the loader cannot receive the runtime as an argument.
``Roost()`` binds itself here on construction so such code can reach it::

    from roost.bridge import boot_plugin

    @boot_plugin
    async def warm_cache(runtime):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from roost.runtime import Roost

_runtime: Roost | None = None


def bind_runtime(runtime: Roost) -> None:
    """Make *runtime* the one returned by :func:`current_runtime`."""
    global _runtime
    _runtime = runtime


def current_runtime() -> Roost:
    """Return the most recently constructed runtime.

    Raises ``LookupError`` when no ``Roost`` has been created yet.
    """
    if _runtime is None:
        msg = "No roost runtime has been constructed yet"
        raise LookupError(msg)
    return _runtime


def boot_plugin(func: Callable[..., Any]) -> Callable[..., Any]:
    """Register *func* as a plugin on the current runtime."""
    return current_runtime().plugin(func)
