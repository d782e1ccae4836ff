"""Built-in plugin: assemble the middleware chain.

Built-in middleware runs first, then every name from
``Options.middleware_order``. Each entry of the ``middleware`` bucket is a
factory called as ``factory(runtime, settings)``, where ``settings`` comes
from ``Options.middlewares[name]``; it returns the middleware itself.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from roost.errors import ConventionError
from roost.middleware.builtin import BUILTIN_MIDDLEWARE_ORDER

if TYPE_CHECKING:
    from roost.runtime import Roost

_NO_SETTINGS = MappingProxyType({})


async def plugin(runtime: Roost) -> None:
    options = runtime.options
    factories = runtime.module.get("middleware") or {}
    order = [*BUILTIN_MIDDLEWARE_ORDER, *options.middleware_order]

    for name in order:
        try:
            factory = factories[name]
        except KeyError:
            msg = (
                f"middleware {name!r} is listed in middleware_order but not "
                f"defined in path: {options.directories.middlewares}"
            )
            raise ConventionError(msg) from None
        runtime.app.use(factory(runtime, options.middlewares.get(name, _NO_SETTINGS)))

    runtime.set_array_module("middleware_order", order)
