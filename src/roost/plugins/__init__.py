"""Plugins: the runner plus the built-in set every runtime starts with.

Built-in plugins run before any user plugin, in this order:

1. ``loader``: load services, utils, glues, middlewares and controllers
2. ``glue``: call each glue factory once
3. ``middleware``: install the middleware chain
4. ``router``: route requests to controllers
"""

import importlib

from roost.plugins.runner import Plugin, PluginRunner

BUILTIN_PLUGINS = (
    "roost.plugins.loader",
    "roost.plugins.glue",
    "roost.plugins.middleware",
    "roost.plugins.router",
)

__all__ = ["BUILTIN_PLUGINS", "Plugin", "PluginRunner", "builtin_plugins"]


def builtin_plugins() -> list[Plugin]:
    """Import the built-in plugin modules and return their entry points."""
    return [importlib.import_module(name).plugin for name in BUILTIN_PLUGINS]
