"""Built-in plugin: load application modules from disk."""

from __future__ import annotations

from typing import TYPE_CHECKING

from roost.loader import loader
from roost.middleware.builtin import BUILTIN_MIDDLEWARE

if TYPE_CHECKING:
    from roost.runtime import Roost


async def plugin(runtime: Roost) -> None:
    directories = runtime.options.directories

    runtime.merge_module("service", loader.load_class_module("service", directories.services))
    runtime.merge_module("util", loader.load_module("util", directories.utils))
    runtime.merge_module("glue", loader.load_module("glue", directories.glues))
    # User middleware of the same name replaces the built-in one
    runtime.merge_module("middleware", BUILTIN_MIDDLEWARE)
    runtime.merge_module("middleware", loader.load_module("middleware", directories.middlewares))
    runtime.merge_module("controller", loader.load_controller(directories.controllers))

    for category in ("service", "util", "glue", "middleware", "controller"):
        runtime.log_module_msg(category, runtime.module.get(category))
