"""Built-in plugin: connect glues.

Each module under the glues root exports a factory taking the runtime
(``def`` or ``async def``). Its result, typically a client or connection,
is stored under the ``glue_instance`` bucket with the glue's name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from roost._internal.invoke import invoke

if TYPE_CHECKING:
    from roost.runtime import Roost


async def plugin(runtime: Roost) -> None:
    for name, factory in (runtime.module.get("glue") or {}).items():
        runtime.set_module("glue_instance", name, await invoke(factory, runtime))
