"""Built-in plugin: route requests to the loaded controllers.

Installed last, so the router is the innermost middleware.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from roost.routing.router import Router

if TYPE_CHECKING:
    from roost.runtime import Roost


async def plugin(runtime: Roost) -> None:
    router = Router()
    for path, controller in (runtime.module.get("controller") or {}).items():
        router.add(path, controller)
    runtime.app.use(router)
