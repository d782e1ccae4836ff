"""Route table mapping paths to controller classes.

Paths come from the controllers root layout (see ``roost.conventions``).
Matching is exact, except that a trailing slash is ignored: ``/user``
and ``/user/`` reach the same controller.

A controller handles an HTTP method through the method of the same
lowercase name; ``HEAD`` falls back to ``get``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from roost._internal.invoke import invoke
from roost.errors import MethodNotAllowed, NotFound

if TYPE_CHECKING:
    from roost.context import Context
    from roost.middleware.protocol import Next

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options")


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    path: str
    controller: type
    handler_name: str


def allowed_methods(controller: type) -> frozenset[str]:
    """HTTP methods *controller* defines a handler for."""
    methods = {name.upper() for name in HTTP_METHODS if callable(getattr(controller, name, None))}
    if "GET" in methods:
        methods.add("HEAD")
    return frozenset(methods)


class Router:
    """Path -> controller table, usable directly as the final middleware."""

    __slots__ = ("_routes",)

    def __init__(self) -> None:
        self._routes: dict[str, type] = {}

    def add(self, path: str, controller: type) -> None:
        """Register *controller* at *path*; a later add for a path wins."""
        self._routes[path] = controller

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, path: object) -> bool:
        return path in self._routes

    def match(self, method: str, path: str) -> RouteMatch:
        """Find the controller and handler for a request.

        Raises ``NotFound`` or ``MethodNotAllowed``.
        """
        found_path = path
        controller = self._routes.get(path)
        if controller is None and path != "/":
            found_path = path[:-1] if path.endswith("/") else path + "/"
            controller = self._routes.get(found_path)
        if controller is None:
            raise NotFound()

        handler_name = method.lower()
        if handler_name == "head" and not callable(getattr(controller, "head", None)):
            handler_name = "get"
        if handler_name not in HTTP_METHODS or not callable(getattr(controller, handler_name, None)):
            raise MethodNotAllowed(allowed_methods(controller))
        return RouteMatch(found_path, controller, handler_name)

    async def __call__(self, ctx: Context, next: Next) -> None:
        match = self.match(ctx.method, ctx.path)
        controller = match.controller(ctx)
        result = await invoke(getattr(controller, match.handler_name))
        if result is not None:
            ctx.body = result
        await next(ctx)
