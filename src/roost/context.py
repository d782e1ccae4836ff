"""Request context and the base-context capability.

Provides:

- ``Context``: per-request state handed to middleware and controllers
- ``BaseContext`` / ``BaseController`` / ``BaseService``: the stock
  implementation of the capability the loader checks for (``ctx``,
  ``service``, ``runtime``)
- ``ServiceBinding``: lazy, per-context access to service classes
- ``get_context()``: the context of the request being handled

Real requests and ``Roost.mock_context()`` both go through
``Application.create_context()``, so both carry the same bindings.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from roost.errors import HTTPError

if TYPE_CHECKING:
    from roost.application import Application
    from roost.http.headers import Headers
    from roost.http.query import QueryParams
    from roost.http.request import Request
    from roost.http.response import Response
    from roost.registry import ModuleRegistry
    from roost.runtime import Roost

context_var: ContextVar[Context] = ContextVar("roost_context")
"""The current context. Set by the ASGI pipeline around dispatch."""


def get_context() -> Context:
    """Return the context of the current request.

    Raises ``LookupError`` outside a request.
    """
    return context_var.get()


class Context:
    """State for one request: the request, the response being built, and
    the capability bindings installed by the runtime.
    """

    __slots__ = ("app", "request", "response", "runtime", "service", "state")

    def __init__(self, app: Application, request: Request, response: Response) -> None:
        self.app = app
        self.request = request
        self.response = response
        self.state: dict[str, Any] = {}
        self.service: ServiceBinding | None = None
        self.runtime: Roost | None = None

    @property
    def ctx(self) -> Context:
        return self

    # -- Request shortcuts --

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def query(self) -> QueryParams:
        return self.request.query

    @property
    def headers(self) -> Headers:
        return self.request.headers

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return a request header."""
        return self.request.headers.get(name, default)

    # -- Response shortcuts --

    @property
    def status(self) -> int:
        return self.response.status

    @status.setter
    def status(self, value: int) -> None:
        self.response.status = value

    @property
    def body(self) -> Any:
        return self.response.body

    @body.setter
    def body(self, value: Any) -> None:
        self.response.body = value

    def set(self, name: str, value: str) -> None:
        """Set a response header."""
        self.response.set_header(name, value)

    def throw(self, status: int, detail: str = "") -> None:
        """Abort the request with an HTTP error."""
        raise HTTPError(status=status, detail=detail)

    def __repr__(self) -> str:
        return f"<Context {self.request.method} {self.request.path}>"


class ServiceBinding:
    """Attribute access to the ``service`` registry bucket.

    ``ctx.service.user`` instantiates the ``user`` service class with the
    context on first access and returns the same instance afterwards.
    """

    __slots__ = ("_ctx", "_instances", "_registry")

    def __init__(self, ctx: Context, registry: ModuleRegistry) -> None:
        self._ctx = ctx
        self._registry = registry
        self._instances: dict[str, Any] = {}

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        instances = self._instances
        if name in instances:
            return instances[name]
        services = self._registry.get("service") or {}
        try:
            service_class = services[name]
        except KeyError:
            msg = f"No service named {name!r} is registered"
            raise AttributeError(msg) from None
        instance = service_class(self._ctx)
        instances[name] = instance
        return instance

    def __contains__(self, name: object) -> bool:
        return name in (self._registry.get("service") or {})


class BaseContext:
    """Base of everything that works on behalf of a request.

    Subclasses receive the request ``Context`` and reach services and the
    runtime through it::

        class UserProfile(BaseController):
            async def get(self):
                return await self.service.user.profile(self.ctx.query["id"])
    """

    __slots__ = ("ctx",)

    def __init__(self, ctx: Context) -> None:
        self.ctx = ctx

    @property
    def service(self) -> ServiceBinding | None:
        return self.ctx.service

    @property
    def runtime(self) -> Roost | None:
        return self.ctx.runtime


class BaseController(BaseContext):
    """Base class for modules under the controllers root.

    Methods named after HTTP verbs (``get``, ``post``, ...) handle requests.
    A non-``None`` return value becomes the response body.
    """

    __slots__ = ()


class BaseService(BaseContext):
    """Base class for modules under the services root."""

    __slots__ = ()
