"""Roost exception hierarchy.

Shared across the loader, registry, plugin runner, runtime and request
pipeline so every module raises and catches the same types.
"""

from dataclasses import dataclass


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when runtime options are invalid.

    Raised during ``Roost()`` construction, before any plugin runs.
    """


class ConventionError(ConfigurationError):
    """A module on disk breaks a loading convention.

    Boot-time and fatal: the message always names the offending path.
    """


class RegistryFrozenError(RoostError):
    """Raised when the module registry is written after boot.

    Use ``ModuleRegistry.unlocked()`` for deliberate late writes.
    """


class PluginError(RoostError):
    """A plugin did not complete: it timed out or the run was cancelled."""


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or controllers. The ASGI pipeline
    catches these and turns them into a response with the same status.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no controller is registered for the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the controller exists but does not handle this HTTP method.

    Includes an ``Allow`` header listing the methods the controller defines.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
