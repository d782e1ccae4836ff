"""Roost: a convention-driven application runtime on ASGI.

Directory layout is configuration: controllers, services, middlewares,
utils and glues are loaded from disk under strict naming rules, a plugin
pipeline runs to completion, and only then does the server accept
traffic.

Basic usage::

    # controllers/user/profile.py
    from roost import BaseController

    class UserProfile(BaseController):
        async def get(self):
            return {"name": "ada"}

    # main.py
    from roost import Roost

    Roost("blog").run(3000)     # serves GET /user/profile
"""

__version__ = "0.1.0"
__all__ = [
    "Application",
    "BaseContext",
    "BaseController",
    "BaseService",
    "ConfigurationError",
    "Context",
    "ConventionError",
    "HTTPError",
    "MethodNotAllowed",
    "ModuleRegistry",
    "NotFound",
    "Options",
    "PluginError",
    "RegistryFrozenError",
    "Roost",
    "RoostError",
    "get_context",
]

_ERRORS = frozenset(
    {
        "ConfigurationError",
        "ConventionError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "PluginError",
        "RegistryFrozenError",
        "RoostError",
    }
)

_CONTEXT = frozenset({"BaseContext", "BaseController", "BaseService", "Context", "get_context"})


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import roost`` fast; controller modules importing
    ``BaseController`` do not pull in the server stack.
    """
    if name == "Roost":
        from roost.runtime import Roost

        return Roost

    if name in _CONTEXT:
        import roost.context

        return getattr(roost.context, name)

    if name in _ERRORS:
        import roost.errors

        return getattr(roost.errors, name)

    if name == "Application":
        from roost.application import Application

        return Application

    if name == "ModuleRegistry":
        from roost.registry import ModuleRegistry

        return ModuleRegistry

    if name == "Options":
        from roost.config import Options

        return Options

    msg = f"module 'roost' has no attribute {name!r}"
    raise AttributeError(msg)
