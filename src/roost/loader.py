"""Convention-based module loader.

Turns directory trees into validated collections:

- ``load_controller(root)``: recursive walk, returns route -> controller
- ``load_module(type, root)``: first-level entries, returns name -> function
- ``load_class_module(category, root)``: first-level entries, returns
  name -> class

Every convention violation raises :class:`ConventionError` naming the
offending path; loading stops at the first one. The loader keeps no state
between calls and re-reads the disk every time.

A module's exported value is the single name listed in its ``__all__``
or, without ``__all__``, the single public class or function defined in
the module itself. Imports do not count, except that a package directory
(loaded through its ``__init__.py``) may re-export from its own
submodules.
"""

from __future__ import annotations

import hashlib
import importlib.util
import inspect
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any

from roost.conventions import (
    base_type_name,
    controller_class_name,
    controller_route,
    has_context_capability,
    is_module_dir,
    is_source_file,
    module_name,
    route_path,
)
from roost.errors import ConventionError

logger = logging.getLogger("roost.loader")

_UNSAFE_CHARS_RE = re.compile(r"\W")


@dataclass(frozen=True, slots=True)
class ModuleDescriptor:
    """A first-level entry under a module root."""

    name: str
    path: Path


class Loader:
    """Stateless filesystem loader. Use the module-level ``loader``."""

    __slots__ = ()

    def load_controller(self, root: str | Path) -> dict[str, type]:
        """Load every controller under *root*, keyed by route path.

        The directory structure is part of the route: ``user/profile.py``
        must export ``UserProfile`` and serves ``/user/profile``.
        """
        root = Path(root)
        routes: dict[str, type] = {}
        for file in _walk_sources(root):
            relative = file.relative_to(root).as_posix()
            controller = _load_export(file, "controller", relative)
            if not has_context_capability(controller):
                msg = f"[controller] must export a subclass of roost.BaseController in path: {file}"
                raise ConventionError(msg)

            route = route_path(relative)
            expected = controller_class_name(route)
            if controller.__name__ != expected:
                msg = (
                    f"controller class name should be {expected!r} "
                    f"(CamelCase, matching the route path) in path: {file}"
                )
                raise ConventionError(msg)

            routes[controller_route(route)] = controller
            logger.debug("controller %s -> %s", controller_route(route), file)
        return routes

    def load_module(self, type: str, root: str | Path) -> dict[str, Any]:
        """Load the first-level function modules under *root*."""
        modules: dict[str, Any] = {}
        for desc in self.module_descriptors(root):
            mod = _load_export(desc.path, type, desc.name)
            if not callable(mod):
                msg = f"[{type}] must export a function in path: {desc.path}"
                raise ConventionError(msg)
            modules[desc.name] = mod
        return modules

    def load_class_module(self, category: str, root: str | Path) -> dict[str, type]:
        """Load the first-level class modules under *root*, e.g. services."""
        modules: dict[str, type] = {}
        for desc in self.module_descriptors(root):
            class_module = _load_export(desc.path, category, desc.name)
            if not callable(class_module):
                msg = f"[{category}] must export a class in path: {desc.path}"
                raise ConventionError(msg)
            if not has_context_capability(class_module):
                msg = (
                    f"[{category}] must export a subclass of "
                    f"roost.{base_type_name(category)} in path: {desc.path}"
                )
                raise ConventionError(msg)
            modules[desc.name] = class_module
        return modules

    def module_descriptors(self, root: str | Path) -> list[ModuleDescriptor]:
        """List the loadable first-level entries of *root*.

        Source files and package directories are included; a missing root
        yields nothing. Entries are sorted by name, but callers should not
        depend on the order.
        """
        root = Path(root)
        if not root.is_dir():
            return []
        descriptions: list[ModuleDescriptor] = []
        for item in sorted(root.iterdir()):
            if item.is_file() and is_source_file(item.name):
                descriptions.append(ModuleDescriptor(module_name(item.name), item))
            elif item.is_dir() and is_module_dir(item.name):
                descriptions.append(ModuleDescriptor(item.name, item))
        return descriptions


loader = Loader()


def _walk_sources(directory: Path) -> list[Path]:
    """Every source file below *directory*, depth-first, sorted per level."""
    if not directory.is_dir():
        return []
    files: list[Path] = []
    for item in sorted(directory.iterdir()):
        if item.is_dir():
            if is_module_dir(item.name):
                files.extend(_walk_sources(item))
        elif item.is_file() and is_source_file(item.name):
            files.append(item)
    return files


def _load_export(path: Path, category: str, name: str) -> Any:
    module = _import_path(path, _synthetic_name(path, category, name))
    return _resolve_export(module, path)


def _synthetic_name(path: Path, category: str, name: str) -> str:
    """Unique sys.modules key for *path*; readable prefix, path digest suffix."""
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:10]
    return f"_roost_{category}_{_UNSAFE_CHARS_RE.sub('_', name)}_{digest}"


def _import_path(path: Path, name: str) -> ModuleType:
    """Execute the module at *path* (a file, or a package directory)."""
    if path.is_dir():
        init = path / "__init__.py"
        if not init.is_file():
            msg = f"module directory has no __init__.py in path: {path}"
            raise ConventionError(msg)
        spec = importlib.util.spec_from_file_location(
            name, init, submodule_search_locations=[str(path)]
        )
    else:
        spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        msg = f"cannot load module in path: {path}"
        raise ConventionError(msg)

    module = importlib.util.module_from_spec(spec)
    # Registered before execution so dataclasses and relative imports resolve
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module


def _resolve_export(module: ModuleType, path: Path) -> Any:
    """The module's exported value, or ``None`` when it defines nothing."""
    exported = getattr(module, "__all__", None)
    if exported is not None:
        names = list(exported)
        if len(names) != 1:
            msg = f"__all__ must list exactly one export, found {names} in path: {path}"
            raise ConventionError(msg)
        try:
            return getattr(module, names[0])
        except AttributeError:
            msg = f"__all__ names {names[0]!r} but the module does not define it in path: {path}"
            raise ConventionError(msg) from None

    candidates = [
        value
        for key, value in vars(module).items()
        if not key.startswith("_")
        and (inspect.isclass(value) or inspect.isfunction(value))
        and _defined_in(value, module)
    ]
    if len(candidates) > 1:
        found = sorted(value.__name__ for value in candidates)
        msg = (
            f"ambiguous export {found}: define one public class or function, "
            f"or list it in __all__, in path: {path}"
        )
        raise ConventionError(msg)
    return candidates[0] if candidates else None


def _defined_in(value: Any, module: ModuleType) -> bool:
    """True when *value* comes from *module*, or from a submodule of a package."""
    origin = value.__module__
    if origin == module.__name__:
        return True
    return hasattr(module, "__path__") and origin.startswith(module.__name__ + ".")
