"""Filesystem naming conventions, as pure functions.

The loader derives a controller's route and its expected class name from
the file's position under the controllers root::

    /user/profile.py  ->  route "/user/profile", class "UserProfile"
    /user/index.py    ->  route "/user/",        class "UserIndex"
    /index.py         ->  route "/",             class "Index"

Nothing here touches the disk, so every rule can be tested on plain
strings.
"""

from __future__ import annotations

import inspect
import re
from pathlib import PurePosixPath
from typing import Any

SOURCE_SUFFIX = ".py"

# Members every controller, class module and context must expose
CONTEXT_CAPABILITY = ("ctx", "service", "runtime")

# The character following each slash
_SLASH_CHAR_RE = re.compile(r"/(.)")

# Trailing /index segment
_INDEX_RE = re.compile(r"/index$")


def is_source_file(name: str) -> bool:
    """True for ``.py`` files that are not private (``_``) or hidden (``.``)."""
    return name.endswith(SOURCE_SUFFIX) and not name.startswith(("_", "."))


def is_module_dir(name: str) -> bool:
    """True for directories the loader descends into or loads as a package.

    Private and hidden directories (``__pycache__``, ``.git``) are skipped.
    """
    return not name.startswith(("_", "."))


def module_name(name: str) -> str:
    """Registry name of a first-level entry: file stem, or directory name."""
    if name.endswith(SOURCE_SUFFIX):
        return name[: -len(SOURCE_SUFFIX)]
    return name


def route_path(relative: str | PurePosixPath) -> str:
    """Route path of a controller file, relative to the controllers root.

    Slash segments are kept, the source suffix is dropped and the result
    always starts with ``/``::

        route_path("user/profile.py") == "/user/profile"
    """
    text = PurePosixPath(relative).as_posix()
    if text.endswith(SOURCE_SUFFIX):
        text = text[: -len(SOURCE_SUFFIX)]
    if not text.startswith("/"):
        text = "/" + text
    return text


def controller_class_name(route: str) -> str:
    """Class name a controller at *route* must carry.

    Upper-cases the character after every slash, then strips the slashes::

        controller_class_name("/user/profile") == "UserProfile"
    """
    camel = _SLASH_CHAR_RE.sub(lambda m: m.group(1).upper(), route)
    return camel.replace("/", "")


def controller_route(route: str) -> str:
    """Collapse a trailing ``/index`` segment to ``/``."""
    return _INDEX_RE.sub("/", route)


def base_type_name(category: str) -> str:
    """Name of the base class expected for a class-module *category*.

    ``base_type_name("service") == "BaseService"``
    """
    return "Base" + category[:1].upper() + category[1:]


def has_context_capability(obj: Any) -> bool:
    """Structural check for the base-context capability.

    *obj* must be a class exposing every member of
    :data:`CONTEXT_CAPABILITY`. No particular base class is required;
    :class:`roost.context.BaseContext` is simply the stock implementation.
    """
    if not inspect.isclass(obj):
        return False
    return all(hasattr(obj, member) for member in CONTEXT_CAPABILITY)
