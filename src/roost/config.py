"""Runtime options.

Defaults are computed from ``(root_path, name, debug)``, deep-merged with
the caller's overrides, then frozen into a tree of dataclasses. Options are
immutable after creation, IDE-autocompletable, no string-key dict lookups.

Merge rules:

- mappings merge recursively, the caller's leaves win
- sequences (``middleware_order``) are replaced wholesale, never merged
  element by element
- ``custom_logger`` never takes part in the merge. It is usually a live
  logger instance, so it is detached first and the same reference is put
  back into both the merged options and the caller's mapping.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any

from roost.errors import ConfigurationError

SUPPORTED_SERVER_TYPE = "asgi"


@dataclass(frozen=True, slots=True)
class LoggerOptions:
    """Settings for the runtime's stdlib logger."""

    name: str = "roost"
    level: str = "info"
    access_log: bool = True


@dataclass(frozen=True, slots=True)
class PluginOptions:
    """Plugin phase settings.

    ``timeout`` is applied to each plugin; ``None`` waits forever.
    """

    timeout: float | None = None
    freeze_registry: bool = True


@dataclass(frozen=True, slots=True)
class Directories:
    """Module roots, resolved against ``Options.root_path``."""

    controllers: Path
    services: Path
    middlewares: Path
    utils: Path
    glues: Path


@dataclass(frozen=True, slots=True)
class Options:
    """Canonical runtime configuration. Immutable after creation."""

    root_path: Path
    name: str
    directories: Directories
    debug: bool = False
    server_type: str = SUPPORTED_SERVER_TYPE
    logger: LoggerOptions = field(default_factory=LoggerOptions)
    custom_logger: Any = None
    plugins: PluginOptions = field(default_factory=PluginOptions)
    middleware_order: tuple[str, ...] = ()
    middlewares: Mapping[str, Mapping[str, Any]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    request_id_header: str = "X-Request-Id"


def default_options(root_path: str | Path, name: str, debug: bool) -> dict[str, Any]:
    """Return the default option tree as plain, mergeable data."""
    root = Path(root_path)
    return {
        "root_path": root,
        "name": name,
        "debug": debug,
        "server_type": SUPPORTED_SERVER_TYPE,
        "logger": {
            "name": name,
            "level": "debug" if debug else "info",
            "access_log": True,
        },
        "custom_logger": None,
        "plugins": {
            "timeout": None,
            "freeze_registry": True,
        },
        "directories": {
            "controllers": root / "controllers",
            "services": root / "services",
            "middlewares": root / "middlewares",
            "utils": root / "utils",
            "glues": root / "glues",
        },
        "middleware_order": [],
        "middlewares": {},
        "request_id_header": "X-Request-Id",
    }


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *override* into a copy of *base*.

    Nested mappings merge key by key; any other value from *override*
    (sequences included) replaces the value in *base*. Neither input is
    mutated.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_options(name: str, options: MutableMapping[str, Any] | None = None) -> Options:
    """Build the canonical :class:`Options` for a runtime called *name*.

    ``root_path`` defaults to the directory of the entry script. After the
    call, ``options["custom_logger"]`` and the returned
    ``Options.custom_logger`` are the same object (``None`` when absent).
    """
    if options is None:
        options = {}
    if not isinstance(options, MutableMapping):
        msg = f"options must be a mapping, got {type(options).__name__}"
        raise ConfigurationError(msg)

    root_path = options.get("root_path") or _entry_dir()
    defaults = default_options(root_path, name, bool(options.get("debug", False)))

    custom_logger = options.pop("custom_logger", None)
    merged = deep_merge(defaults, options)
    merged["custom_logger"] = options["custom_logger"] = custom_logger

    return _build_options(merged)


def _entry_dir() -> Path:
    """Directory of the ``__main__`` script, or the working directory."""
    main = sys.modules.get("__main__")
    filename = getattr(main, "__file__", None)
    if filename:
        return Path(filename).resolve().parent
    return Path.cwd()


def _build_options(merged: Mapping[str, Any]) -> Options:
    _reject_unknown(Options, merged, "options")
    root = Path(merged["root_path"])

    directories = merged["directories"]
    _reject_unknown(Directories, directories, "options.directories")
    resolved = {key: _resolve(root, value) for key, value in directories.items()}

    order = merged["middleware_order"]
    if isinstance(order, str) or not isinstance(order, (list, tuple)):
        msg = "options.middleware_order must be a list of middleware names"
        raise ConfigurationError(msg)

    middlewares = merged["middlewares"]
    if not isinstance(middlewares, Mapping):
        msg = "options.middlewares must be a mapping of middleware name to settings"
        raise ConfigurationError(msg)

    return Options(
        root_path=root,
        name=str(merged["name"]),
        directories=Directories(**resolved),
        debug=bool(merged["debug"]),
        server_type=str(merged["server_type"]),
        logger=_section(LoggerOptions, merged["logger"], "options.logger"),
        custom_logger=merged["custom_logger"],
        plugins=_section(PluginOptions, merged["plugins"], "options.plugins"),
        middleware_order=tuple(order),
        middlewares=MappingProxyType(
            {key: MappingProxyType(dict(value)) for key, value in middlewares.items()}
        ),
        request_id_header=str(merged["request_id_header"]),
    )


def _section(cls: type, data: Any, label: str) -> Any:
    if not isinstance(data, Mapping):
        msg = f"{label} must be a mapping, got {type(data).__name__}"
        raise ConfigurationError(msg)
    _reject_unknown(cls, data, label)
    return cls(**data)


def _reject_unknown(cls: type, data: Mapping[str, Any], label: str) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        msg = f"Unknown {label} key(s): {', '.join(unknown)}"
        raise ConfigurationError(msg)


def _resolve(root: Path, value: str | Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else root / path
