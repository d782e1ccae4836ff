"""Module registry owned by the runtime.

Buckets are keyed by category (``"controller"``, ``"service"``, or any
name a plugin chooses). A bucket is either a name -> module mapping, or an
ordered sequence where order carries meaning (``"middleware_order"``).

The registry is written during boot and frozen once the plugin phase
completes. Later writes raise :class:`RegistryFrozenError` unless they run
inside ``unlocked()``::

    with runtime.module.unlocked():
        runtime.set_module("service", "cache", CacheService)

There is no internal lock: concurrent writers must serialize themselves.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any

from roost.errors import RegistryFrozenError


class ModuleRegistry(Mapping[str, Any]):
    """Mapping of category -> bucket.

    Reads return read-only views: a ``MappingProxyType`` for mapping
    buckets, a fresh list for sequence buckets.
    """

    __slots__ = ("_buckets", "_frozen")

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, Any] | list[Any]] = {}
        self._frozen = False

    # -- Mapping --

    def __getitem__(self, category: str) -> Any:
        bucket = self._buckets[category]
        if isinstance(bucket, list):
            return list(bucket)
        return MappingProxyType(bucket)

    def __iter__(self) -> Iterator[str]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"<ModuleRegistry {state} {sorted(self._buckets)}>"

    # -- Writes --

    def merge(self, category: str, modules: Any) -> None:
        """Merge every entry of *modules* into the *category* bucket.

        Anything that is not a mapping is ignored without error.
        """
        if not isinstance(modules, Mapping):
            return
        self._check_writable(category)
        self._bucket(category)
        for key, value in modules.items():
            self.set(category, key, value)

    def set(self, category: str, key: str, value: Any) -> None:
        """Insert or overwrite one entry, creating the bucket if needed."""
        self._check_writable(category)
        self._bucket(category)[key] = value

    def set_array(self, category: str, modules: Iterable[Any]) -> None:
        """Replace the *category* bucket with an ordered sequence, as given."""
        self._check_writable(category)
        self._buckets[category] = list(modules)

    # -- Freezing --

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    @contextmanager
    def unlocked(self) -> Iterator[ModuleRegistry]:
        """Allow writes for the duration of the ``with`` block."""
        previous = self._frozen
        self._frozen = False
        try:
            yield self
        finally:
            self._frozen = previous

    # -- Internal --

    def _bucket(self, category: str) -> dict[str, Any]:
        bucket = self._buckets.get(category)
        if bucket is None:
            bucket = self._buckets[category] = {}
        elif isinstance(bucket, list):
            msg = f"Registry bucket {category!r} holds an ordered sequence, not a mapping"
            raise TypeError(msg)
        return bucket

    def _check_writable(self, category: str) -> None:
        if self._frozen:
            msg = (
                f"Cannot modify registry bucket {category!r} after boot. "
                "Wrap late writes in `registry.unlocked()`."
            )
            raise RegistryFrozenError(msg)
