"""Case-insensitive request headers."""

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Read-only headers built from ASGI ``(name, value)`` byte pairs.

    Names are folded to lowercase once, when the headers are built.
    ``headers["x-tag"]`` is the first value sent for a name and
    ``get_list("x-tag")`` every value, in arrival order. ``raw`` keeps the
    pairs exactly as received.
    """

    __slots__ = ("_index", "_raw")

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        pairs = tuple((bytes(name), bytes(value)) for name, value in raw)
        index: dict[str, list[str]] = {}
        for name, value in pairs:
            index.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        self._raw = pairs
        self._index = index

    @classmethod
    def from_mapping(cls, headers: Mapping[str, object]) -> "Headers":
        """Build headers from ``{name: value}``, e.g. for synthetic requests."""
        return cls(
            (name.lower().encode("latin-1"), str(value).encode("latin-1"))
            for name, value in headers.items()
        )

    def __getitem__(self, key: str) -> str:
        try:
            return self._index[key.lower()][0]
        except KeyError:
            raise KeyError(key) from None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"Headers({self._index!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._index.get(key.lower(), ()))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        return self._raw
