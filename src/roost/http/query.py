"""Query string parameters, parsed once per request."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Read-only view of a query string.

    Repeated keys keep every value in order: ``q["tag"]`` is the first,
    ``q.get_list("tag")`` returns all of them. Blank values are kept.
    """

    __slots__ = ("_raw", "_values")

    def __init__(self, query_string: bytes = b"") -> None:
        values: dict[str, list[str]] = {}
        for key, value in parse_qsl(query_string.decode("latin-1"), keep_blank_values=True):
            values.setdefault(key, []).append(value)
        self._raw = query_string
        self._values = values

    def __getitem__(self, key: str) -> str:
        return self._values[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw.decode('latin-1')!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._values.get(key, ()))

    @property
    def raw(self) -> bytes:
        """The undecoded query string, as received."""
        return self._raw
