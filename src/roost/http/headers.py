"""Case-insensitive HTTP request headers.

Built from the raw ASGI byte pairs once; names are lower-cased and
values decoded as latin-1.
"""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Read-only, case-insensitive request headers.

    ``headers["X-Token"]`` returns the first value; ``get_list`` returns
    every value sent under that name.
    """

    __slots__ = ("_raw", "_values")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        self._values: dict[str, list[str]] = {}
        for name, value in raw:
            self._values.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))

    def __getitem__(self, key: str) -> str:
        return self._values[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({self.to_dict()!r})"

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._values.get(key.lower(), ()))

    def to_dict(self) -> dict[str, str]:
        """Lower-cased name to first value; the shape header schemas validate."""
        return {name: values[0] for name, values in self._values.items()}

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        return self._raw
