"""Request schemas: one sub-schema per request location."""

import inspect
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from roost.errors import ShapeError
from roost.validation.fields import Fields

LOCATIONS: tuple[str, ...] = ("params", "body", "headers", "query")


class SubSchema(Protocol):
    """Anything with ``validate(value)`` returning an object with ``error``."""

    def validate(self, value: Any) -> Any: ...


@dataclass(frozen=True, slots=True)
class RequestSchema:
    """Validated view of one verb's request schema.

    Falsy when no location carries a usable sub-schema.
    """

    params: SubSchema | None = None
    body: SubSchema | None = None
    headers: SubSchema | None = None
    query: SubSchema | None = None

    def locations(self) -> Iterator[tuple[str, SubSchema]]:
        """Yield ``(location, sub_schema)`` for every declared location."""
        for name in LOCATIONS:
            sub = getattr(self, name)
            if sub is not None:
                yield name, sub

    def __bool__(self) -> bool:
        return any(True for _ in self.locations())


def _usable(sub: Any) -> SubSchema | None:
    if sub is None:
        return None
    if callable(getattr(sub, "validate", None)):
        return sub
    # Plain ``{"field": [rules]}`` mappings are shorthand for Fields;
    # an empty one validates nothing
    if isinstance(sub, Mapping):
        return Fields(dict(sub)) if sub else None
    return None


def build_request_schema(value: Any) -> RequestSchema:
    """Normalise a verb's schema value.

    ``value`` may be a mapping or any object (including a namespace
    class) exposing ``params``, ``body``, ``headers``, or ``query``.

    Raises:
        ShapeError: If ``value`` is a scalar, a sequence, or a function.
    """
    if isinstance(value, (str, bytes, int, float, bool, list, tuple, set)) or inspect.isroutine(value):
        msg = f"Request schema has invalid type {type(value).__name__!r}"
        raise ShapeError(msg)
    if isinstance(value, Mapping):
        found = {name: _usable(value.get(name)) for name in LOCATIONS}
    else:
        found = {name: _usable(getattr(value, name, None)) for name in LOCATIONS}
    return RequestSchema(**found)
