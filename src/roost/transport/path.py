"""Path patterns using ``:name`` parameters.

``/users/:id`` matches ``/users/42`` with ``{"id": "42"}``. A prefix
pattern also matches every descendant path (``/users/42/posts``), which
is how ``use()`` layers scope themselves.
"""

import re
from dataclasses import dataclass
from urllib.parse import unquote


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a path pattern.

    Static: ``users`` (is_param=False)
    Param:  ``:id``   (is_param=True, value="id")
    """

    value: str
    is_param: bool = False


def parse_path(path: str) -> list[PathSegment]:
    """Parse a pattern into segments.

    Examples::

        "/"            -> []
        "/users"       -> [PathSegment("users")]
        "/users/:id"   -> [PathSegment("users"), PathSegment("id", is_param=True)]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith(":"):
            segments.append(PathSegment(part[1:], is_param=True))
        else:
            segments.append(PathSegment(part))
    return segments


def normalize(path: str) -> str:
    """Strip a trailing slash (except from ``/``)."""
    if len(path) > 1 and path.endswith("/"):
        return path.rstrip("/") or "/"
    return path or "/"


class PathPattern:
    """A compiled ``:name`` pattern.

    Args:
        path: The pattern.
        prefix: Match descendants too (``use`` layers).
    """

    __slots__ = ("_regex", "param_names", "path", "prefix")

    def __init__(self, path: str, *, prefix: bool = False) -> None:
        self.path = normalize(path)
        self.prefix = prefix
        segments = parse_path(self.path)
        self.param_names = tuple(s.value for s in segments if s.is_param)
        body = "".join(
            f"/(?P<{s.value}>[^/]+)" if s.is_param else "/" + re.escape(s.value) for s in segments
        )
        tail = "(?:/.*)?" if prefix else "/?"
        self._regex = re.compile(f"^{body}{tail}$")

    def match(self, path: str) -> dict[str, str] | None:
        """Return decoded params if ``path`` matches, else ``None``."""
        if not self.prefix and not self.param_names and normalize(path) == self.path:
            return {}
        found = self._regex.match(path)
        if found is None:
            return None
        return {name: unquote(value) for name, value in found.groupdict().items()}

    def __repr__(self) -> str:
        kind = "prefix" if self.prefix else "exact"
        return f"PathPattern({self.path!r}, {kind})"
