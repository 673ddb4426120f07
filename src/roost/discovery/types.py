"""Data models for filesystem route discovery.

Immutable frozen dataclasses describing one discovered module file.
Built once per load cycle by the tree builder.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Segment:
    """One path segment.

    Static:  ``users``  (is_dynamic=False)
    Dynamic: ``[id]``   (is_dynamic=True, name="id")
    """

    name: str
    is_dynamic: bool = False

    @property
    def token(self) -> str:
        """Bracket rendering: ``[id]`` for dynamic segments."""
        return f"[{self.name}]" if self.is_dynamic else self.name

    @property
    def param(self) -> str:
        """Transport rendering: ``:id`` for dynamic segments."""
        return f":{self.name}" if self.is_dynamic else self.name


def render_path(segments: tuple[Segment, ...], *, transport: bool = False) -> str:
    """Join segments into an absolute path; zero segments is ``/``."""
    parts = [s.param if transport else s.token for s in segments]
    return "/" + "/".join(parts)


@dataclass(frozen=True, slots=True)
class RouteDescriptor:
    """A discovered module file and the route it anchors.

    ``token_path`` and ``transport_path`` are derived from ``segments``
    at construction, so both renderings always agree on segment count
    and dynamic positions.

    Attributes:
        absolute_path: Filesystem path of the module.
        relative_path: POSIX path relative to the scanned root. Unique
            per file and the sort key of a scan.
        filename: Base name of the module file.
        byte_size: File size from ``stat``.
        mime_type: Best-effort MIME type from the extension (diagnostics only).
        segments: Ordered path segments.
        token_path: e.g. ``/users/[id]``.
        transport_path: e.g. ``/users/:id``.
    """

    absolute_path: Path
    relative_path: str
    filename: str
    byte_size: int
    mime_type: str
    segments: tuple[Segment, ...]
    token_path: str = field(init=False)
    transport_path: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "token_path", render_path(self.segments))
        object.__setattr__(self, "transport_path", render_path(self.segments, transport=True))

    @property
    def is_dynamic(self) -> bool:
        """True if any segment is a request-time parameter."""
        return any(s.is_dynamic for s in self.segments)
