"""Filesystem route discovery.

Walks a directory under one of two naming conventions and produces an
ordered list of :class:`RouteDescriptor` objects:

- **tree** (hierarchical): every directory is a path segment and a
  ``<nomenclature>.py`` file anchors a route at that directory.
  Directory names wrapped in ``[brackets]`` become dynamic segments.
- **compact** (flat): one directory level. File names carry the path as
  dot-separated tokens: ``users.[id].controller.py`` is ``/users/[id]``,
  ``@.controller.py`` (or bare ``controller.py``) is ``/``.

Entries whose names start with ``_`` or ``.`` are ignored in both modes,
as are ``__pycache__`` directories.
"""

import mimetypes
import re
from pathlib import Path

from roost.discovery.types import RouteDescriptor, Segment
from roost.errors import DiscoveryError

NOMENCLATURES: tuple[str, ...] = ("service", "pipe", "schema", "middleware", "controller")

# Files anchoring some other kind. They share the ``app/`` tree with
# this kind in hierarchical mode and are skipped rather than rejected.
_ANY_NOMENCLATURE_RE = re.compile(rf"^(?:{'|'.join(NOMENCLATURES)})\.py$")

# [param] tokens and directory names; the name must be an identifier
_DYNAMIC_RE = re.compile(r"^\[([A-Za-z_][A-Za-z0-9_]*)\]$")

_ROOT_TOKEN = "@"


def scan(root_dir: str | Path, nomenclature: str, mode: str) -> list[RouteDescriptor]:
    """Discover every module of one kind below ``root_dir``.

    Args:
        root_dir: Directory to walk. A missing directory yields ``[]``.
        nomenclature: Kind token (``controller``, ``service``, ...).
        mode: ``"tree"`` or ``"compact"``.

    Returns:
        Descriptors sorted by relative path, descending.

    Raises:
        DiscoveryError: On unexpected files, subdirectories in compact
            mode, or malformed segment tokens.
    """
    root = Path(root_dir).resolve()
    if not root.is_dir():
        return []

    routes: list[RouteDescriptor] = []
    if mode == "tree":
        _walk_tree(root, root, nomenclature, segments=(), routes=routes)
    elif mode == "compact":
        _scan_compact(root, nomenclature, routes)
    else:
        msg = f"Unknown discovery mode {mode!r}"
        raise DiscoveryError(msg, path=root)
    return sort_routes(routes)


def sort_routes(routes: list[RouteDescriptor]) -> list[RouteDescriptor]:
    """Order descriptors by ``relative_path``, descending.

    The order is total (relative paths are unique per file) and
    idempotent, so it doubles as the registration order downstream.
    """
    return sorted(routes, key=lambda r: r.relative_path, reverse=True)


def parse_token(token: str, *, path: Path) -> Segment:
    """Parse one directory name or dotted file-name token into a segment."""
    if not token:
        msg = f"Empty path segment in {path.name!r}"
        raise DiscoveryError(msg, path=path)
    if token.startswith("[") or token.endswith("]"):
        match = _DYNAMIC_RE.match(token)
        if match is None:
            msg = f"Malformed dynamic segment {token!r} in {path.name!r}"
            raise DiscoveryError(msg, path=path)
        return Segment(match.group(1), is_dynamic=True)
    return Segment(token)


def _ignored(entry: Path) -> bool:
    return entry.name.startswith(("_", "."))


def _walk_tree(
    directory: Path,
    root: Path,
    nomenclature: str,
    *,
    segments: tuple[Segment, ...],
    routes: list[RouteDescriptor],
) -> None:
    """Recursively walk a directory, anchoring routes at nomenclature files.

    Args:
        directory: Current directory being walked.
        root: Scan root (for computing relative paths).
        nomenclature: Kind token.
        segments: Path segments accumulated so far.
        routes: Accumulator for discovered routes.
    """
    anchor = f"{nomenclature}.py"
    for item in sorted(directory.iterdir()):
        if _ignored(item):
            continue
        if item.is_dir():
            segment = parse_token(item.name, path=item)
            _walk_tree(item, root, nomenclature, segments=(*segments, segment), routes=routes)
            continue
        if item.name == anchor:
            routes.append(_describe(item, root, segments))
            continue
        if _ANY_NOMENCLATURE_RE.match(item.name):
            continue
        msg = f"Unexpected file {item.relative_to(root).as_posix()!r}; expected {anchor!r}"
        raise DiscoveryError(msg, path=item)


def _scan_compact(root: Path, nomenclature: str, routes: list[RouteDescriptor]) -> None:
    file_re = re.compile(rf"^(?:(?P<prefix>.+)\.)?{re.escape(nomenclature)}\.py$")
    for item in sorted(root.iterdir()):
        if _ignored(item):
            continue
        if item.is_dir():
            msg = f"Subdirectory {item.name!r} is not allowed in compact mode"
            raise DiscoveryError(msg, path=item)
        match = file_re.match(item.name)
        if match is None:
            msg = f"Unexpected file {item.name!r}; expected '<segments>.{nomenclature}.py'"
            raise DiscoveryError(msg, path=item)
        routes.append(_describe(item, root, _compact_segments(match.group("prefix"), item)))


def _compact_segments(prefix: str | None, path: Path) -> tuple[Segment, ...]:
    """Split a compact file-name prefix into segments.

    ``None`` (bare ``controller.py``) and the lone ``@`` token are the root.
    """
    if prefix is None or prefix == _ROOT_TOKEN:
        return ()
    tokens = prefix.split(".")
    if _ROOT_TOKEN in tokens:
        msg = f"'@' must be the only token in {path.name!r}"
        raise DiscoveryError(msg, path=path)
    return tuple(parse_token(token, path=path) for token in tokens)


def _describe(file: Path, root: Path, segments: tuple[Segment, ...]) -> RouteDescriptor:
    seen: set[str] = set()
    for segment in segments:
        if not segment.is_dynamic:
            continue
        if segment.name in seen:
            msg = f"Dynamic segment [{segment.name}] repeats in {file.relative_to(root).as_posix()!r}"
            raise DiscoveryError(msg, path=file)
        seen.add(segment.name)
    mime_type, _ = mimetypes.guess_type(file.name)
    return RouteDescriptor(
        absolute_path=file,
        relative_path=file.relative_to(root).as_posix(),
        filename=file.name,
        byte_size=file.stat().st_size,
        mime_type=mime_type or "application/octet-stream",
        segments=segments,
    )
