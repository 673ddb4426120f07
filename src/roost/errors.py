"""Roost exception hierarchy.

Shared across discovery, loading, the service container, the transport,
and the server lifecycle so every module raises and catches the same types.

Loading faults (discovery, import, shape, construction) are normally
*captured* as ``LoadOutcome`` values rather than raised; the classes here
are what ``LoadOutcome.raise_for_status()`` produces when a caller wants
an exception instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when server configuration is invalid.

    Typically raised by ``ServerConfig.__post_init__`` or by the
    service container when it is handed something that is not a service.
    """


class DiscoveryError(RoostError):
    """A directory layout does not follow the naming convention.

    Raised by the tree builder for unexpected files, subdirectories in
    compact mode, and malformed segment tokens.
    """

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ModuleImportError(RoostError):
    """A discovered module could not be imported."""

    def __init__(self, path: Path | str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to import {str(path)!r}{detail}")
        self.path = path
        self.cause = cause


class ShapeError(RoostError):
    """A module's export or members do not satisfy its kind's contract."""


class ConstructionError(RoostError):
    """A piece or service constructor raised."""

    def __init__(self, constructor: type, cause: BaseException) -> None:
        super().__init__(f"Constructing {constructor.__name__!r} failed: {cause}")
        self.constructor = constructor
        self.cause = cause


class CircularDependencyError(RoostError):
    """Two services depend on each other during construction.

    ``dependency`` is the constructor already on the construction stack;
    ``dependent`` is the one whose constructor tried to re-enter it.
    """

    def __init__(self, dependent: type, dependency: type) -> None:
        super().__init__(
            f"Circular dependency detected: '{dependent.__name__}' depends on "
            f"'{dependency.__name__}', which is still under construction"
        )
        self.dependent = dependent
        self.dependency = dependency


class ServiceNotRegisteredError(RoostError):
    """A service was requested that the container does not know about."""

    def __init__(self, constructor: type) -> None:
        super().__init__(
            f"The service {constructor.__name__!r} is not registered. Services are "
            "discovered from the 'services' directory or registered with "
            "Server.register_service()."
        )
        self.constructor = constructor


class LifecycleError(RoostError):
    """An operation was attempted in the wrong server state."""


class InitializationCancelled(LifecycleError):
    """``Server.initialize()`` was cancelled by a concurrent ``destroy()``."""


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An error that maps directly to an HTTP status code.

    Raised (or passed to ``next``) by handlers. The global fallback
    handler answers with this status and a JSON body.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    def payload(self) -> dict[str, Any]:
        """JSON body sent to the client for this error."""
        return {"status": self.status, "error": self.detail or f"Error {self.status}"}


class NotFound(HTTPError):  # noqa: N818
    """404: no handler answered the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: a route exists for the path but not for this HTTP method."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail or f"Method not allowed. Allowed methods: {allow_value}",
            headers=(("Allow", allow_value),),
        )


@dataclass(frozen=True, slots=True)
class ValidationError(HTTPError):
    """400: a request schema rejected the request.

    ``errors`` maps ``"<location>.<field>"`` to every message collected
    for that field; validation never stops at the first failure.
    """

    errors: dict[str, list[str]] = field(default_factory=dict)

    def payload(self) -> dict[str, Any]:
        return {"status": self.status, "error": self.detail, "errors": self.errors}

    @classmethod
    def from_errors(cls, errors: dict[str, list[str]]) -> ValidationError:
        count = sum(len(messages) for messages in errors.values())
        noun = "error" if count == 1 else "errors"
        return cls(status=400, detail=f"Request validation failed ({count} {noun})", errors=errors)


class RuntimeHandlerError(RoostError):
    """Wraps an unexpected exception raised inside a bound handler.

    The wrapped exception is available as ``cause`` (and ``__cause__``).
    """

    def __init__(self, method: str, path: str, cause: BaseException) -> None:
        super().__init__(f"Unhandled error in {method} {path}: {cause!r}")
        self.method = method
        self.path = path
        self.cause = cause
