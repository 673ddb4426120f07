"""Capability contracts for discovered modules.

Every discovered module's ``default`` export is checked against one of
these base classes. Each carries a ``piece_kind`` tag that loaders use as
the runtime discriminant instead of walking the class hierarchy.

Handler members follow the transport's calling convention::

    class UsersController(Controller):
        def __init__(self, server):
            super().__init__(server)
            self.db = self.service(DatabaseService)

        async def GET(self, request, reply, next):
            return {"users": await self.db.all()}

        POST = [check_auth, create_user]

Functions listed in a class-level handler list are bound like methods
and receive the piece as their first argument. Wrap one in
``staticmethod`` to call it without a receiver.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from roost.errors import ShapeError

if TYPE_CHECKING:
    from roost.server import Server

S = TypeVar("S", bound="Service")

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")


class Piece:
    """Base for everything the server constructs from disk.

    Pieces are constructed with the owning server as their single
    argument and may resolve services while constructing.
    """

    piece_kind: ClassVar[str] = "piece"

    def __init__(self, server: "Server") -> None:
        self.server = server

    def service(self, cls: type[S]) -> S:
        """Resolve a service singleton, constructing it if needed."""
        return self.server.get_service(cls)

    def check_contract(self) -> None:
        """Hook run after construction. Raise ``ShapeError`` to reject."""


class Service(Piece):
    """A singleton shared across the server.

    Optional hooks, both synchronous:

    - ``on_init()`` runs once after every loading stage completes.
    - ``on_destroy()`` runs when the server shuts down.
    """

    piece_kind: ClassVar[str] = "service"


class Pipe(Piece):
    """A broad pre-filter applied to its path and every descendant."""

    piece_kind: ClassVar[str] = "pipe"

    handler: Any = None


class Middleware(Piece):
    """Path-scoped handlers run before the controller.

    A middleware declares ``handler`` (normal chain), ``errors`` (error
    chain), or both. Declaring neither fails construction.
    """

    piece_kind: ClassVar[str] = "middleware"

    handler: Any = None
    errors: Any = None

    def check_contract(self) -> None:
        if self.handler is None and self.errors is None:
            msg = "Invalid middleware: at least 'handler' or 'errors' must be defined."
            raise ShapeError(msg)


class Schema(Piece):
    """Per-verb request schemas validated ahead of the controller.

    Each verb attribute holds a mapping (or object) with any of
    ``params``, ``body``, ``headers``, ``query``.
    """

    piece_kind: ClassVar[str] = "schema"

    GET: Any = None
    POST: Any = None
    PUT: Any = None
    DELETE: Any = None
    PATCH: Any = None
    HEAD: Any = None
    OPTIONS: Any = None


class Controller(Piece):
    """Terminal per-verb handlers for a path."""

    piece_kind: ClassVar[str] = "controller"

    GET: Any = None
    POST: Any = None
    PUT: Any = None
    DELETE: Any = None
    PATCH: Any = None
    HEAD: Any = None
    OPTIONS: Any = None


def create_schema(verbs: Mapping[str, Any], *, name: str = "InlineSchema") -> type[Schema]:
    """Build a :class:`Schema` subclass from ``{verb: request_schema}``.

    Args:
        verbs: Mapping of HTTP verb (any case) to request schema.
        name: Class name, visible in diagnostics.

    Raises:
        ShapeError: If a key is not a recognised HTTP verb.
    """
    members: dict[str, Any] = {}
    for verb, request_schema in verbs.items():
        upper = verb.upper()
        if upper not in HTTP_METHODS:
            msg = f"Unknown HTTP method {verb!r} in schema"
            raise ShapeError(msg)
        members[upper] = request_schema
    return type(name, (Schema,), members)


BASES: dict[str, type[Piece]] = {
    "service": Service,
    "pipe": Pipe,
    "schema": Schema,
    "middleware": Middleware,
    "controller": Controller,
}


def is_piece_class(value: object, kind: str) -> bool:
    """True if ``value`` is a strict subclass of the base for ``kind``.

    The ``piece_kind`` tag is the discriminant; the base class itself
    does not count as an implementation.
    """
    base = BASES[kind]
    return (
        isinstance(value, type)
        and issubclass(value, Piece)
        and value.piece_kind == kind
        and value is not base
    )
