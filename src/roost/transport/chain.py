"""Ordered handler chain: the request-dispatch half of the transport.

Layers run in registration order. ``use()`` layers are prefix-scoped and
match every method; verb layers match one method on one exact path.

Handlers take ``(request, reply, next)``; error handlers take
``(error, request, reply, next)``. While no error is pending only normal
handlers run. Once a handler raises or calls ``next(error)``, only error
handlers run until one calls ``next()`` without an error.

A handler ends the chain by finishing the reply, by returning a value
(dicts and lists are sent as JSON, strings as text), or by simply not
calling ``next``. A chain that ends with nothing sent answers 404, or
405 when the path exists for other methods.
"""

import logging
from dataclasses import dataclass
from typing import Any

from roost._internal.asgi import Receive, Scope, Send
from roost._internal.invoke import arity, capacity, invoke
from roost._internal.types import Handler
from roost.errors import HTTPError, MethodNotAllowed, NotFound, RuntimeHandlerError
from roost.http.reply import Reply
from roost.http.request import Request
from roost.pieces import HTTP_METHODS
from roost.transport.path import PathPattern
from roost.transport.sender import send_reply

logger = logging.getLogger("roost.transport")

ERROR_ARITY = 4


def is_error_handler(handler: Handler) -> bool:
    """Error handlers declare exactly four positional parameters."""
    try:
        return arity(handler) == ERROR_ARITY
    except (ValueError, TypeError):
        return False


@dataclass(frozen=True, slots=True)
class Layer:
    """One registration: a pattern, an optional method, and its handlers."""

    pattern: PathPattern
    method: str | None
    handlers: tuple[tuple[Handler, bool, int | None], ...]

    def match(self, method: str, path: str) -> dict[str, str] | None:
        if self.method is not None and self.method != method:
            if not (method == "HEAD" and self.method == "GET"):
                return None
        return self.pattern.match(path)


class _Next:
    """The ``next`` continuation handed to one handler invocation."""

    __slots__ = ("called", "error")

    def __init__(self) -> None:
        self.called = False
        self.error: BaseException | None = None

    def __call__(self, error: Any = None) -> None:
        self.called = True
        if error is None or isinstance(error, BaseException):
            self.error = error
        else:
            self.error = RuntimeError(str(error))


def respond_with_result(reply: Reply, result: Any) -> None:
    """Send a handler's return value."""
    if isinstance(result, Reply):
        return
    if isinstance(result, (dict, list)):
        reply.json(result)
    elif isinstance(result, bytes):
        reply.send(result, "application/octet-stream")
    else:
        reply.text(str(result))


def reply_with_error(reply: Reply, error: BaseException) -> None:
    """Answer an unhandled error: HTTP errors keep their status, the rest is 500."""
    if isinstance(error, HTTPError):
        for name, value in error.headers:
            reply.header(name, value)
        reply.json(error.payload(), status=error.status)
    else:
        reply.json({"status": 500, "error": "Internal Server Error"}, status=500)


class Transport:
    """An ASGI application built from an ordered list of layers.

    Usage::

        transport = Transport()
        transport.use("/", log_request)
        transport.get("/users/:id", load_user, show_user)
        transport.use("/", handle_errors)
    """

    def __init__(self) -> None:
        self._layers: list[Layer] = []
        self.accepting = False

    @property
    def layers(self) -> tuple[Layer, ...]:
        return tuple(self._layers)

    def reset(self) -> None:
        """Drop every layer and stop accepting requests."""
        self._layers.clear()
        self.accepting = False

    # -- Registration --

    def _add(self, path: str, method: str | None, handlers: tuple[Handler, ...]) -> None:
        if not handlers:
            msg = f"No handlers given for {path!r}"
            raise ValueError(msg)
        pattern = PathPattern(path, prefix=method is None)
        tagged = tuple((h, is_error_handler(h), capacity(h)) for h in handlers)
        self._layers.append(Layer(pattern=pattern, method=method, handlers=tagged))

    def use(self, path: str, *handlers: Handler) -> None:
        """Register prefix-scoped handlers for every method."""
        self._add(path, None, handlers)

    def route(self, method: str, path: str, *handlers: Handler) -> None:
        """Register exact-path handlers for one method."""
        upper = method.upper()
        if upper not in HTTP_METHODS:
            msg = f"Unknown HTTP method {method!r}"
            raise ValueError(msg)
        self._add(path, upper, handlers)

    def get(self, path: str, *handlers: Handler) -> None:
        self.route("GET", path, *handlers)

    def post(self, path: str, *handlers: Handler) -> None:
        self.route("POST", path, *handlers)

    def put(self, path: str, *handlers: Handler) -> None:
        self.route("PUT", path, *handlers)

    def delete(self, path: str, *handlers: Handler) -> None:
        self.route("DELETE", path, *handlers)

    def patch(self, path: str, *handlers: Handler) -> None:
        self.route("PATCH", path, *handlers)

    def head(self, path: str, *handlers: Handler) -> None:
        self.route("HEAD", path, *handlers)

    def options(self, path: str, *handlers: Handler) -> None:
        self.route("OPTIONS", path, *handlers)

    # -- Dispatch --

    async def handle(self, request: Request, reply: Reply) -> None:
        """Run the chain for one request and leave ``reply`` finished."""
        error: BaseException | None = None
        allowed: set[str] = set()
        stopped = False

        for layer in self._layers:
            params = layer.match(request.method, request.path)
            if params is None:
                if layer.method is not None and layer.pattern.match(request.path) is not None:
                    allowed.add(layer.method)
                continue
            for handler, handles_errors, limit in layer.handlers:
                if handles_errors != (error is not None):
                    continue
                request.params = params
                nxt = _Next()
                args = (error, request, reply, nxt) if handles_errors else (request, reply, nxt)
                if limit is not None:
                    args = args[:limit]
                try:
                    result = await invoke(handler, *args)
                except HTTPError as exc:
                    error = exc
                    continue
                except Exception as exc:
                    error = RuntimeHandlerError(request.method, request.path, exc)
                    error.__cause__ = exc
                    continue
                if result is not None and not reply.sent:
                    respond_with_result(reply, result)
                if not nxt.called:
                    stopped = True
                    break
                error = nxt.error
            if stopped:
                break

        if reply.sent:
            return
        if error is not None:
            if not isinstance(error, HTTPError):
                logger.error("Unhandled error for %s %s", request.method, request.path, exc_info=error)
            reply_with_error(reply, error)
        elif allowed:
            reply_with_error(reply, MethodNotAllowed(frozenset(allowed)))
        else:
            reply_with_error(reply, NotFound())

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return
        if scope["type"] != "http":
            msg = f"Unsupported ASGI scope type {scope['type']!r}"
            raise RuntimeError(msg)

        request = Request.from_asgi(scope, receive)
        reply = Reply()
        if not self.accepting:
            reply.json({"status": 503, "error": "Server is not running"}, status=503)
        else:
            await self.handle(request, reply)
        await send_reply(reply, send, method=request.method)

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
