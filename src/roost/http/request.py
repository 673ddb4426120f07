"""HTTP request passed down the handler chain.

Metadata is fixed at creation. ``params`` is rewritten by the transport
for each matched layer, and ``state`` is a scratch dict handlers use to
hand values to later handlers.
"""

import json
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

from roost._internal.asgi import Receive, Scope
from roost.http.headers import Headers
from roost.http.query import QueryParams


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(slots=True)
class Request:
    """An HTTP request.

    Body access is asynchronous and cached: the ASGI receive channel is
    consumed once, then ``body()``/``json()``/``parsed_body()`` reuse it.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    params: dict[str, str] = field(default_factory=dict)
    client: tuple[str, int] | None = None
    state: dict[str, Any] = field(default_factory=dict)

    # Private: ASGI receive callable for body streaming
    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw.decode('latin-1')}"
        return self.path

    # -- Async body access --

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def body(self) -> bytes:
        """Read the full request body."""
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["body"]

    async def text(self) -> str:
        """Read the body as UTF-8 text."""
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return json.loads(await self.body())

    async def parsed_body(self) -> Any:
        """Decode the body by content type.

        JSON bodies are parsed; URL-encoded forms become a dict of first
        values; an empty body is ``{}``; anything else is the raw bytes.

        Raises:
            ValueError: If a JSON body is malformed.
        """
        if "parsed" in self._cache:
            return self._cache["parsed"]
        raw = await self.body()
        ctype = (self.content_type or "").split(";", 1)[0].strip().lower()
        if not raw:
            parsed: Any = {}
        elif ctype == "application/json" or ctype.endswith("+json"):
            parsed = json.loads(raw)
        elif ctype == "application/x-www-form-urlencoded":
            form = parse_qs(raw.decode("latin-1"), keep_blank_values=True)
            parsed = {key: values[0] for key, values in form.items()}
        else:
            parsed = raw
        self._cache["parsed"] = parsed
        return parsed

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> "Request":
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            client=tuple(client) if client else None,
            _receive=receive,
        )
