"""In-process test client for roost servers.

Sends requests through the server's ASGI interface directly; no socket
is opened.
"""

import json as json_module
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from roost.server import Server, ServerState


@dataclass(frozen=True, slots=True)
class TestResponse:
    """A captured response."""

    __test__ = False

    status: int
    headers: dict[str, str]
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        return json_module.loads(self.body)


class TestClient:
    """Async test client for roost servers.

    Initializes the server without a listener on enter and destroys it
    on exit (unless it was already running).

    Usage::

        async with TestClient(Server(ServerConfig(workdir=tmp_path))) as client:
            response = await client.get("/users/1")
            assert response.status == 200
    """

    __test__ = False  # Tell pytest this is not a test class
    __slots__ = ("_owns", "server")

    def __init__(self, server: Server) -> None:
        self.server = server
        self._owns = False

    async def __aenter__(self) -> "TestClient":
        if self.server.state is ServerState.IDLE:
            await self.server.initialize(listen=False)
            self._owns = True
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._owns and self.server.state is ServerState.RUNNING:
            await self.server.destroy()
        self._owns = False

    async def get(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
    ) -> TestResponse:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers, query=query)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> TestResponse:
        """Send a POST request."""
        return await self.request("POST", path, headers=headers, body=body, json=json)

    async def put(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> TestResponse:
        """Send a PUT request."""
        return await self.request("PUT", path, headers=headers, body=body, json=json)

    async def patch(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> TestResponse:
        """Send a PATCH request."""
        return await self.request("PATCH", path, headers=headers, json=json)

    async def delete(self, path: str, *, headers: dict[str, str] | None = None) -> TestResponse:
        """Send a DELETE request."""
        return await self.request("DELETE", path, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> TestResponse:
        """Send an arbitrary request through the ASGI app."""
        if "?" in path:
            path, query_string = path.split("?", 1)
        else:
            query_string = ""
        if query:
            query_string = "&".join(filter(None, [query_string, urlencode(query)]))

        merged = {name.lower(): value for name, value in (headers or {}).items()}
        request_body = body or b""
        if json is not None:
            request_body = json_module.dumps(json).encode("utf-8")
            merged.setdefault("content-type", "application/json")

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "path": path,
            "raw_path": path.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": [(k.encode("latin-1"), v.encode("latin-1")) for k, v in merged.items()],
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        status = 500
        response_headers: dict[str, str] = {}
        parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                for name, value in message.get("headers", []):
                    response_headers[name.decode("latin-1")] = value.decode("latin-1")
            elif message["type"] == "http.response.body":
                parts.append(message.get("body", b""))

        await self.server(scope, receive, send)
        return TestResponse(status=status, headers=response_headers, body=b"".join(parts))
