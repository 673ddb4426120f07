"""Shared fixtures: a scratch project directory and a raw ASGI caller."""

import json
import textwrap
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

import pytest

from roost.config import ServerConfig
from roost.server import Server


class Project:
    """A throwaway roost project rooted at ``tmp_path``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write(self, relative: str, source: str = "") -> Path:
        """Write a dedented source file, creating parent directories."""
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        return path

    def config(self, **overrides: Any) -> ServerConfig:
        return ServerConfig(workdir=self.root, **overrides)

    def server(self, **overrides: Any) -> Server:
        return Server(self.config(**overrides))


@pytest.fixture
def project(tmp_path: Path) -> Project:
    return Project(tmp_path)


@dataclass(frozen=True, slots=True)
class RawResponse:
    status: int
    headers: dict[str, str]
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body)


Call: TypeAlias = Callable[..., Coroutine[Any, Any, RawResponse]]


@pytest.fixture
def call() -> Call:
    """Send one request straight into an ASGI app."""

    async def _call(
        app: Any,
        method: str,
        path: str,
        *,
        body: bytes = b"",
        headers: dict[str, str] | None = None,
        query: str = "",
    ) -> RawResponse:
        scope = {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": query.encode("latin-1"),
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
            "client": ("127.0.0.1", 1234),
        }
        sent = False

        async def receive() -> dict[str, Any]:
            nonlocal sent
            if sent:
                return {"type": "http.disconnect"}
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        messages: list[dict[str, Any]] = []

        async def send(message: dict[str, Any]) -> None:
            messages.append(message)

        await app(scope, receive, send)
        start = messages[0]
        return RawResponse(
            status=start["status"],
            headers={k.decode(): v.decode() for k, v in start["headers"]},
            body=b"".join(m.get("body", b"") for m in messages[1:]),
        )

    return _call
