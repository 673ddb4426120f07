"""Response builder handed to every handler.

Handlers set status and headers, then finish with ``json``, ``text``,
or ``send``. The transport writes the finished reply to the client once
the chain stops::

    def GET(self, request, reply, next):
        reply.status(201).header("X-Trace", "abc").json({"ok": True})
"""

import json
from typing import Any, Self

# Reason phrases for the codes roost produces itself
_REASONS: dict[int, str] = {
    200: "OK",
    201: "Created",
    204: "No Content",
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def reason_phrase(status: int) -> str:
    return _REASONS.get(status, "")


class ReplyAlreadySent(RuntimeError):  # noqa: N818
    """A handler tried to finish a reply that was already finished."""


class Reply:
    """Mutable response builder. Finishing it twice is an error."""

    __slots__ = ("_body", "_headers", "_sent", "status_code")

    def __init__(self) -> None:
        self.status_code = 200
        self._headers: list[tuple[str, str]] = []
        self._body = b""
        self._sent = False

    @property
    def sent(self) -> bool:
        """True once ``send``/``json``/``text``/``end`` was called."""
        return self._sent

    @property
    def body(self) -> bytes:
        return self._body

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._headers)

    def get_header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self._headers:
            if key.lower() == lowered:
                return value
        return None

    # -- Builders (chainable) --

    def status(self, code: int) -> Self:
        self.status_code = code
        return self

    def header(self, name: str, value: str) -> Self:
        """Set a header, replacing any previous value."""
        lowered = name.lower()
        self._headers = [(k, v) for k, v in self._headers if k.lower() != lowered]
        self._headers.append((name, value))
        return self

    # -- Finishers --

    def send(self, body: bytes | str = b"", content_type: str | None = None) -> None:
        """Finish the reply with a raw body.

        Raises:
            ReplyAlreadySent: If the reply was already finished.
        """
        if self._sent:
            msg = "Reply already sent"
            raise ReplyAlreadySent(msg)
        if isinstance(body, str):
            body = body.encode("utf-8")
            if content_type is None and self.get_header("content-type") is None:
                content_type = "text/plain; charset=utf-8"
        if content_type is not None:
            self.header("Content-Type", content_type)
        self._body = body
        self._sent = True

    def json(self, data: Any, status: int | None = None) -> None:
        """Finish the reply with a JSON body."""
        if status is not None:
            self.status_code = status
        self.send(json.dumps(data, default=str).encode("utf-8"), "application/json")

    def text(self, text: str, status: int | None = None) -> None:
        """Finish the reply with a plain-text body."""
        if status is not None:
            self.status_code = status
        self.send(text.encode("utf-8"), "text/plain; charset=utf-8")

    def end(self) -> None:
        """Finish the reply with no body."""
        self.send(b"")

    def __repr__(self) -> str:
        return f"Reply(status={self.status_code}, sent={self._sent})"
