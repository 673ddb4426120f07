"""ASGI response sending: translate a finished Reply into ASGI messages."""

from roost._internal.asgi import Send
from roost.http.reply import Reply


def _body_allowed(status: int, method: str) -> bool:
    """Whether a response body may be sent."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    if 100 <= status < 200 or status in {204, 304}:
        return False
    return method != "HEAD"


async def send_reply(reply: Reply, send: Send, *, method: str = "GET") -> None:
    """Send ``reply`` as one ``http.response.start`` plus one body message."""
    body = reply.body if _body_allowed(reply.status_code, method) else b""
    raw_headers = [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in reply.headers]
    if reply.get_header("content-length") is None:
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))
    await send({"type": "http.response.start", "status": reply.status_code, "headers": raw_headers})
    await send({"type": "http.response.body", "body": body})
