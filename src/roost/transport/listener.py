"""Socket listener backed by uvicorn.

Binds the socket itself (so port ``0`` reports the real port), serves the
transport with ``uvicorn.Server`` as a background task, and force-closes
tracked connections on shutdown.
"""

import asyncio
import logging
import socket
from typing import Any

import anyio
import uvicorn

logger = logging.getLogger("roost.server")

_STARTUP_POLL = 0.01


class Listener:
    """Owns one uvicorn server for an ASGI app.

    Usage::

        listener = Listener(transport)
        await listener.listen("127.0.0.1", 0)
        print(listener.port)
        await listener.close()
    """

    def __init__(self, app: Any) -> None:
        self._app = app
        self._server: uvicorn.Server | None = None
        self._socket: socket.socket | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def listening(self) -> bool:
        return self._server is not None and self._server.started and not self._server.should_exit

    @property
    def port(self) -> int | None:
        if self._socket is None:
            return None
        return self._socket.getsockname()[1]

    @property
    def connections(self) -> tuple[Any, ...]:
        """Open connection protocols tracked by uvicorn."""
        if self._server is None:
            return ()
        return tuple(self._server.server_state.connections)

    async def listen(self, host: str, port: int) -> None:
        """Bind and start serving; returns once the server accepts connections.

        Raises:
            OSError: If the address cannot be bound.
            RuntimeError: If already listening, or uvicorn exits during startup.
        """
        if self._task is not None:
            msg = "Listener is already running"
            raise RuntimeError(msg)

        sock = socket.socket(socket.AF_INET6 if ":" in host else socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError:
            sock.close()
            raise
        sock.setblocking(False)

        config = uvicorn.Config(
            self._app,
            lifespan="off",
            log_config=None,
            access_log=False,
        )
        server = uvicorn.Server(config)
        self._socket = sock
        self._server = server
        # uvicorn serves on the running asyncio loop and outlives this call
        self._task = asyncio.create_task(server.serve(sockets=[sock]))

        while not server.started:
            if self._task.done():
                self._cleanup()
                msg = "Listener exited during startup"
                raise RuntimeError(msg)
            await anyio.sleep(_STARTUP_POLL)
        logger.info("Listening on http://%s:%d", host, self.port)

    def drop_connections(self) -> int:
        """Force-close every open connection. Returns how many were closed."""
        connections = self.connections
        for connection in connections:
            connection.shutdown()
        return len(connections)

    async def close(self) -> None:
        """Stop accepting, drop open connections, and wait for uvicorn to exit."""
        server, task = self._server, self._task
        if server is None or task is None:
            return
        server.should_exit = True
        server.force_exit = True
        self.drop_connections()
        try:
            await task
        finally:
            self._cleanup()

    def _cleanup(self) -> None:
        if self._socket is not None:
            self._socket.close()
        self._socket = None
        self._server = None
        self._task = None

