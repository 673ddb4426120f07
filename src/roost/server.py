"""Server lifecycle coordinator.

Drives the load sequence as an explicit state machine::

    idle -> loading -> running -> stopping -> idle

``initialize()`` runs five stages in order (services, pipes, schemas,
middlewares, controllers). Each stage loads its whole kind concurrently
and finishes before the next one starts. A cancellation event is checked
between stages; ``destroy()`` sets it.
"""

import logging
from enum import StrEnum
from typing import Any, TypeVar

import anyio

from roost._internal.asgi import Receive, Scope, Send
from roost.config import ServerConfig
from roost.dispatch.binding import RouteBinding
from roost.dispatch.dispatcher import Dispatcher
from roost.errors import InitializationCancelled, LifecycleError
from roost.loading.kinds import LOADERS
from roost.loading.outcome import LoadOutcome
from roost.pieces import Schema, Service, create_schema
from roost.report import report_bindings, report_outcomes, report_shadowed
from roost.services.container import ServiceContainer
from roost.transport.chain import Transport
from roost.transport.listener import Listener

logger = logging.getLogger("roost.server")

S = TypeVar("S", bound=Service)

STAGES: tuple[str, ...] = ("service", "pipe", "schema", "middleware", "controller")


class ServerState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    RUNNING = "running"
    STOPPING = "stopping"


class Server:
    """Discovers modules under ``config.workdir`` and serves them.

    Usage::

        server = Server(ServerConfig(workdir="src", port=3000))
        await server.initialize()
        ...
        await server.destroy()

    The server is also an ASGI application, so it can be mounted under
    another ASGI server after ``initialize(listen=False)``.
    """

    def __init__(self, config: ServerConfig | None = None) -> None:
        self.config = config or ServerConfig()
        self.state = ServerState.IDLE
        self.container = ServiceContainer(
            self,
            allow_circular=self.config.allow_circular_service_deps,
            init_dynamic=self.config.init_dynamic_services,
        )
        self.transport = Transport()
        self.dispatcher = Dispatcher(self.transport)
        self.listener: Listener | None = None
        self.outcomes: dict[str, list[LoadOutcome[Any]]] = {}
        self.bindings: list[RouteBinding] = []
        self._cancel: anyio.Event | None = None

    def __repr__(self) -> str:
        return f"Server(state={self.state}, workdir={str(self.config.root)!r}, mode={self.config.mode!r})"

    # -- Services --

    def register_service(self, cls: type[Service]) -> Service:
        """Register and construct a service programmatically.

        Failures propagate to the caller.
        """
        return self.container.register(cls, dynamic=False)

    def get_service(self, cls: type[S]) -> S:
        """Return a service singleton.

        Raises:
            ServiceNotRegisteredError: If ``cls`` was never registered
                or discovered.
        """
        return self.container.get(cls)  # type: ignore[return-value]

    @staticmethod
    def create_schema(verbs: dict[str, Any]) -> type[Schema]:
        """Build a ``Schema`` subclass from ``{verb: request_schema}``."""
        return create_schema(verbs)

    # -- Introspection --

    @property
    def port(self) -> int | None:
        """Bound port while listening."""
        return self.listener.port if self.listener is not None else None

    @property
    def running(self) -> bool:
        return self.state is ServerState.RUNNING

    # -- Lifecycle --

    def _checkpoint(self, cancel: anyio.Event) -> None:
        if cancel.is_set():
            msg = "Initialization cancelled by destroy()"
            raise InitializationCancelled(msg)

    async def initialize(self, *, listen: bool = True) -> None:
        """Load every stage, bind routes, run init hooks, then listen.

        Args:
            listen: Open the socket listener. Pass ``False`` to drive the
                server in-process (see ``roost.testing.TestClient``).

        Raises:
            LifecycleError: If the server is not idle.
            InitializationCancelled: If ``destroy()`` ran meanwhile.
            DiscoveryError: If a directory layout is malformed.
        """
        if self.state is not ServerState.IDLE:
            msg = f"Cannot initialize a server that is {self.state}"
            raise LifecycleError(msg)
        self.state = ServerState.LOADING
        cancel = anyio.Event()
        self._cancel = cancel

        try:
            outcomes: dict[str, list[LoadOutcome[Any]]] = {}
            for kind in STAGES:
                self._checkpoint(cancel)
                results = await LOADERS[kind](self).load_all()
                outcomes[kind] = results
                if kind == "service":
                    self.container.register_many([o.module for o in results if o.ok], dynamic=True)
            self._checkpoint(cancel)

            self.outcomes = outcomes
            self.bindings = self.dispatcher.bind(
                outcomes["pipe"], outcomes["schema"], outcomes["middleware"], outcomes["controller"]
            )
            for kind in STAGES:
                report_outcomes(kind, outcomes[kind])
            report_shadowed(self.dispatcher.shadowed)
            report_bindings(self.bindings)

            self.container.run_init_hooks()

            if listen:
                listener = Listener(self.transport)
                await listener.listen(self.config.host, self.config.port)
                self.listener = listener
            self._checkpoint(cancel)
        except InitializationCancelled:
            if self.state is ServerState.IDLE:
                # destroy() already reset; drop what the cancelled stages added
                self.container.clear()
                listener, self.listener = self.listener, None
                if listener is not None:
                    await listener.close()
            raise
        except BaseException:
            if self.state is ServerState.LOADING:
                await self._reset()
            raise
        finally:
            if self._cancel is cancel:
                self._cancel = None

        self.transport.accepting = True
        self.state = ServerState.RUNNING
        logger.info("Server running (%d routes)", len(self.bindings))

    async def destroy(self) -> None:
        """Stop the server and return to idle.

        Runs ``on_destroy`` hooks, force-closes open connections, cancels
        an in-flight ``initialize()``, resets the transport, and closes
        the listener.

        Raises:
            LifecycleError: If the server is idle or already stopping.
        """
        if self.state not in (ServerState.RUNNING, ServerState.LOADING):
            msg = f"Cannot destroy a server that is {self.state}"
            raise LifecycleError(msg)
        self.state = ServerState.STOPPING
        self.transport.accepting = False

        self.container.run_destroy_hooks()
        if self.listener is not None:
            dropped = self.listener.drop_connections()
            if dropped:
                logger.info("Closed %d open connection(s)", dropped)
        if self._cancel is not None:
            self._cancel.set()
        await self._reset()
        logger.info("Server stopped")

    async def _reset(self) -> None:
        listener, self.listener = self.listener, None
        self.transport.reset()
        self.dispatcher = Dispatcher(self.transport)
        self.container.clear()
        self.outcomes = {}
        self.bindings = []
        try:
            if listener is not None:
                await listener.close()
        finally:
            self.state = ServerState.IDLE

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.transport(scope, receive, send)
