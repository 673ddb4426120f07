"""Service dependency container.

Singleton registry with lazy construction and an explicit construction
stack for cycle detection.

Services obtain their dependencies by resolving them inside their own
constructor::

    class UsersService(Service):
        def __init__(self, server):
            super().__init__(server)
            self.db = self.service(DatabaseService)

Each nested resolution pushes onto the construction stack. Meeting a
constructor that is already on the stack is a cycle.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from roost.errors import (
    CircularDependencyError,
    ConfigurationError,
    ConstructionError,
    RoostError,
    ServiceNotRegisteredError,
)
from roost.pieces import Service

if TYPE_CHECKING:
    from roost.server import Server

logger = logging.getLogger("roost.services")


@dataclass(slots=True)
class ServiceRegistration:
    """One live singleton.

    Attributes:
        constructor: The exact class the instance was built from.
        instance: The singleton.
        dynamic: True when discovered from the filesystem, False when
            registered programmatically.
        initialized: Whether ``on_init`` has run.
    """

    constructor: type[Service]
    instance: Service
    dynamic: bool
    initialized: bool = False


class ServiceContainer:
    """Holds every service singleton for one server.

    Args:
        server: Passed to each service constructor.
        allow_circular: Tolerant mode. A cycle returns the partially
            constructed instance instead of raising.
        init_dynamic: Whether discovered services get ``on_init``.
    """

    def __init__(self, server: "Server", *, allow_circular: bool = False, init_dynamic: bool = True) -> None:
        self._server = server
        self.allow_circular = allow_circular
        self.init_dynamic = init_dynamic
        self._registrations: list[ServiceRegistration] = []
        self._stack: list[tuple[type[Service], Service]] = []
        self._batch: tuple[type[Service], ...] = ()
        self._batch_dynamic = False
        self._started = False

    # -- Introspection --

    @property
    def construction_stack(self) -> tuple[type[Service], ...]:
        """Constructors currently mid-construction, outermost first."""
        return tuple(cls for cls, _ in self._stack)

    @property
    def registrations(self) -> tuple[ServiceRegistration, ...]:
        return tuple(self._registrations)

    @property
    def started(self) -> bool:
        return self._started

    def __len__(self) -> int:
        return len(self._registrations)

    def __contains__(self, cls: object) -> bool:
        return self._find(cls) is not None

    def _find(self, cls: object) -> ServiceRegistration | None:
        for registration in self._registrations:
            if registration.constructor is cls:
                return registration
        return None

    # -- Resolution --

    def get_or_create(self, cls: type[Service], *, dynamic: bool = False) -> Service:
        """Return the singleton for ``cls``, constructing it if needed.

        Raises:
            CircularDependencyError: ``cls`` is already under construction
                and tolerant mode is off.
            ConstructionError: The constructor raised.
        """
        _check_service_class(cls)
        existing = self._find(cls)
        if existing is not None:
            return existing.instance

        for pending_cls, partial in self._stack:
            if pending_cls is cls:
                if self.allow_circular:
                    return partial
                raise CircularDependencyError(dependent=self._stack[-1][0], dependency=cls)

        instance = cls.__new__(cls)
        self._stack.append((cls, instance))
        try:
            instance.__init__(self._server)
            instance.check_contract()
        except RoostError:
            raise
        except Exception as exc:
            raise ConstructionError(cls, exc) from exc
        finally:
            self._stack.pop()

        registration = ServiceRegistration(constructor=cls, instance=instance, dynamic=dynamic)
        self._registrations.append(registration)
        if self._started:
            # Startup hooks already ran; late services initialise now
            self._run_init(registration)
        return instance

    def get(self, cls: type[Service]) -> Service:
        """Return a registered instance, realising it from the current batch.

        Raises:
            ServiceNotRegisteredError: ``cls`` is neither registered nor
                part of the batch being registered.
        """
        _check_service_class(cls)
        existing = self._find(cls)
        if existing is not None:
            return existing.instance
        if any(pending is cls for pending in self._batch):
            return self.get_or_create(cls, dynamic=self._batch_dynamic)
        raise ServiceNotRegisteredError(cls)

    def register(self, cls: type[Service], *, dynamic: bool = False) -> Service:
        """Register and construct one service. Failures propagate."""
        return self.register_many([cls], dynamic=dynamic, strict=True)[0]

    def register_many(
        self,
        constructors: Sequence[type[Service]],
        *,
        dynamic: bool,
        strict: bool = False,
    ) -> list[Service]:
        """Realise every constructor.

        Constructors in the batch may depend on each other in any order.
        Without ``strict``, one failure is logged and that service is
        left out; with it, the first failure propagates.
        """
        previous = (self._batch, self._batch_dynamic)
        self._batch = (*self._batch, *constructors)
        self._batch_dynamic = dynamic
        services: list[Service] = []
        try:
            for cls in constructors:
                try:
                    services.append(self.get_or_create(cls, dynamic=dynamic))
                except (CircularDependencyError, ConstructionError, ConfigurationError, ServiceNotRegisteredError):
                    if strict:
                        raise
                    logger.exception("Service %s could not be created", getattr(cls, "__name__", cls))
        finally:
            self._batch, self._batch_dynamic = previous
        return services

    # -- Lifecycle hooks --

    def _run_init(self, registration: ServiceRegistration) -> None:
        registration.initialized = True
        hook = getattr(registration.instance, "on_init", None)
        if hook is None:
            return
        try:
            hook()
        except Exception:
            logger.exception("on_init failed for %s", registration.constructor.__name__)

    def run_init_hooks(self) -> None:
        """Run ``on_init`` once per service, in registration order.

        Discovered services are skipped when ``init_dynamic`` is off.
        Afterwards, services created lazily are initialised immediately.
        """
        for registration in list(self._registrations):
            if registration.initialized:
                continue
            if registration.dynamic and not self.init_dynamic:
                continue
            self._run_init(registration)
        self._started = True

    def run_destroy_hooks(self) -> None:
        """Run ``on_destroy`` for every service, in registration order."""
        for registration in self._registrations:
            hook = getattr(registration.instance, "on_destroy", None)
            if hook is None:
                continue
            try:
                hook()
            except Exception:
                logger.exception("on_destroy failed for %s", registration.constructor.__name__)

    def clear(self) -> None:
        """Forget every registration. Used when the server returns to idle."""
        self._registrations.clear()
        self._stack.clear()
        self._batch = ()
        self._started = False

    def instances(self) -> Iterable[Any]:
        return (r.instance for r in self._registrations)


def _check_service_class(cls: object) -> None:
    if not (isinstance(cls, type) and issubclass(cls, Service)):
        msg = f"{cls!r} is not a Service subclass"
        raise ConfigurationError(msg)
