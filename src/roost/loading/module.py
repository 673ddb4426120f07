"""Generic module loader.

Imports each discovered file, classifies its ``default`` export against a
kind's contract, constructs it, and validates its members. Every expected
failure becomes a :class:`LoadOutcome`; nothing here logs or raises for
a broken module.

All files of one kind load concurrently. Imports run in worker threads
(``anyio.to_thread``); classification and construction run back on the
event loop, so constructors can resolve services from the container
without locking. Results keep the discovery order, whichever import
finishes first.
"""

import hashlib
import importlib.util
import sys
import threading
import time
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

import anyio

from roost.discovery.tree import scan
from roost.discovery.types import RouteDescriptor
from roost.errors import ConstructionError, RoostError
from roost.loading.outcome import LoadOutcome, LoadStatus
from roost.loading.shape import ShapeReport
from roost.pieces import Piece, is_piece_class

if TYPE_CHECKING:
    from roost.server import Server

_MISSING = object()

# Serialises exec_module across worker threads; re-entrant so a
# discovered module can import_file() another one at import time.
_import_lock = threading.RLock()
_modules: dict[Path, ModuleType] = {}


def module_name_for(path: Path) -> str:
    """Stable ``sys.modules`` key for a discovered file."""
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:16]
    return f"_roost_{path.stem.replace('.', '_').replace('-', '_')}_{digest}"


def import_file(path: str | Path) -> ModuleType:
    """Import a discovered file once and return the cached module.

    Discovered file names contain dots, so they cannot be imported with
    a normal ``import`` statement. Use this to share classes between
    discovered files::

        db = import_file(Path(__file__).parent.parent / "services" / "db.service.py")

        class UsersController(Controller):
            def __init__(self, server):
                super().__init__(server)
                self.db = self.service(db.default)

    Repeated calls for the same file return the same module object,
    so class identity (and therefore service identity) is preserved.

    Raises:
        Exception: Whatever the module raises while executing. Failed
            imports are not cached.
    """
    resolved = Path(path).resolve()
    with _import_lock:
        cached = _modules.get(resolved)
        if cached is not None:
            return cached
        name = module_name_for(resolved)
        spec = importlib.util.spec_from_file_location(name, resolved)
        if spec is None or spec.loader is None:
            msg = f"Cannot import {str(resolved)!r}"
            raise ImportError(msg)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(name, None)
            raise
        _modules[resolved] = module
        return module


def forget_file(path: str | Path) -> None:
    """Drop a file from the import cache so the next load re-executes it."""
    resolved = Path(path).resolve()
    with _import_lock:
        module = _modules.pop(resolved, None)
        if module is not None:
            sys.modules.pop(module.__name__, None)


def is_missing_export(export: Any) -> bool:
    """Absent, ``None``, or an empty plain container."""
    if export is _MISSING or export is None:
        return True
    return isinstance(export, (dict, list, tuple)) and not export


T = TypeVar("T", bound=Piece)


class ModuleLoader(Generic[T]):
    """Load every module of one kind.

    Subclasses set ``nomenclature`` and override the hooks:

    - :meth:`adopt` maps a ``default`` export to a class satisfying the
      contract, or ``None``.
    - :meth:`construct` builds the instance (``cls(server)`` by default).
    - :meth:`inspect` validates members after construction.
    """

    nomenclature: ClassVar[str] = ""

    def __init__(self, server: "Server") -> None:
        self.server = server

    @property
    def directory(self) -> Path:
        return self.server.config.directory_for(self.nomenclature)

    @property
    def mode(self) -> str:
        return self.server.config.mode_for(self.nomenclature)

    async def discover(self) -> list[RouteDescriptor]:
        """Scan this kind's directory (in a worker thread).

        Raises:
            DiscoveryError: If the layout breaks the naming convention.
        """
        return await anyio.to_thread.run_sync(scan, self.directory, self.nomenclature, self.mode)

    async def load_all(self, routes: Sequence[RouteDescriptor] | None = None) -> list[LoadOutcome[T]]:
        """Load all routes concurrently, preserving their order.

        Args:
            routes: Descriptors to load. Defaults to :meth:`discover`.
        """
        if routes is None:
            routes = await self.discover()
        results: list[LoadOutcome[T] | None] = [None] * len(routes)

        async def _load(index: int, route: RouteDescriptor) -> None:
            results[index] = await self.load(route)

        async with anyio.create_task_group() as tg:
            for index, route in enumerate(routes):
                tg.start_soon(_load, index, route)

        return [outcome for outcome in results if outcome is not None]

    async def load(self, route: RouteDescriptor) -> LoadOutcome[T]:
        """Import, classify, and construct one module."""
        started = time.perf_counter()
        # sys.exit() at module level counts as a failed import
        try:
            module = await anyio.to_thread.run_sync(import_file, route.absolute_path)
        except (Exception, SystemExit) as exc:
            return LoadOutcome(
                status=LoadStatus.FAILED_IMPORT,
                route=route,
                elapsed=time.perf_counter() - started,
                error=exc,
            )
        return self.classify(route, module, started=started)

    def classify(self, route: RouteDescriptor, module: ModuleType, *, started: float) -> LoadOutcome[T]:
        """Turn an imported module into an outcome."""
        export = getattr(module, "default", _MISSING)
        cls = self.adopt(export, route)
        if cls is None:
            status = (
                LoadStatus.MISSING_DEFAULT_EXPORT
                if is_missing_export(export)
                else LoadStatus.NOT_EXTENDS_VALID_CLASS
            )
            return LoadOutcome(status=status, route=route, elapsed=time.perf_counter() - started)

        try:
            instance = self.construct(cls)
        except RoostError as exc:
            return self._constructor_error(route, exc, started)
        except Exception as exc:
            error = ConstructionError(cls, exc)
            error.__cause__ = exc
            return self._constructor_error(route, error, started)

        try:
            report = self.inspect(instance)
        except Exception as exc:
            error = ConstructionError(cls, exc)
            error.__cause__ = exc
            return self._constructor_error(route, error, started)
        elapsed = time.perf_counter() - started
        if report is None:
            return LoadOutcome(status=LoadStatus.LOADED, route=route, module=instance, elapsed=elapsed)
        return LoadOutcome(
            status=report.status,
            route=route,
            module=instance,
            elapsed=elapsed,
            faults=tuple(report.faults),
            members=report.members,
        )

    def _constructor_error(self, route: RouteDescriptor, error: BaseException, started: float) -> LoadOutcome[T]:
        return LoadOutcome(
            status=LoadStatus.CONSTRUCTOR_ERROR,
            route=route,
            elapsed=time.perf_counter() - started,
            error=error,
        )

    # -- Hooks --

    def adopt(self, export: Any, route: RouteDescriptor) -> type[T] | None:
        """Return the class to construct for ``export``, or ``None``."""
        if is_piece_class(export, self.nomenclature):
            return export
        return None

    def construct(self, cls: type[T]) -> Any:
        instance = cls(self.server)
        instance.check_contract()
        return instance

    def inspect(self, instance: Any) -> ShapeReport | None:
        return None
