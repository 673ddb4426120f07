"""Load outcomes: the structured result of loading one discovered module.

Loaders never raise for expected failures. Each module becomes a
:class:`LoadOutcome` carrying a :class:`LoadStatus`; reporting and
binding consume the outcomes afterwards.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

from roost.discovery.types import RouteDescriptor
from roost.errors import (
    ModuleImportError,
    RoostError,
    ShapeError,
)


class LoadStatus(StrEnum):
    """Classification of a loaded module."""

    LOADED = "loaded"
    MISSING_DEFAULT_EXPORT = "missing-default-export"
    NOT_EXTENDS_VALID_CLASS = "not-extends-valid-class"
    FAILED_IMPORT = "failed-import"
    CONSTRUCTOR_ERROR = "constructor-error"
    # Handler shape faults
    TOO_MANY_PARAMETERS = "too-many-parameters"
    INVALID_FUNCTION = "invalid-function"
    ARRAY_EMPTY = "array-empty"
    MISSING_SOME_MEMBER_DECLARATION = "missing-some-member-declaration"
    # Schema shape faults
    MISSING_VALIDATION_SCHEMAS = "missing-validation-schemas"
    INVALID_TYPE_SCHEMA_REQUEST = "invalid-type-schema-request"


FAULT_STATUSES: frozenset[LoadStatus] = frozenset({
    LoadStatus.TOO_MANY_PARAMETERS,
    LoadStatus.INVALID_FUNCTION,
    LoadStatus.ARRAY_EMPTY,
    LoadStatus.MISSING_SOME_MEMBER_DECLARATION,
    LoadStatus.MISSING_VALIDATION_SCHEMAS,
    LoadStatus.INVALID_TYPE_SCHEMA_REQUEST,
})


@dataclass(frozen=True, slots=True)
class HandlerShapeFault:
    """One member that failed shape validation.

    Attributes:
        kind: Fault classification (one of ``FAULT_STATUSES``).
        member: Offending member name (``GET``, ``handler``, ...).
        index: Position inside a handler list, if the member is a list.
        detail: Human-readable explanation.
    """

    kind: LoadStatus
    member: str
    index: int | None = None
    detail: str = ""

    @property
    def location(self) -> str:
        """``member`` or ``member[index]``."""
        if self.index is None:
            return self.member
        return f"{self.member}[{self.index}]"

    def __str__(self) -> str:
        suffix = f": {self.detail}" if self.detail else ""
        return f"{self.location} ({self.kind}){suffix}"


T = TypeVar("T")


@dataclass(frozen=True)
class LoadOutcome(Generic[T]):
    """Result of loading one discovered module.

    Attributes:
        status: Classification.
        route: Descriptor of the file the module came from.
        module: Constructed instance (``None`` unless the module was built).
        elapsed: Seconds spent importing and constructing.
        error: Captured exception for ``failed-import`` / ``constructor-error``.
        faults: Member shape faults. A ``loaded`` outcome may still carry
            faults for members that were excluded.
        members: Validated members ready to bind, keyed by member name.
            Values are handler tuples, or ``RequestSchema`` for schemas.
    """

    status: LoadStatus
    route: RouteDescriptor
    module: T | None = None
    elapsed: float = 0.0
    error: BaseException | None = None
    faults: tuple[HandlerShapeFault, ...] = ()
    members: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is LoadStatus.LOADED

    def raise_for_status(self) -> None:
        """Raise the taxonomy exception matching a non-loaded status."""
        if self.ok:
            return
        where = self.route.relative_path
        if self.status is LoadStatus.FAILED_IMPORT:
            raise ModuleImportError(self.route.absolute_path, self.error) from self.error
        if self.status is LoadStatus.CONSTRUCTOR_ERROR:
            # Loaders store a ConstructionError (or ShapeError) here
            assert isinstance(self.error, RoostError)
            raise self.error
        details = "; ".join(str(f) for f in self.faults)
        msg = f"{where}: {self.status}" + (f" ({details})" if details else "")
        raise ShapeError(msg)
