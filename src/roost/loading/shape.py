"""Handler shape validation.

Inspects the callable members of a constructed piece and decides which
can be bound. Pure functions, no logging.

Arity counts positional parameters without defaults, excluding a bound
receiver. ``*args`` and ``**kwargs`` do not count::

    def GET(self, request, reply, next): ...          # arity 3, normal
    def errors(self, error, request, reply, next): ...  # arity 4, error
"""

import inspect
import types
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from roost._internal.invoke import arity
from roost.errors import ShapeError
from roost.loading.outcome import HandlerShapeFault, LoadStatus
from roost.validation.request import RequestSchema, build_request_schema

MAX_NORMAL_ARITY = 3
ERROR_ARITY = 4


class Role(StrEnum):
    """Which chain a member's handlers run in."""

    NORMAL = "normal"
    ERROR = "error"


def resolve_callable(
    owner: object, element: Any, *, as_method: bool = True
) -> Callable[..., Any] | None:
    """Bind a list element to ``owner`` the way attribute access would.

    Plain functions stored in a class-level list are treated as methods
    and receive the piece as receiver; ``staticmethod`` wrappers and
    lists assigned on the instance (``as_method=False``) are not bound.
    Returns ``None`` for values that are not handler-shaped (including
    classes).
    """
    if isinstance(element, staticmethod):
        return element.__func__
    if isinstance(element, classmethod):
        return types.MethodType(element.__func__, type(owner))
    if isinstance(element, type):
        return None
    if as_method and inspect.isfunction(element):
        return types.MethodType(element, owner)
    if callable(element):
        return element
    return None


def _check_one(
    owner: object,
    element: Any,
    member: str,
    role: Role,
    index: int | None,
    *,
    prebound: bool = False,
    as_method: bool = True,
) -> Callable[..., Any] | HandlerShapeFault:
    func = element if prebound else resolve_callable(owner, element, as_method=as_method)
    if func is None or isinstance(func, type):
        return HandlerShapeFault(LoadStatus.INVALID_FUNCTION, member, index, "not a function")
    try:
        n = arity(func)
    except (ValueError, TypeError):
        return HandlerShapeFault(
            LoadStatus.INVALID_FUNCTION, member, index, "signature cannot be inspected"
        )
    if n > ERROR_ARITY:
        return HandlerShapeFault(
            LoadStatus.TOO_MANY_PARAMETERS, member, index, f"{n} parameters"
        )
    if role is Role.ERROR:
        if n != ERROR_ARITY:
            return HandlerShapeFault(
                LoadStatus.INVALID_FUNCTION,
                member,
                index,
                f"error handlers take exactly {ERROR_ARITY} parameters, got {n}",
            )
    elif n > MAX_NORMAL_ARITY:
        return HandlerShapeFault(
            LoadStatus.TOO_MANY_PARAMETERS,
            member,
            index,
            f"request handlers take at most {MAX_NORMAL_ARITY} parameters, got {n}",
        )
    return func


def check_handlers(
    owner: object, member: str, role: Role
) -> tuple[Callable[..., Any], ...] | HandlerShapeFault | None:
    """Validate one handler member of ``owner``.

    Returns:
        ``None`` when the member is absent, a tuple of bound handlers
        when valid, or the first :class:`HandlerShapeFault`.
    """
    value = inspect.getattr_static(owner, member, None)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if not value:
            return HandlerShapeFault(LoadStatus.ARRAY_EMPTY, member, detail="empty handler list")
        as_method = member not in getattr(owner, "__dict__", {})
        handlers: list[Callable[..., Any]] = []
        for i, element in enumerate(value):
            checked = _check_one(owner, element, member, role, i, as_method=as_method)
            if isinstance(checked, HandlerShapeFault):
                return checked
            handlers.append(checked)
        return tuple(handlers)
    # Single member: normal attribute access does the binding
    bound = getattr(owner, member)
    if isinstance(value, type) or not callable(bound):
        return HandlerShapeFault(LoadStatus.INVALID_FUNCTION, member, detail="not a function")
    checked = _check_one(owner, bound, member, role, None, prebound=True)
    if isinstance(checked, HandlerShapeFault):
        return checked
    return (checked,)


def check_request_schema(owner: object, member: str) -> RequestSchema | HandlerShapeFault | None:
    """Validate one verb member of a schema piece."""
    value = getattr(owner, member, None)
    if value is None:
        return None
    try:
        request_schema = build_request_schema(value)
    except ShapeError as exc:
        return HandlerShapeFault(LoadStatus.INVALID_TYPE_SCHEMA_REQUEST, member, detail=str(exc))
    if not request_schema:
        return HandlerShapeFault(
            LoadStatus.MISSING_VALIDATION_SCHEMAS,
            member,
            detail="declares none of 'params', 'body', 'headers', 'query'",
        )
    return request_schema


@dataclass(slots=True)
class ShapeReport:
    """Accumulated result of checking every member of one piece."""

    members: dict[str, Any] = field(default_factory=dict)
    faults: list[HandlerShapeFault] = field(default_factory=list)

    def add(self, member: str, result: Any) -> None:
        if result is None:
            return
        if isinstance(result, HandlerShapeFault):
            self.faults.append(result)
        else:
            self.members[member] = result

    @property
    def status(self) -> LoadStatus:
        """``loaded`` if anything is bindable, else the first fault's kind.

        A piece that declares no member at all is
        ``missing-some-member-declaration``.
        """
        if self.members:
            return LoadStatus.LOADED
        if self.faults:
            return self.faults[0].kind
        return LoadStatus.MISSING_SOME_MEMBER_DECLARATION


def inspect_members(owner: object, members: dict[str, Role]) -> ShapeReport:
    """Check handler members in declaration order."""
    report = ShapeReport()
    for member, role in members.items():
        report.add(member, check_handlers(owner, member, role))
    return report


def inspect_schema(owner: object, verbs: tuple[str, ...]) -> ShapeReport:
    """Check every verb member of a schema piece."""
    report = ShapeReport()
    for verb in verbs:
        report.add(verb, check_request_schema(owner, verb))
    return report
