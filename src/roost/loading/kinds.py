"""Kind loaders: one specialisation of ModuleLoader per nomenclature."""

import inspect
from collections.abc import Mapping
from typing import Any, ClassVar

from roost._internal.invoke import arity
from roost.discovery.types import RouteDescriptor
from roost.loading.module import ModuleLoader
from roost.loading.shape import ERROR_ARITY, Role, ShapeReport, inspect_members, inspect_schema
from roost.pieces import (
    HTTP_METHODS,
    Controller,
    Middleware,
    Pipe,
    Schema,
    Service,
    create_schema,
    is_piece_class,
)


def _wrapper_name(route: RouteDescriptor) -> str:
    return route.relative_path


def _as_handler_list(export: Any) -> list[Any] | None:
    """Normalise a bare function or non-empty list export."""
    if isinstance(export, (list, tuple)):
        return list(export) if export else None
    if callable(export) and not isinstance(export, type):
        return [export]
    return None


def _static(element: Any) -> Any:
    # Exported functions take no receiver
    return staticmethod(element) if inspect.isfunction(element) else element


def _is_error_handler(element: Any) -> bool:
    if not callable(element) or isinstance(element, type):
        return False
    try:
        return arity(element) == ERROR_ARITY
    except (ValueError, TypeError):
        return False


class ServiceLoader(ModuleLoader[Service]):
    """Loads service classes. Construction belongs to the container.

    A loaded outcome's ``module`` is the service *class*; the server
    registers it with the container after the stage completes.
    """

    nomenclature: ClassVar[str] = "service"

    def construct(self, cls: type[Service]) -> Any:
        return cls


class PipeLoader(ModuleLoader[Pipe]):
    """Loads pipes: a ``Pipe`` subclass, a handler function, or a list of them."""

    nomenclature: ClassVar[str] = "pipe"

    def adopt(self, export: Any, route: RouteDescriptor) -> type[Pipe] | None:
        if is_piece_class(export, self.nomenclature):
            return export
        handlers = _as_handler_list(export)
        if handlers is None:
            return None
        return type(_wrapper_name(route), (Pipe,), {"handler": [_static(h) for h in handlers]})

    def inspect(self, instance: Any) -> ShapeReport | None:
        return inspect_members(instance, {"handler": Role.NORMAL})


class MiddlewareLoader(ModuleLoader[Middleware]):
    """Loads middlewares.

    Bare function (or list) exports are split by arity: four-parameter
    functions become ``errors``, everything else ``handler``.
    """

    nomenclature: ClassVar[str] = "middleware"

    def adopt(self, export: Any, route: RouteDescriptor) -> type[Middleware] | None:
        if is_piece_class(export, self.nomenclature):
            return export
        handlers = _as_handler_list(export)
        if handlers is None:
            return None
        normal = [_static(h) for h in handlers if not _is_error_handler(h)]
        errors = [_static(h) for h in handlers if _is_error_handler(h)]
        return type(
            _wrapper_name(route),
            (Middleware,),
            {"handler": normal or None, "errors": errors or None},
        )

    def inspect(self, instance: Any) -> ShapeReport | None:
        return inspect_members(instance, {"handler": Role.NORMAL, "errors": Role.ERROR})


class SchemaLoader(ModuleLoader[Schema]):
    """Loads request schemas: a ``Schema`` subclass or a ``{verb: schema}`` mapping."""

    nomenclature: ClassVar[str] = "schema"

    def adopt(self, export: Any, route: RouteDescriptor) -> type[Schema] | None:
        if is_piece_class(export, self.nomenclature):
            return export
        if isinstance(export, Mapping) and export:
            if all(isinstance(k, str) and k.upper() in HTTP_METHODS for k in export):
                return create_schema(export, name=_wrapper_name(route))
        return None

    def inspect(self, instance: Any) -> ShapeReport | None:
        return inspect_schema(instance, HTTP_METHODS)


class ControllerLoader(ModuleLoader[Controller]):
    """Loads controllers: one handler (or list) per HTTP verb."""

    nomenclature: ClassVar[str] = "controller"

    def inspect(self, instance: Any) -> ShapeReport | None:
        return inspect_members(instance, dict.fromkeys(HTTP_METHODS, Role.NORMAL))


LOADERS: dict[str, type[ModuleLoader[Any]]] = {
    "service": ServiceLoader,
    "pipe": PipeLoader,
    "schema": SchemaLoader,
    "middleware": MiddlewareLoader,
    "controller": ControllerLoader,
}
