"""Module loading: import, classify, construct, and shape-check discovered files."""

from roost._internal.invoke import arity
from roost.loading.kinds import (
    LOADERS,
    ControllerLoader,
    MiddlewareLoader,
    PipeLoader,
    SchemaLoader,
    ServiceLoader,
)
from roost.loading.module import ModuleLoader, forget_file, import_file
from roost.loading.outcome import FAULT_STATUSES, HandlerShapeFault, LoadOutcome, LoadStatus
from roost.loading.shape import Role

__all__ = [
    "FAULT_STATUSES",
    "LOADERS",
    "ControllerLoader",
    "HandlerShapeFault",
    "LoadOutcome",
    "LoadStatus",
    "MiddlewareLoader",
    "ModuleLoader",
    "PipeLoader",
    "Role",
    "SchemaLoader",
    "ServiceLoader",
    "arity",
    "forget_file",
    "import_file",
]
