"""Shared type aliases used across roost modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Normal handler: (request, reply, next)
Handler: TypeAlias = Callable[..., Any]

# Error handler: (error, request, reply, next)
ErrorHandler: TypeAlias = Callable[..., Any]

# Continuation passed to handlers; call with an exception to enter the error chain
Next: TypeAlias = Callable[..., None]
