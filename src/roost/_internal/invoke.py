"""Invoke helpers: call sync or async handlers uniformly.

Handlers can be ``def`` or ``async def``. Anything that calls a
user-provided handler goes through :func:`invoke` so the sync/async
check lives in exactly one place::

    result = await invoke(handler, request, reply, next)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def arity(func: Any) -> int:
    """Count required positional parameters of ``func``.

    A bound receiver is already excluded by ``inspect.signature``;
    ``*args``, ``**kwargs`` and defaulted parameters do not count.

    Raises:
        ValueError: If the signature cannot be inspected.
        TypeError: If ``func`` is not callable.
    """
    sig = inspect.signature(func)
    return sum(
        1
        for p in sig.parameters.values()
        if p.kind in _POSITIONAL and p.default is inspect.Parameter.empty
    )


def capacity(func: Any) -> int | None:
    """How many positional arguments ``func`` accepts; ``None`` means any.

    Handlers may declare fewer than the ``(request, reply, next)`` the
    chain offers; the surplus is dropped.
    """
    try:
        sig = inspect.signature(func)
    except (ValueError, TypeError):
        return None
    count = 0
    for p in sig.parameters.values():
        if p.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if p.kind in _POSITIONAL:
            count += 1
    return count
