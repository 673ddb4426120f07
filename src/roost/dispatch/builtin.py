"""Handlers the dispatcher installs itself.

- :func:`schema_validator` runs a request schema ahead of a controller.
- :func:`http_error_handler` answers ``HTTPError`` with its own status.
- :func:`catch_all_handler` turns anything else into a generic 500.
"""

import inspect
import logging
from collections.abc import Mapping
from typing import Any

from roost._internal.types import ErrorHandler, Handler, Next
from roost.errors import HTTPError, ValidationError
from roost.http.reply import Reply
from roost.http.request import Request
from roost.transport.chain import reply_with_error
from roost.validation.request import RequestSchema

logger = logging.getLogger("roost.dispatch")


async def location_value(request: Request, location: str) -> Any:
    """The value a sub-schema validates for one request location.

    Raises:
        ValueError: If the body cannot be decoded.
    """
    if location == "params":
        return dict(request.params)
    if location == "query":
        return request.query.to_dict()
    if location == "headers":
        return request.headers.to_dict()
    return await request.parsed_body()


def collect_errors(errors: dict[str, list[str]], location: str, outcome: Any) -> None:
    """Merge one sub-schema outcome into ``errors`` keyed ``location.field``."""
    field_errors = getattr(outcome, "errors", None)
    if isinstance(field_errors, Mapping) and field_errors:
        for name, messages in field_errors.items():
            key = f"{location}.{name}" if name else location
            if isinstance(messages, str):
                messages = [messages]
            errors.setdefault(key, []).extend(str(m) for m in messages)
        return
    error = getattr(outcome, "error", None)
    if error:
        errors.setdefault(location, []).append(str(error))


def schema_validator(request_schema: RequestSchema) -> Handler:
    """Build a handler that validates every declared location.

    All locations are checked before failing; the raised
    :class:`ValidationError` lists every field error.
    """

    async def validate_request(request: Request, reply: Reply, next: Next) -> None:
        errors: dict[str, list[str]] = {}
        for location, sub_schema in request_schema.locations():
            try:
                value = await location_value(request, location)
            except ValueError:
                errors.setdefault(location, []).append("Malformed request body")
                continue
            outcome = sub_schema.validate(value)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            collect_errors(errors, location, outcome)
        if errors:
            raise ValidationError.from_errors(errors)
        next()

    return validate_request


def http_error_handler(error: BaseException, request: Request, reply: Reply, next: Next) -> None:
    """Answer HTTP errors with their own status and JSON payload."""
    if isinstance(error, HTTPError):
        reply_with_error(reply, error)
        return
    next(error)


def catch_all_handler(error: BaseException, request: Request, reply: Reply, next: Next) -> None:
    """Log anything unexpected and answer a generic 500."""
    logger.error("Unhandled error in %s %s", request.method, request.path, exc_info=error)
    reply.json({"status": 500, "error": "Internal Server Error"}, status=500)


# Installed once at "/" after every path's own handlers
FALLBACKS: tuple[ErrorHandler, ...] = (http_error_handler, catch_all_handler)
