"""Route composition dispatcher."""

from roost.dispatch.binding import RouteBinding
from roost.dispatch.builtin import catch_all_handler, http_error_handler, schema_validator
from roost.dispatch.dispatcher import Dispatcher, select

__all__ = [
    "Dispatcher",
    "RouteBinding",
    "catch_all_handler",
    "http_error_handler",
    "schema_validator",
    "select",
]
