"""The transport: an ordered handler chain served over ASGI."""

from roost.transport.chain import Layer, Transport, is_error_handler
from roost.transport.listener import Listener
from roost.transport.path import PathPattern, parse_path

__all__ = [
    "Layer",
    "Listener",
    "PathPattern",
    "Transport",
    "is_error_handler",
    "parse_path",
]
