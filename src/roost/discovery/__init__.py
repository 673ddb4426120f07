"""Filesystem route discovery."""

from roost.discovery.tree import NOMENCLATURES, scan, sort_routes
from roost.discovery.types import RouteDescriptor, Segment

__all__ = [
    "NOMENCLATURES",
    "RouteDescriptor",
    "Segment",
    "scan",
    "sort_routes",
]
