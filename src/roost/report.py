"""Reporting: turn load outcomes and route bindings into log lines.

Classification never logs. The server hands its outcomes and bindings
to these functions once loading finishes.
"""

import logging
from collections.abc import Iterable
from typing import Any

from roost.dispatch.binding import RouteBinding
from roost.loading.outcome import LoadOutcome, LoadStatus

logger = logging.getLogger("roost.report")

_MESSAGES: dict[LoadStatus, str] = {
    LoadStatus.MISSING_DEFAULT_EXPORT: "missing a 'default' export",
    LoadStatus.NOT_EXTENDS_VALID_CLASS: "'default' does not extend the {kind} base class",
    LoadStatus.FAILED_IMPORT: "failed to import",
    LoadStatus.CONSTRUCTOR_ERROR: "raised while constructing",
    LoadStatus.TOO_MANY_PARAMETERS: "handler declares too many parameters",
    LoadStatus.INVALID_FUNCTION: "handler is not a valid function",
    LoadStatus.ARRAY_EMPTY: "handler list is empty",
    LoadStatus.MISSING_SOME_MEMBER_DECLARATION: "declares no recognised member",
    LoadStatus.MISSING_VALIDATION_SCHEMAS: "schema declares none of 'params', 'body', 'headers', 'query'",
    LoadStatus.INVALID_TYPE_SCHEMA_REQUEST: "schema value has an invalid type",
}

# Outcomes whose captured exception is worth a traceback
_WITH_TRACEBACK = frozenset({LoadStatus.FAILED_IMPORT, LoadStatus.CONSTRUCTOR_ERROR})


def describe_outcome(kind: str, outcome: LoadOutcome[Any]) -> str:
    """One-line, log-free description of a non-loaded outcome."""
    message = _MESSAGES.get(outcome.status, str(outcome.status)).format(kind=kind.capitalize())
    text = f"{kind} {outcome.route.relative_path!r} ({outcome.route.token_path}): {message} [{outcome.status}]"
    if outcome.error is not None:
        text += f": {outcome.error}"
    return text


def report_outcomes(kind: str, outcomes: Iterable[LoadOutcome[Any]]) -> int:
    """Log one line per problem. Returns how many lines were emitted."""
    emitted = 0
    for outcome in outcomes:
        if not outcome.ok:
            exc_info = outcome.error if outcome.status in _WITH_TRACEBACK else None
            level = logging.ERROR if exc_info is not None else logging.WARNING
            logger.log(level, "%s", describe_outcome(kind, outcome), exc_info=exc_info)
            emitted += 1
        for fault in outcome.faults:
            logger.warning("%s %r: %s excluded: %s", kind, outcome.route.relative_path, fault.location, fault)
            emitted += 1
    return emitted


def report_shadowed(outcomes: Iterable[LoadOutcome[Any]]) -> None:
    """Warn about modules hidden by another file bound at the same path."""
    for outcome in outcomes:
        logger.warning(
            "%r shadowed: another file is already bound at %s",
            outcome.route.relative_path,
            outcome.route.transport_path,
        )


def report_bindings(bindings: Iterable[RouteBinding]) -> None:
    """Log one summary line per bound path."""
    for binding in bindings:
        logger.info(
            "bound %s kinds=%s latency=%.1fms",
            binding.transport_path,
            ",".join(binding.kinds),
            binding.latency * 1000,
        )
