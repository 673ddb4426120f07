"""Route composition: bind loaded modules onto the transport.

For every transport path, handlers are installed in a fixed order:

1. pipe handlers (``use``: the path and every descendant)
2. schema validators (one per declared verb)
3. middleware ``handler`` (``use``)
4. controller verb handlers
5. middleware ``errors`` (``use``)
6. the global HTTP-error and catch-all handlers, once

Each step runs across all paths before the next starts, in discovery
order. At most one loaded module per kind is bound per path; later
files mapping to the same path are recorded as shadowed.
"""

from collections.abc import Iterable, Sequence
from typing import Any

from roost.dispatch.binding import RouteBinding
from roost.dispatch.builtin import FALLBACKS, schema_validator
from roost.loading.outcome import LoadOutcome
from roost.transport.chain import Transport


def select(outcomes: Iterable[LoadOutcome[Any]]) -> tuple[list[LoadOutcome[Any]], list[LoadOutcome[Any]]]:
    """Split loaded outcomes into (first per path, shadowed duplicates)."""
    chosen: dict[str, LoadOutcome[Any]] = {}
    shadowed: list[LoadOutcome[Any]] = []
    for outcome in outcomes:
        if not outcome.ok:
            continue
        path = outcome.route.transport_path
        if path in chosen:
            shadowed.append(outcome)
        else:
            chosen[path] = outcome
    return list(chosen.values()), shadowed


class Dispatcher:
    """Installs loaded modules on a transport and records what it bound."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.bindings: dict[str, RouteBinding] = {}
        self.shadowed: list[LoadOutcome[Any]] = []

    def _record(self, outcome: LoadOutcome[Any], kind: str) -> None:
        path = outcome.route.transport_path
        binding = self.bindings.get(path)
        if binding is None:
            binding = self.bindings[path] = RouteBinding(path)
        binding.record(kind, outcome.elapsed)

    def bind(
        self,
        pipes: Sequence[LoadOutcome[Any]],
        schemas: Sequence[LoadOutcome[Any]],
        middlewares: Sequence[LoadOutcome[Any]],
        controllers: Sequence[LoadOutcome[Any]],
    ) -> list[RouteBinding]:
        """Bind everything and return the per-path records."""
        transport = self.transport
        selected: dict[str, list[LoadOutcome[Any]]] = {}
        for kind, outcomes in (
            ("pipe", pipes),
            ("schema", schemas),
            ("middleware", middlewares),
            ("controller", controllers),
        ):
            selected[kind], shadowed = select(outcomes)
            self.shadowed.extend(shadowed)

        for outcome in selected["pipe"]:
            handlers = outcome.members.get("handler")
            if handlers:
                transport.use(outcome.route.transport_path, *handlers)
                self._record(outcome, "pipe")

        for outcome in selected["schema"]:
            for verb, request_schema in outcome.members.items():
                transport.route(verb, outcome.route.transport_path, schema_validator(request_schema))
            self._record(outcome, "schema")

        for outcome in selected["middleware"]:
            handlers = outcome.members.get("handler")
            if handlers:
                transport.use(outcome.route.transport_path, *handlers)
                self._record(outcome, "middleware")

        for outcome in selected["controller"]:
            for verb, handlers in outcome.members.items():
                transport.route(verb, outcome.route.transport_path, *handlers)
            self._record(outcome, "controller")

        for outcome in selected["middleware"]:
            handlers = outcome.members.get("errors")
            if handlers:
                transport.use(outcome.route.transport_path, *handlers)
                self._record(outcome, "middleware")

        transport.use("/", *FALLBACKS)
        return list(self.bindings.values())
