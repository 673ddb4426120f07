"""Per-path record of what the dispatcher bound, for reporting only."""

from dataclasses import dataclass, field


@dataclass(slots=True)
class RouteBinding:
    """Which kinds were bound at one transport path.

    Attributes:
        transport_path: e.g. ``/users/:id``.
        kinds: Kind name to that module's load latency in seconds, in
            binding order.
    """

    transport_path: str
    kinds: dict[str, float] = field(default_factory=dict)

    @property
    def latency(self) -> float:
        """Aggregate load latency of every bound module, in seconds."""
        return sum(self.kinds.values())

    def record(self, kind: str, elapsed: float) -> None:
        self.kinds[kind] = elapsed
