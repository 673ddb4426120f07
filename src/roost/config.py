"""Server configuration.

ServerConfig is a frozen dataclass: immutable after creation and IDE-autocompletable,
with no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, TypeAlias

from roost.errors import ConfigurationError

Mode: TypeAlias = Literal["tree", "compact"]

MODES: frozenset[str] = frozenset({"tree", "compact"})

# Directory per kind in compact mode. Tree mode shares one ``app/`` tree
# for everything except services, which are always flat.
_COMPACT_DIRS: dict[str, str] = {
    "service": "services",
    "pipe": "pipes",
    "schema": "schemas",
    "middleware": "middlewares",
    "controller": "controllers",
}
_TREE_DIR = "app"


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ServerConfig(port=3000, workdir="src", mode="tree")
    """

    # Listener
    host: str = "127.0.0.1"
    port: int = 8000

    # Discovery
    workdir: str | Path = "."
    mode: Mode = "compact"

    # Services
    allow_circular_service_deps: bool = False
    # Whether services discovered from disk get ``on_init`` after loading.
    # Programmatically registered services always do.
    init_dynamic_services: bool = True

    # Logging (applied by the CLI)
    log_level: str = "info"

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            msg = f"Unknown discovery mode {self.mode!r}; expected 'tree' or 'compact'."
            raise ConfigurationError(msg)
        if not 0 <= self.port <= 65535:
            msg = f"Port {self.port} is out of range."
            raise ConfigurationError(msg)

    @property
    def root(self) -> Path:
        """Absolute working directory."""
        return Path(self.workdir).resolve()

    def mode_for(self, nomenclature: str) -> Mode:
        """Discovery mode used for a kind. Services are always compact."""
        if nomenclature == "service":
            return "compact"
        return self.mode

    def directory_for(self, nomenclature: str) -> Path:
        """Directory scanned for a kind under the working directory."""
        if nomenclature not in _COMPACT_DIRS:
            msg = f"Unknown nomenclature {nomenclature!r}."
            raise ConfigurationError(msg)
        if self.mode_for(nomenclature) == "tree":
            return self.root / _TREE_DIR
        return self.root / _COMPACT_DIRS[nomenclature]
