"""``roost routes``: list the module files discovery finds, without importing them."""

import argparse
import sys

from roost.config import ServerConfig
from roost.discovery.tree import NOMENCLATURES, scan
from roost.errors import RoostError


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of KIND, PATH, and FILE for every discovered module."""
    try:
        config = ServerConfig(workdir=args.workdir, mode=args.mode)
        rows: list[tuple[str, str, str]] = []
        for kind in NOMENCLATURES:
            for route in scan(config.directory_for(kind), kind, config.mode_for(kind)):
                rows.append((kind, route.transport_path, route.relative_path))
    except RoostError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not rows:
        print("No modules found.")
        return

    width_kind = max(4, *(len(r[0]) for r in rows))
    width_path = max(4, *(len(r[1]) for r in rows))
    fmt = f"{{:<{width_kind}}}  {{:<{width_path}}}  {{}}"
    print(fmt.format("KIND", "PATH", "FILE"))
    print("-" * min(width_kind + width_path + 4 + max(len(r[2]) for r in rows), 80))
    for kind, path, file in rows:
        print(fmt.format(kind, path, file))
