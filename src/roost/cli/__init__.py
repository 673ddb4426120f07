"""Roost CLI: serve a project directory or list what it would bind.

Entry point registered as ``roost`` in ``pyproject.toml``::

    [project.scripts]
    roost = "roost.cli:main"
"""

import argparse
import sys

from roost.config import MODES


def _add_project_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("workdir", nargs="?", default=".", help="Project directory (default: .)")
    parser.add_argument(
        "--mode",
        choices=sorted(MODES),
        default="compact",
        help="Discovery convention for pipes, schemas, middlewares and controllers",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``roost`` command."""
    parser = argparse.ArgumentParser(
        prog="roost",
        description="Roost: serve routes, services and middlewares discovered from a directory.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- roost serve ------------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Load the project and start listening")
    _add_project_args(serve_parser)
    serve_parser.add_argument("--host", default=None, help="Bind host address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    serve_parser.add_argument(
        "--allow-circular",
        action="store_true",
        help="Resolve circular service dependencies with partially built instances",
    )
    serve_parser.add_argument(
        "--skip-dynamic-init",
        action="store_true",
        help="Do not run on_init for services discovered from disk",
    )
    serve_parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error"],
        help="Logging level (default: info)",
    )

    # -- roost routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List discovered module files")
    _add_project_args(routes_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from roost.cli._serve import run_serve

        run_serve(args)
    elif args.command == "routes":
        from roost.cli._routes import run_routes

        run_routes(args)
