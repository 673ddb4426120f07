"""``roost serve``: load a project directory and listen until interrupted."""

import argparse
import logging
import sys

import anyio

from roost.config import ServerConfig
from roost.errors import RoostError
from roost.server import Server, ServerState

logger = logging.getLogger("roost.cli")


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Map CLI flags onto a ServerConfig, keeping defaults for unset flags."""
    defaults = ServerConfig()
    return ServerConfig(
        host=args.host or defaults.host,
        port=args.port if args.port is not None else defaults.port,
        workdir=args.workdir,
        mode=args.mode,
        allow_circular_service_deps=args.allow_circular,
        init_dynamic_services=not args.skip_dynamic_init,
        log_level=args.log_level or defaults.log_level,
    )


async def serve(server: Server) -> None:
    """Initialize, wait until cancelled, then destroy."""
    try:
        await server.initialize()
        await anyio.sleep_forever()
    finally:
        if server.state in (ServerState.RUNNING, ServerState.LOADING):
            with anyio.CancelScope(shield=True):
                await server.destroy()


def run_serve(args: argparse.Namespace) -> None:
    """Start the server for ``args.workdir``."""
    try:
        config = config_from_args(args)
    except RoostError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    server = Server(config)
    try:
        anyio.run(serve, server)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except (RoostError, OSError) as exc:
        logger.error("Server failed to start: %s", exc)
        raise SystemExit(1) from exc
