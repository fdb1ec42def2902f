"""Run a tunnel service in the foreground until interrupted."""

import asyncio

import typer

from pipetunnel.cli.output import console, print_error
from pipetunnel.exceptions import TunnelError
from pipetunnel.tunnel.service import TunnelService
from pipetunnel.tunnel.socket_policy import install_error_observer
from pipetunnel.utils.logger import get_logger

logger = get_logger(__name__)


async def _serve(service: TunnelService) -> None:
    install_error_observer(asyncio.get_running_loop())
    await service.serve_forever()


def run_service(service: TunnelService) -> None:
    """
    Serve until Ctrl+C. Startup failures exit with code 1.

    Open sessions are dropped on exit, not drained.
    """
    try:
        asyncio.run(_serve(service))
    except TunnelError as e:
        logger.critical(f"FATAL: {e}")
        print_error(str(e))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
