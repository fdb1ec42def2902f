"""
Client role command.

Listens on loopback and tunnels every local connection to the tunnel server.

Example:
    # Forward 127.0.0.1:5000 to a tunnel server on 10.0.0.5:7000
    SERVER_HOST=10.0.0.5 pipetunnel client

    # Same, with explicit options
    pipetunnel client --local-port 5000 --server-host 10.0.0.5
"""

from typing import Annotated

import typer

from pipetunnel.cli import config as cli_config
from pipetunnel.cli.output import console, print_error
from pipetunnel.cli.serve import run_service
from pipetunnel.config import ClientConfig
from pipetunnel.exceptions import ConfigError
from pipetunnel.tunnel.service import build_client_service
from pipetunnel.utils.logger import configure_logging

app = typer.Typer(help="Run the tunnel client")


@app.callback(invoke_without_command=True)
def client(
    local_port: Annotated[
        int | None,
        typer.Option("--local-port", "-l", help="Loopback port to listen on"),
    ] = None,
    server_host: Annotated[
        str | None,
        typer.Option("--server-host", "-s", help="Tunnel server address"),
    ] = None,
    server_port: Annotated[
        int | None,
        typer.Option("--server-port", "-p", help="Tunnel server port"),
    ] = None,
    stats_interval_ms: Annotated[
        int | None,
        typer.Option("--stats-interval-ms", help="Traffic report interval"),
    ] = None,
):
    """
    Run the client role.

    Defaults come from LOCAL_PORT, SERVER_HOST, SERVER_PORT and
    STATS_INTERVAL_MS; options override them.
    """
    try:
        config = ClientConfig.from_env()
        if local_port is not None:
            config.LOCAL_PORT = local_port
        if server_host:
            config.SERVER_HOST = server_host
        if server_port is not None:
            config.SERVER_PORT = server_port
        if stats_interval_ms is not None:
            config.STATS_INTERVAL_MS = stats_interval_ms
        config.validate()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)

    configure_logging(cli_config.LOG_LEVEL or config.LOG_LEVEL)

    console.print(
        f"[bold green]Tunnel client[/bold green] "
        f"[cyan]{config.LOCAL_BIND_IP}:{config.LOCAL_PORT}[/cyan] "
        f"[dim]→[/dim] "
        f"[yellow]{config.SERVER_HOST}:{config.SERVER_PORT}[/yellow]"
    )
    console.print("[dim]Press Ctrl+C to stop.[/dim]")

    run_service(build_client_service(config))
