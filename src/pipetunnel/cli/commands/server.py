"""
Server role command.

Listens on all interfaces (plain TCP or TLS) and relays every tunnel
connection to the target service in plaintext.

Example:
    # Plain tunnel endpoint on :7000 forwarding to 127.0.0.1:8085
    pipetunnel server

    # TLS-terminating endpoint
    pipetunnel server --tls --cert ./cert.pem --key ./key.pem
"""

from typing import Annotated

import typer

from pipetunnel.cli import config as cli_config
from pipetunnel.cli.output import console, print_error
from pipetunnel.cli.serve import run_service
from pipetunnel.config import ServerConfig
from pipetunnel.exceptions import CertificateLoadError, ConfigError
from pipetunnel.tunnel.service import build_server_service
from pipetunnel.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

app = typer.Typer(help="Run the tunnel server")


@app.callback(invoke_without_command=True)
def server(
    tls: Annotated[
        bool,
        typer.Option("--tls/--no-tls", help="Terminate TLS on the tunnel port"),
    ] = False,
    tunnel_port: Annotated[
        int | None,
        typer.Option("--tunnel-port", "-p", help="Port to listen on"),
    ] = None,
    target_host: Annotated[
        str | None,
        typer.Option("--target-host", "-t", help="Target service address"),
    ] = None,
    target_port: Annotated[
        int | None,
        typer.Option("--target-port", "-T", help="Target service port"),
    ] = None,
    cert: Annotated[
        str | None,
        typer.Option("--cert", help="PEM certificate (TLS only)"),
    ] = None,
    key: Annotated[
        str | None,
        typer.Option("--key", help="PEM private key (TLS only)"),
    ] = None,
    stats_interval_ms: Annotated[
        int | None,
        typer.Option("--stats-interval-ms", help="Traffic report interval"),
    ] = None,
):
    """
    Run the server role.

    Defaults come from TUNNEL_PORT, TARGET_HOST, TARGET_PORT, TLS_CERT,
    TLS_KEY and STATS_INTERVAL_MS; options override them.
    """
    try:
        config = ServerConfig.from_env()
        if tunnel_port is not None:
            config.TUNNEL_PORT = tunnel_port
        if target_host:
            config.TARGET_HOST = target_host
        if target_port is not None:
            config.TARGET_PORT = target_port
        if cert:
            config.TLS_CERT = cert
        if key:
            config.TLS_KEY = key
        if stats_interval_ms is not None:
            config.STATS_INTERVAL_MS = stats_interval_ms
        config.validate()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)

    configure_logging(cli_config.LOG_LEVEL or config.LOG_LEVEL)

    try:
        service = build_server_service(config, tls=tls)
    except CertificateLoadError as e:
        logger.critical(f"FATAL: {e}")
        print_error(str(e))
        raise typer.Exit(1)

    console.print(
        f"[bold green]Tunnel server[/bold green] "
        f"[cyan]{config.TUNNEL_BIND_IP}:{config.TUNNEL_PORT}[/cyan] "
        f"[dim]({'TLS' if tls else 'TCP'})[/dim] "
        f"[dim]→[/dim] "
        f"[yellow]{config.TARGET_HOST}:{config.TARGET_PORT}[/yellow]"
    )
    console.print("[dim]Press Ctrl+C to stop.[/dim]")

    run_service(service)
