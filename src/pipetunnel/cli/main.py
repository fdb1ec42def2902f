"""
pipetunnel CLI entry point.

Usage:
    pipetunnel [OPTIONS] COMMAND [ARGS]...

Commands:
    client   Run the tunnel client (loopback listener)
    server   Run the tunnel server (plain or TLS listener)
    cert     Generate a self-signed TLS certificate
    version  Show version information
"""

from typing import Annotated

import typer

from pipetunnel.cli import config as cli_config
from pipetunnel.cli.commands import cert, client, server
from pipetunnel.cli.output import console
from pipetunnel.models.enums import LogLevel

app = typer.Typer(
    name="pipetunnel",
    help="Transparent TCP tunnel",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.add_typer(client.app, name="client", help="Run the tunnel client")
app.add_typer(server.app, name="server", help="Run the tunnel server")
app.add_typer(cert.app, name="cert", help="Generate a self-signed TLS certificate")


@app.callback()
def main(
    log_level: Annotated[
        LogLevel | None,
        typer.Option(
            "--log-level",
            "-L",
            help="Log verbosity (overrides LOG_LEVEL)",
            case_sensitive=False,
        ),
    ] = None,
):
    """
    pipetunnel - transparent TCP tunnel.

    Run `client` near the application and `server` near the target service.
    """
    cli_config.LOG_LEVEL = log_level


@app.command("version")
def version():
    """Show version information."""
    from pipetunnel import __version__

    console.print(f"pipetunnel v{__version__}")


def run():
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
