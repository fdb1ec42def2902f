"""Generate a self-signed certificate for `pipetunnel server --tls`."""

from typing import Annotated

import typer

from pipetunnel.cli.output import print_error, print_success
from pipetunnel.utils.certs import generate_self_signed_cert

app = typer.Typer(help="Generate a self-signed TLS certificate")


@app.callback(invoke_without_command=True)
def cert(
    cert_file: Annotated[
        str, typer.Option("--cert", help="Certificate output path")
    ] = "./cert.pem",
    key_file: Annotated[
        str, typer.Option("--key", help="Private key output path")
    ] = "./key.pem",
    common_name: Annotated[
        str, typer.Option("--common-name", "-n", help="Certificate CN")
    ] = "localhost",
    days: Annotated[int, typer.Option("--days", help="Validity in days")] = 365,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite existing files")
    ] = False,
):
    """Write a certificate/key pair usable as TLS_CERT/TLS_KEY."""
    if days <= 0:
        print_error("--days must be positive.")
        raise typer.Exit(1)

    try:
        generate_self_signed_cert(
            cert_file, key_file, common_name=common_name, days=days, overwrite=force
        )
    except FileExistsError as e:
        print_error(f"{e}. Use --force to replace it.")
        raise typer.Exit(1)
    except OSError as e:
        print_error(f"Failed to write certificate: {e}")
        raise typer.Exit(1)

    print_success(f"Wrote {cert_file} and {key_file}")
