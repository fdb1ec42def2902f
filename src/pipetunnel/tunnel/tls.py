"""TLS material for the encrypted server listener."""

import ssl

from pipetunnel.exceptions import CertificateLoadError
from pipetunnel.utils.logger import get_logger

logger = get_logger(__name__)


def load_server_context(cert_file: str, key_file: str) -> ssl.SSLContext:
    """
    Build the server-side TLS context shared by all sessions.

    The server authenticates itself only: no client certificate is requested
    or verified.

    Raises:
        CertificateLoadError: If either file is missing, unreadable, or the
            key does not match the certificate.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.verify_mode = ssl.CERT_NONE

    try:
        context.load_cert_chain(certfile=cert_file, keyfile=key_file)
    except (OSError, ssl.SSLError) as e:
        raise CertificateLoadError(cert_file, key_file, str(e)) from e

    logger.debug(f"Loaded TLS certificate '{cert_file}' and key '{key_file}'")
    return context
