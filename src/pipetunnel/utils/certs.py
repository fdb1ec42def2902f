"""
Self-signed certificate generation for the TLS server role.

The TLS server only needs to prove its identity; a self-signed pair is enough
for a private tunnel whose client does not verify the chain.
"""

import ipaddress
import os
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from pipetunnel.utils.logger import get_logger

log = get_logger(__name__)


def generate_self_signed_cert(
    cert_file: str,
    key_file: str,
    common_name: str = "localhost",
    days: int = 365,
    overwrite: bool = False,
) -> None:
    """
    Write a PEM certificate and an unencrypted PEM RSA key.

    Args:
        cert_file: Output path of the certificate.
        key_file: Output path of the private key (mode 0600).
        common_name: Subject CN, also added as a subjectAltName.
        days: Validity period.
        overwrite: Replace existing files instead of failing.

    Raises:
        FileExistsError: If an output file exists and overwrite is False.
    """
    if not overwrite:
        for path in (cert_file, key_file):
            if os.path.exists(path):
                raise FileExistsError(f"Refusing to overwrite existing file: '{path}'")

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    subject = issuer = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])

    alt_names: list[x509.GeneralName] = [x509.DNSName(common_name)]
    if common_name == "localhost":
        alt_names.append(x509.IPAddress(ipaddress.ip_address("127.0.0.1")))

    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=days))
        .add_extension(x509.SubjectAlternativeName(alt_names), critical=False)
        .sign(key, hashes.SHA256())
    )

    with open(cert_file, "wb") as f:
        f.write(cert.public_bytes(serialization.Encoding.PEM))

    fd = os.open(key_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(
            key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.TraditionalOpenSSL,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )

    log.info(f"Generated self-signed certificate '{cert_file}' (CN={common_name})")
