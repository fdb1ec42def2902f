"""Tunnel exception classes."""


class TunnelError(Exception):
    """Base exception for tunnel operations."""

    pass


class ConfigError(TunnelError):
    """Invalid configuration value."""

    def __init__(self, name: str, value: str, reason: str):
        self.name = name
        self.value = value
        super().__init__(f"Invalid {name}={value!r}: {reason}")


class BindError(TunnelError):
    """Listening socket could not be bound."""

    def __init__(self, host: str, port: int, message: str):
        self.host = host
        self.port = port
        super().__init__(f"Failed to listen on {host}:{port}: {message}")


class CertificateLoadError(TunnelError):
    """TLS certificate or private key could not be loaded."""

    def __init__(self, cert_file: str, key_file: str, message: str):
        self.cert_file = cert_file
        self.key_file = key_file
        super().__init__(
            f"Failed to load TLS certificate '{cert_file}' / key '{key_file}': "
            f"{message}"
        )


class DialError(TunnelError):
    """Outbound connection to the peer endpoint failed."""

    def __init__(self, host: str, port: int, message: str):
        self.host = host
        self.port = port
        super().__init__(f"Failed to connect to {host}:{port}: {message}")
