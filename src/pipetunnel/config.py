"""
Tunnel configuration for pipetunnel.

This module defines one configuration dataclass per role. Values come from
environment variables; anything unset keeps the dataclass default.

Usage:
    from pipetunnel.config import ClientConfig

    config = ClientConfig.from_env()
    config.LOCAL_PORT = 6000  # CLI overrides are applied on top
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import ClassVar

from pipetunnel.exceptions import ConfigError
from pipetunnel.models.enums import LogLevel


# =============================================================================
# Environment Parsing
# =============================================================================


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigError(name, raw, "not an integer") from None


def _parse_value(name: str, raw: str, kind: type):
    if kind is int:
        return _parse_int(name, raw)
    if kind is LogLevel:
        try:
            return LogLevel(raw.strip().lower())
        except ValueError:
            choices = ", ".join(level.value for level in LogLevel)
            raise ConfigError(name, raw, f"expected one of {choices}") from None
    return raw


def _check_port(name: str, port: int, allow_zero: bool = False) -> None:
    low = 0 if allow_zero else 1
    if not low <= port <= 65535:
        raise ConfigError(name, str(port), f"port must be in {low}-65535")


def _check_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ConfigError(name, str(value), "must be positive")


class _EnvConfig:
    """Mixin that fills dataclass fields from same-named environment variables."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None):
        """
        Build a config from the environment.

        Args:
            environ: Mapping to read from (defaults to os.environ).

        Raises:
            ConfigError: If a variable cannot be parsed or is out of range.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(f.name)
            if raw is None or raw == "":
                continue
            values[f.name] = _parse_value(f.name, raw, f.type)
        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        _check_positive("STATS_INTERVAL_MS", self.STATS_INTERVAL_MS)
        _check_positive("CONNECT_TIMEOUT_MS", self.CONNECT_TIMEOUT_MS)

    @property
    def stats_interval(self) -> float:
        """Stats interval in seconds."""
        return self.STATS_INTERVAL_MS / 1000

    @property
    def connect_timeout(self) -> float:
        """Dial timeout in seconds."""
        return self.CONNECT_TIMEOUT_MS / 1000


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class ClientConfig(_EnvConfig):
    """
    Client role configuration.

    Attributes:
        LOCAL_PORT: Port of the local listener.
        SERVER_HOST: Tunnel server to dial.
        SERVER_PORT: Tunnel server port.
        STATS_INTERVAL_MS: Periodic traffic report interval.
        CONNECT_TIMEOUT_MS: Upper bound for dialing the tunnel server.
        LOG_LEVEL: Logging verbosity level.
    """

    # Class constants are not dataclass fields, so from_env never reads them.
    LOCAL_BIND_IP: ClassVar[str] = "127.0.0.1"

    LOCAL_PORT: int = 5000
    SERVER_HOST: str = "127.0.0.1"
    SERVER_PORT: int = 7000

    STATS_INTERVAL_MS: int = 2000
    CONNECT_TIMEOUT_MS: int = 15000

    LOG_LEVEL: LogLevel = LogLevel.INFO

    def validate(self) -> None:
        super().validate()
        _check_port("LOCAL_PORT", self.LOCAL_PORT, allow_zero=True)
        _check_port("SERVER_PORT", self.SERVER_PORT)


@dataclass
class ServerConfig(_EnvConfig):
    """
    Server role configuration (plain or TLS).

    Attributes:
        TUNNEL_PORT: Port of the tunnel listener.
        TARGET_HOST: Final target to dial.
        TARGET_PORT: Final target port.
        TLS_CERT: PEM certificate for the TLS listener.
        TLS_KEY: PEM private key for the TLS listener.
        STATS_INTERVAL_MS: Periodic traffic report interval.
        CONNECT_TIMEOUT_MS: Upper bound for dialing the target.
        LOG_LEVEL: Logging verbosity level.
    """

    TUNNEL_BIND_IP: ClassVar[str] = "0.0.0.0"

    TUNNEL_PORT: int = 7000
    TARGET_HOST: str = "127.0.0.1"
    TARGET_PORT: int = 8085

    TLS_CERT: str = "./cert.pem"
    TLS_KEY: str = "./key.pem"

    STATS_INTERVAL_MS: int = 2000
    CONNECT_TIMEOUT_MS: int = 15000

    LOG_LEVEL: LogLevel = LogLevel.INFO

    def validate(self) -> None:
        super().validate()
        _check_port("TUNNEL_PORT", self.TUNNEL_PORT, allow_zero=True)
        _check_port("TARGET_PORT", self.TARGET_PORT)
