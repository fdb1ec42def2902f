"""
Enumeration types for pipetunnel.

This module defines the enumerations shared by the tunnel roles, the session
tracker and the logging setup.
"""

from enum import Enum


# =============================================================================
# Tunnel-Related Enums
# =============================================================================


class Role(str, Enum):
    """
    Deployable tunnel role.

    - CLIENT: loopback listener, dials the tunnel server
    - SERVER: public listener (plain or TLS), dials the target service
    """

    CLIENT = "client"
    SERVER = "server"


class Leg(str, Enum):
    """
    Name of one side of a session, as it appears in log lines.

    The client role pairs LOCAL (near) with TUNNEL (far); the server role
    pairs TUNNEL (near) with TARGET (far).
    """

    LOCAL = "local"
    TUNNEL = "tunnel"
    TARGET = "target"


class SessionState(str, Enum):
    """
    Session lifecycle state.

    State transitions:
        DIALING -> RELAYING (peer connected)
        DIALING -> CLOSED (dial failed, or near leg closed or reset while dialing)
        RELAYING -> CLOSED (either leg closed or errored)
    """

    DIALING = "dialing"
    RELAYING = "relaying"
    CLOSED = "closed"


# =============================================================================
# Configuration Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Value of LOG_LEVEL and --log-level.

    INFO shows connects, traffic reports and close summaries. WARNING keeps
    only failed dials and leg errors. DEBUG adds socket tuning and listener
    details; FULL logs at TRACE with loguru backtrace and diagnose enabled.
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
