"""
Tunnel engine: listeners, peer dialing, sessions and the byte relay.

Each accepted connection becomes a Session that dials its peer, relays bytes
in both directions and is torn down exactly once.
"""

from pipetunnel.tunnel.acceptor import PlainListener, TlsListener
from pipetunnel.tunnel.dialer import PeerDialer
from pipetunnel.tunnel.relay import RelayOutcome, pump, relay
from pipetunnel.tunnel.service import (
    TunnelService,
    build_client_service,
    build_server_service,
)
from pipetunnel.tunnel.session import Session, next_session_id

__all__ = [
    "PlainListener",
    "TlsListener",
    "PeerDialer",
    "RelayOutcome",
    "pump",
    "relay",
    "TunnelService",
    "build_client_service",
    "build_server_service",
    "Session",
    "next_session_id",
]
