"""
Tunnel service: listener + dialer + relay for one role.

Flow per accepted connection:
    accept -> Session (DIALING, stats timer) -> dial peer -> RELAYING
           -> relay until either leg ends -> single teardown
"""

import asyncio

from pipetunnel.config import ClientConfig, ServerConfig
from pipetunnel.exceptions import DialError
from pipetunnel.models.enums import Leg, Role
from pipetunnel.tunnel.acceptor import PlainListener, TlsListener, bound_port
from pipetunnel.tunnel.dialer import PeerDialer
from pipetunnel.tunnel.relay import relay, watch_dialing
from pipetunnel.tunnel.session import Session
from pipetunnel.tunnel.socket_policy import apply_socket_policy
from pipetunnel.tunnel.tls import load_server_context
from pipetunnel.utils.logger import get_logger

logger = get_logger(__name__)


def _format_peer(peername) -> str:
    if isinstance(peername, tuple) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return str(peername)


class TunnelService:
    """Accepts connections for one role and relays each to the configured peer."""

    def __init__(
        self,
        role: Role,
        listener: PlainListener,
        dialer: PeerDialer,
        near_leg: Leg,
        far_leg: Leg,
        stats_interval: float,
    ):
        self.role = role
        self.listener = listener
        self.dialer = dialer
        self.near_leg = near_leg
        self.far_leg = far_leg
        self.stats_interval = stats_interval
        self.sessions: dict[int, Session] = {}
        self._server: asyncio.Server | None = None
        self._bound_port: int | None = None

    @property
    def port(self) -> int:
        """Port the listener is bound to (resolves port 0)."""
        if self._bound_port is None:
            return self.listener.port
        return self._bound_port

    # -------------------------------------------------------------------------
    # Per-connection handling
    # -------------------------------------------------------------------------

    async def handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Run one session from accept to teardown."""
        apply_socket_policy(writer)
        session = Session(
            self.role,
            self.near_leg,
            self.far_leg,
            reader,
            writer,
            self.stats_interval,
        )
        self.sessions[session.id] = session
        prefix = session.log_prefix

        peer = _format_peer(writer.get_extra_info("peername"))
        if self.listener.transport_name == "TLS":
            logger.info(f"{prefix} TLS {self.near_leg.value} connected from {peer}")
        else:
            logger.info(f"{prefix} {self.near_leg.value} connection from {peer}")

        session.start_stats()

        try:
            dialed = await self._dial_far_leg(session)
            if dialed is None:
                return

            peer_reader, peer_writer = dialed
            if session.is_closed:
                peer_writer.close()
                return

            logger.info(
                f"{prefix} {self.far_leg.value} connected to {self.dialer.address}"
            )
            session.attach_peer(peer_reader, peer_writer)
            await relay(session)

        except asyncio.CancelledError:
            session.teardown("shutdown")
            raise
        except Exception as e:
            logger.exception(f"{prefix} Unexpected error in connection handler: {e}")
            session.teardown("internal error", e)
        finally:
            await session.wait_closed()
            self.sessions.pop(session.id, None)
            logger.debug(f"{prefix} Connection handler finished.")

    async def _dial_far_leg(
        self, session: Session
    ) -> tuple[asyncio.StreamReader, asyncio.StreamWriter] | None:
        """
        Dial the far leg while watching the near leg.

        Returns:
            The far leg streams, or None if the session was torn down because
            the dial failed or the near leg went away first.
        """
        prefix = session.log_prefix
        dial = asyncio.create_task(self.dialer.dial())
        watch = asyncio.create_task(watch_dialing(session))
        try:
            await asyncio.wait({dial, watch}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (dial, watch):
                task.cancel()
            await asyncio.gather(dial, watch, return_exceptions=True)

        if not watch.cancelled():
            outcome = watch.result()
            if not dial.cancelled() and dial.exception() is None:
                dial.result()[1].close()
            if outcome.error is not None:
                logger.warning(
                    f"{prefix} {outcome.leg.value} error while dialing: {outcome.error}"
                )
            session.teardown(outcome.reason, outcome.error)
            return None

        try:
            return dial.result()
        except DialError as e:
            logger.warning(f"{prefix} {self.far_leg.value} error: {e}")
            session.teardown(f"{self.far_leg.value} dial failed", e)
            return None

    # -------------------------------------------------------------------------
    # Listener lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> asyncio.Server:
        """
        Bind the listener.

        Raises:
            BindError: If the listening address cannot be bound.
        """
        self._server = await self.listener.start(self.handle_connection)
        self._bound_port = bound_port(self._server)
        logger.info(
            f"[{self.role.value}] {self.listener.transport_name} listening on "
            f"{self.listener.host}:{self.port} -> {self.far_leg.value} "
            f"{self.dialer.address}"
        )
        return self._server

    async def serve_forever(self) -> None:
        """
        Bind (if needed) and accept until cancelled.

        The listener is closed on exit without waiting for open sessions.
        """
        if self._server is None:
            await self.start()
        try:
            # start_server() already accepts. Server.serve_forever() would
            # wait for every open connection on cancel, so park here instead.
            await asyncio.get_running_loop().create_future()
        except asyncio.CancelledError:
            logger.info(f"[{self.role.value}] listener task cancelled.")
            raise
        finally:
            self.close()

    def close(self) -> None:
        """Stop accepting. Running sessions are not drained. Safe to call twice."""
        server, self._server = self._server, None
        if server is not None:
            server.close()
            logger.info(f"[{self.role.value}] listener on port {self.port} closed.")


# =============================================================================
# Role Factories
# =============================================================================


def build_client_service(config: ClientConfig) -> TunnelService:
    """Loopback listener that dials the tunnel server."""
    return TunnelService(
        role=Role.CLIENT,
        listener=PlainListener(config.LOCAL_BIND_IP, config.LOCAL_PORT),
        dialer=PeerDialer(config.SERVER_HOST, config.SERVER_PORT, config.connect_timeout),
        near_leg=Leg.LOCAL,
        far_leg=Leg.TUNNEL,
        stats_interval=config.stats_interval,
    )


def build_server_service(config: ServerConfig, tls: bool = False) -> TunnelService:
    """
    Public listener that dials the target.

    Raises:
        CertificateLoadError: If tls is set and the certificate or key
            cannot be loaded.
    """
    if tls:
        context = load_server_context(config.TLS_CERT, config.TLS_KEY)
        listener = TlsListener(config.TUNNEL_BIND_IP, config.TUNNEL_PORT, context)
    else:
        listener = PlainListener(config.TUNNEL_BIND_IP, config.TUNNEL_PORT)

    return TunnelService(
        role=Role.SERVER,
        listener=listener,
        dialer=PeerDialer(config.TARGET_HOST, config.TARGET_PORT, config.connect_timeout),
        near_leg=Leg.TUNNEL,
        far_leg=Leg.TARGET,
        stats_interval=config.stats_interval,
    )
