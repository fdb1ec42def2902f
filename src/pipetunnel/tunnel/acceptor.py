"""
Listening side of a tunnel role.

A Listener binds one endpoint and hands every established connection to a
handler. Plain TCP and TLS-terminating listeners differ only in how the
connection is established; sessions and relaying are shared.
"""

import asyncio
import ssl
from collections.abc import Awaitable, Callable

from pipetunnel.exceptions import BindError
from pipetunnel.utils.logger import get_logger

logger = get_logger(__name__)

HANDSHAKE_TIMEOUT_S = 10.0

ConnectionHandler = Callable[
    [asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]
]


class PlainListener:
    """Plain TCP listener."""

    transport_name = "TCP"

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port

    async def start(self, handler: ConnectionHandler) -> asyncio.Server:
        """
        Bind and start accepting.

        Raises:
            BindError: If the address cannot be bound.
        """
        try:
            server = await asyncio.start_server(handler, self.host, self.port)
        except OSError as e:
            if e.errno in (98, 48):  # Address already in use (Linux 98, macOS 48)
                raise BindError(self.host, self.port, "Address already in use.") from e
            raise BindError(self.host, self.port, str(e)) from e

        addrs = ", ".join(str(sock.getsockname()) for sock in server.sockets)
        logger.debug(f"{self.transport_name} listener bound on {addrs}")
        return server


class TlsListener(PlainListener):
    """
    TLS-terminating listener.

    Connections are accepted as plain TCP and upgraded in place; the handler
    only runs once the handshake has completed. A failed or stalled
    handshake drops that connection and leaves the listener running.
    """

    transport_name = "TLS"

    def __init__(
        self,
        host: str,
        port: int,
        context: ssl.SSLContext,
        handshake_timeout: float = HANDSHAKE_TIMEOUT_S,
    ):
        super().__init__(host, port)
        self.context = context
        self.handshake_timeout = handshake_timeout

    async def start(self, handler: ConnectionHandler) -> asyncio.Server:
        async def handle_tls(
            reader: asyncio.StreamReader, writer: asyncio.StreamWriter
        ) -> None:
            peer = writer.get_extra_info("peername")
            try:
                await writer.start_tls(
                    self.context, ssl_handshake_timeout=self.handshake_timeout
                )
            except (OSError, asyncio.TimeoutError) as e:
                logger.warning(f"TLS handshake failed from {peer}: {e}")
                writer.close()
                return
            await handler(reader, writer)

        return await super().start(handle_tls)


def bound_port(server: asyncio.Server) -> int:
    """Return the port a started server actually listens on."""
    return server.sockets[0].getsockname()[1]
