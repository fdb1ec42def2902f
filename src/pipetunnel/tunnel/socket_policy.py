"""
Per-socket transport tuning and the catch-all error observer.

Every leg, local or peer, gets the same treatment as soon as it is connected:
no Nagle delay, and keep-alive probing after a fixed idle period.
"""

import asyncio
import socket

from pipetunnel.utils.logger import get_logger

logger = get_logger(__name__)

KEEPALIVE_IDLE_S = 10

# Linux spells the idle option TCP_KEEPIDLE, macOS TCP_KEEPALIVE
_KEEPIDLE_OPT = getattr(socket, "TCP_KEEPIDLE", None) or getattr(
    socket, "TCP_KEEPALIVE", None
)


def apply_socket_policy(writer: asyncio.StreamWriter) -> None:
    """
    Tune the socket behind a stream writer.

    Options that cannot be applied (socket already gone, platform without
    the option) are skipped.
    """
    sock = writer.get_extra_info("socket")
    if sock is None:
        return

    try:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        if _KEEPIDLE_OPT is not None:
            sock.setsockopt(socket.IPPROTO_TCP, _KEEPIDLE_OPT, KEEPALIVE_IDLE_S)
    except OSError as e:
        logger.debug(f"Socket tuning skipped: {e}")


def install_error_observer(loop: asyncio.AbstractEventLoop) -> None:
    """
    Keep unobserved connection errors from surfacing as loop faults.

    Errors a session already handles never reach this handler. Socket errors
    that do, such as a transport failing after its session
    closed, are logged at debug level. All other exceptions go to the
    default handler.
    """

    def handler(loop: asyncio.AbstractEventLoop, context: dict) -> None:
        exc = context.get("exception")
        if isinstance(exc, OSError):
            logger.debug(f"Ignored socket error: {context.get('message')}: {exc}")
            return
        loop.default_exception_handler(context)

    loop.set_exception_handler(handler)
