import asyncio
import socket
from unittest.mock import MagicMock

import pytest

from pipetunnel.tunnel.socket_policy import apply_socket_policy, install_error_observer


@pytest.mark.integration
@pytest.mark.asyncio
async def test_policy_sets_nodelay_and_keepalive(echo_port):
    reader, writer = await asyncio.open_connection("127.0.0.1", echo_port)
    try:
        apply_socket_policy(writer)
        sock = writer.get_extra_info("socket")

        assert sock.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY) != 0
        assert sock.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE) != 0
        if hasattr(socket, "TCP_KEEPIDLE"):
            assert sock.getsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE) == 10
    finally:
        writer.close()


@pytest.mark.unit
def test_policy_skips_writer_without_socket():
    writer = MagicMock()
    writer.get_extra_info.return_value = None

    apply_socket_policy(writer)


@pytest.mark.unit
def test_policy_ignores_closed_socket():
    sock = MagicMock()
    sock.setsockopt.side_effect = OSError(9, "Bad file descriptor")
    writer = MagicMock()
    writer.get_extra_info.return_value = sock

    apply_socket_policy(writer)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_error_observer_swallows_socket_errors(monkeypatch):
    loop = asyncio.get_running_loop()
    default = MagicMock()
    monkeypatch.setattr(loop, "default_exception_handler", default)
    install_error_observer(loop)
    try:
        loop.call_exception_handler(
            {"message": "Fatal read error", "exception": ConnectionResetError()}
        )
        default.assert_not_called()

        context = {"message": "boom", "exception": ValueError("not a socket error")}
        loop.call_exception_handler(context)
        default.assert_called_once_with(context)
    finally:
        loop.set_exception_handler(None)
