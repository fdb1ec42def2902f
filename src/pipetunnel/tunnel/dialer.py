"""Outbound plaintext TCP dialing to the statically configured peer."""

import asyncio

from pipetunnel.exceptions import DialError
from pipetunnel.tunnel.socket_policy import apply_socket_policy


class PeerDialer:
    """Opens the far leg of every session to one fixed host and port."""

    def __init__(self, host: str, port: int, timeout: float):
        self.host = host
        self.port = port
        self.timeout = timeout

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    async def dial(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """
        Connect to the peer and apply the socket policy.

        Raises:
            DialError: Connection refused, unreachable, or timed out.
                Failed dials are never retried.
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise DialError(
                self.host, self.port, f"timed out after {self.timeout:g}s"
            ) from None
        except OSError as e:
            raise DialError(self.host, self.port, str(e) or type(e).__name__) from e

        apply_socket_policy(writer)
        return reader, writer
