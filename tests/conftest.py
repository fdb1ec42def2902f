"""
Pytest configuration and shared fixtures.

Socket tests run real listeners on 127.0.0.1 with ephemeral ports.
"""

import asyncio
import socket

import pytest
import pytest_asyncio
from loguru import logger

from pipetunnel.config import ClientConfig, ServerConfig
from pipetunnel.tunnel.service import build_client_service, build_server_service


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01):
    """Poll until predicate() is truthy or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("condition not reached in time")
        await asyncio.sleep(interval)


def free_port() -> int:
    """A port nothing listens on (bound once, then released)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TargetStub:
    """
    Target service that hands every accepted connection to the test.

    Connections stay open until the test closes them or the fixture ends.
    """

    def __init__(self):
        self.accepted: asyncio.Queue = asyncio.Queue()
        self.server: asyncio.Server | None = None
        self._done = asyncio.Event()
        self._writers: list[asyncio.StreamWriter] = []

    async def _handle(self, reader, writer):
        self._writers.append(writer)
        await self.accepted.put((reader, writer))
        await self._done.wait()

    async def start(self) -> int:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self.server.sockets[0].getsockname()[1]

    async def next_connection(self, timeout: float = 2.0):
        return await asyncio.wait_for(self.accepted.get(), timeout=timeout)

    def close(self):
        self._done.set()
        for writer in self._writers:
            writer.close()
        if self.server is not None:
            self.server.close()


async def _echo(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
    try:
        while True:
            data = await reader.read(65536)
            if not data:
                break
            writer.write(data)
            await writer.drain()
    except OSError:
        pass
    finally:
        writer.close()


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda m: messages.append(m.record["message"]), level="TRACE"
    )
    yield messages
    logger.remove(handler_id)


@pytest_asyncio.fixture
async def echo_port():
    """Port of a loopback echo server."""
    server = await asyncio.start_server(_echo, "127.0.0.1", 0)
    yield server.sockets[0].getsockname()[1]
    server.close()


@pytest_asyncio.fixture
async def target():
    """A TargetStub whose connections the test drives directly."""
    stub = TargetStub()
    await stub.start()
    yield stub
    stub.close()


def _shutdown(service):
    service.close()
    for session in list(service.sessions.values()):
        session.teardown("shutdown")


@pytest_asyncio.fixture
async def make_server():
    """Factory for started server-role services bound to an ephemeral port."""
    services = []

    async def factory(target_port: int, tls: bool = False, **overrides):
        config = ServerConfig(
            TUNNEL_PORT=0,
            TARGET_PORT=target_port,
            STATS_INTERVAL_MS=overrides.pop("STATS_INTERVAL_MS", 50),
            CONNECT_TIMEOUT_MS=overrides.pop("CONNECT_TIMEOUT_MS", 2000),
            **overrides,
        )
        service = build_server_service(config, tls=tls)
        await service.start()
        services.append(service)
        return service

    yield factory
    for service in services:
        _shutdown(service)


@pytest_asyncio.fixture
async def make_client():
    """Factory for started client-role services bound to an ephemeral port."""
    services = []

    async def factory(server_port: int, **overrides):
        config = ClientConfig(
            LOCAL_PORT=0,
            SERVER_PORT=server_port,
            STATS_INTERVAL_MS=overrides.pop("STATS_INTERVAL_MS", 50),
            CONNECT_TIMEOUT_MS=overrides.pop("CONNECT_TIMEOUT_MS", 2000),
            **overrides,
        )
        service = build_client_service(config)
        await service.start()
        services.append(service)
        return service

    yield factory
    for service in services:
        _shutdown(service)
