"""Pytest configuration and fixtures."""

# std imports
import socket
import asyncio
import contextlib

# 3rd party
import pytest
import pytest_asyncio


@pytest.fixture(scope="module", params=["127.0.0.1"])
def bind_host(request):
    """Localhost bind address."""
    return request.param


@pytest.fixture
def unused_tcp_port(bind_host):
    """TCP port number on ``bind_host`` with nothing listening."""
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as sock:
        sock.bind((bind_host, 0))
        return sock.getsockname()[1]


@pytest_asyncio.fixture
async def start_server(bind_host):
    """
    Return coroutine function starting a TCP server for a test.

    The given ``handler(reader, writer)`` is served on an ephemeral port of
    ``bind_host``; the coroutine returns that port number.  Servers are
    closed when the test ends.
    """
    servers = []

    async def _start(handler):
        server = await asyncio.start_server(handler, bind_host, 0)
        servers.append(server)
        return server.sockets[0].getsockname()[1]

    yield _start

    for server in servers:
        server.close()
