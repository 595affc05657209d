"""Shared fixtures for protoframe tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from protoframe import MemoryTransport, ProtoframePubsub

from tests.protocols import cache_protocol, serve_cache


@pytest.fixture
def transports():
    """A linked pair of in-memory transports: (server side, client side)."""
    left, right = MemoryTransport.pair()
    yield left, right
    left.close()
    right.close()


@pytest.fixture
async def loop_errors():
    """Collect contexts passed to the event loop exception handler."""
    loop = asyncio.get_running_loop()
    errors: list[dict[str, Any]] = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, context: errors.append(context))
    yield errors
    loop.set_exception_handler(previous)


@pytest.fixture
async def cache(transports):
    """Cache server and client connectors over an in-memory pair."""
    server_transport, client_transport = transports
    server = ProtoframePubsub(cache_protocol, server_transport)
    client = ProtoframePubsub(cache_protocol, client_transport)
    data = serve_cache(server)
    yield server, client, data
    server.destroy()
    client.destroy()
