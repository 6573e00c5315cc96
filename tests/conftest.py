"""Shared pytest fixtures for waitup tests."""

from __future__ import annotations

import asyncio
import os
import socket
from collections.abc import AsyncIterator, Iterator
from unittest.mock import patch

import pytest
import pytest_asyncio

from waitup.types import WaitConfig


@pytest.fixture
def fast_config() -> WaitConfig:
    """A WaitConfig with short timings so retry loops finish quickly."""
    return WaitConfig(
        timeout=2.0,
        initial_interval=0.01,
        max_interval=0.05,
        connection_timeout=0.5,
    )


@pytest.fixture
def clean_env() -> Iterator[None]:
    """Run the test with no WAITUP_* variables in the environment."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("WAITUP_")}
    with patch.dict(os.environ, env, clear=True):
        yield


@pytest.fixture
def closed_port() -> int:
    """A localhost port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest_asyncio.fixture
async def tcp_server() -> AsyncIterator[tuple[str, int]]:
    """A TCP server on 127.0.0.1 that accepts and immediately closes connections."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield "127.0.0.1", port
    finally:
        server.close()
        await server.wait_closed()
