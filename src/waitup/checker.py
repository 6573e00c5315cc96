"""Single connection attempts.

A connection checker performs exactly one attempt per call and either returns
or raises a ``ConnectionFailure`` subclass describing why the endpoint is not
ready. Retrying is the prober's job, never the checker's.

``DefaultConnectionChecker`` resolves and connects with asyncio sockets for
TCP targets and issues one ``GET`` with ``httpx.AsyncClient`` for HTTP
targets.

Extensibility:
    Any object satisfying the ``ConnectionChecker`` protocol can be handed to
    the prober or orchestrator, e.g. a fake that fails N times and then
    succeeds.
"""

from __future__ import annotations

import asyncio
import contextlib
import socket
from typing import Protocol, runtime_checkable

import httpx

from waitup.errors import (
    ConnectTimeoutError,
    DnsResolutionError,
    HttpRequestError,
    TcpConnectError,
    UnexpectedStatusError,
)
from waitup.logging import get_logger
from waitup.target import HttpTarget, Target, TcpTarget

logger = get_logger(__name__)

__all__ = ["ConnectionChecker", "DefaultConnectionChecker"]


@runtime_checkable
class ConnectionChecker(Protocol):
    """Protocol for one connection attempt against a target."""

    name: str

    async def check(self, target: Target, timeout: float) -> None:
        """Attempt to reach ``target`` once within ``timeout`` seconds.

        Raises:
            ConnectionFailure: If the attempt did not succeed.
        """
        ...  # pragma: no cover


class _BorrowedTransport(httpx.AsyncBaseTransport):
    """Forwards requests to a caller-owned transport without closing it."""

    def __init__(self, transport: httpx.AsyncBaseTransport) -> None:
        self._transport = transport

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        return None


class DefaultConnectionChecker:
    """Checks TCP targets with asyncio sockets and HTTP targets with httpx.

    Args:
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in
            tests. Defaults to httpx's network transport. The caller owns an
            injected transport; the checker never closes it.
    """

    name = "default"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = _BorrowedTransport(transport) if transport is not None else None

    async def check(self, target: Target, timeout: float) -> None:
        if isinstance(target, TcpTarget):
            await self.check_tcp(target, timeout)
        elif isinstance(target, HttpTarget):
            await self.check_http(target, timeout)
        else:
            raise TypeError(f"Unsupported target type: {type(target).__name__}")

    async def check_tcp(self, target: TcpTarget, timeout: float) -> None:
        """Resolve the host and connect to each address in turn.

        The whole attempt, resolution included, is bounded by ``timeout``.

        Raises:
            DnsResolutionError: If the host does not resolve.
            TcpConnectError: If every resolved address refused the connection.
            ConnectTimeoutError: If the attempt ran out of time.
        """
        loop = asyncio.get_running_loop()
        last_error: OSError | None = None
        try:
            async with asyncio.timeout(timeout):
                try:
                    addresses = await loop.getaddrinfo(
                        target.host, target.port, type=socket.SOCK_STREAM
                    )
                except OSError as e:
                    raise DnsResolutionError(target.host, str(e)) from e
                if not addresses:
                    raise DnsResolutionError(target.host, "no addresses found")

                for _family, _type, _proto, _canonname, sockaddr in addresses:
                    try:
                        _reader, writer = await asyncio.open_connection(sockaddr[0], sockaddr[1])
                    except OSError as e:
                        logger.debug("Connect to %s failed: %s", sockaddr[0], e)
                        last_error = e
                        continue
                    writer.close()
                    with contextlib.suppress(OSError):
                        await writer.wait_closed()
                    return
        except TimeoutError as e:
            raise ConnectTimeoutError(target.display(), timeout) from e

        reason = str(last_error) if last_error is not None else "no addresses available"
        raise TcpConnectError(target.host, target.port, reason)

    async def check_http(self, target: HttpTarget, timeout: float) -> None:
        """Issue one GET and compare the status with the expected one.

        Redirects are not followed, so a 301 only passes when 301 is expected.

        Raises:
            UnexpectedStatusError: If the response status differs.
            HttpRequestError: If the request failed below the HTTP level.
            ConnectTimeoutError: If the attempt ran out of time.
        """
        try:
            async with asyncio.timeout(timeout):
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(timeout),
                    follow_redirects=False,
                    transport=self._transport,
                ) as client:
                    response = await client.get(target.url, headers=list(target.headers))
        except (TimeoutError, httpx.TimeoutException) as e:
            raise ConnectTimeoutError(target.url, timeout) from e
        except httpx.RequestError as e:
            raise HttpRequestError(target.url, str(e) or type(e).__name__) from e
        except (httpx.InvalidURL, ValueError) as e:
            # Request could not be built, e.g. a header that does not encode.
            raise HttpRequestError(target.url, f"invalid request: {e}") from e

        if response.status_code != target.expected_status:
            raise UnexpectedStatusError(target.url, target.expected_status, response.status_code)
