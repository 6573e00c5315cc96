"""Cooperative cancellation for probe runs.

A single :class:`CancellationToken` is shared by every prober in a run. It can
be cancelled once, from any thread, and every coroutine awaiting
:meth:`CancellationToken.wait` is woken on its own event loop.

Usage:
    token = CancellationToken()
    config = WaitConfig(cancellation_token=token)

    # elsewhere, e.g. from a signal handler or another thread
    token.cancel()
"""

from __future__ import annotations

import asyncio
import threading

from waitup.logging import get_logger

logger = get_logger(__name__)

__all__ = ["CancellationToken"]


class CancellationToken:
    """A thread-safe, set-once cancellation flag that coroutines can await."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Future[None]]] = []

    @property
    def is_cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def cancel(self) -> None:
        """Request cancellation.

        Idempotent: only the first call wakes waiters.
        """
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            waiters = self._waiters
            self._waiters = []

        logger.info("Cancellation requested, waking %d waiter(s)", len(waiters))
        for loop, future in waiters:
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(_resolve, future)

    async def wait(self) -> None:
        """Block until the token is cancelled.

        Returns immediately if cancellation was already requested.
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._cancelled:
                return
            future: asyncio.Future[None] = loop.create_future()
            entry = (loop, future)
            self._waiters.append(entry)

        try:
            await future
        finally:
            with self._lock:
                if entry in self._waiters:
                    self._waiters.remove(entry)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


def _resolve(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)
