"""Fake connection checkers for waitup tests.

These fakes satisfy the ``ConnectionChecker`` protocol without touching the
network, so prober and orchestrator behavior can be tested deterministically.

Usage Guidelines:

    **Direct instantiation** is the preferred approach for most tests::

        from tests.mocks import FlakyChecker

        def test_example():
            checker = FlakyChecker(failures=2)
            # ... pass checker to Prober or wait_for_connection ...
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from waitup.errors import ConnectionFailure, TcpConnectError
from waitup.target import Target


class RecordingChecker:
    """Base fake that records every attempt.

    Attributes:
        calls: (target display, timeout) for every check() call, in order.
    """

    name = "recording"

    def __init__(self) -> None:
        self.calls: list[tuple[str, float]] = []

    def attempts_for(self, target: Target) -> int:
        return sum(1 for display, _ in self.calls if display == target.display())

    async def check(self, target: Target, timeout: float) -> None:
        self.calls.append((target.display(), timeout))
        await asyncio.sleep(0)
        await self.attempt(target, timeout)

    async def attempt(self, target: Target, timeout: float) -> None:
        return None


class FlakyChecker(RecordingChecker):
    """Fails the first ``failures`` attempts per target, then succeeds."""

    name = "flaky"

    def __init__(self, failures: int = 0) -> None:
        super().__init__()
        self.failures = failures

    async def attempt(self, target: Target, timeout: float) -> None:
        if self.attempts_for(target) <= self.failures:
            raise TcpConnectError("fake", 1, f"refused (attempt {self.attempts_for(target)})")


class ScriptedChecker(RecordingChecker):
    """Reachability decided per target display string.

    Targets in ``reachable`` succeed on every attempt; all others fail with
    ``TcpConnectError``. Targets in ``hang`` never complete an attempt.
    """

    name = "scripted"

    def __init__(self, reachable: Iterable[str] = (), hang: Iterable[str] = ()) -> None:
        super().__init__()
        self.reachable = set(reachable)
        self.hang = set(hang)

    async def attempt(self, target: Target, timeout: float) -> None:
        display = target.display()
        if display in self.hang:
            await asyncio.sleep(3600)
        if display not in self.reachable:
            raise TcpConnectError(display, 1, "connection refused")


class NeverReadyChecker(RecordingChecker):
    """Fails every attempt with the given failure."""

    name = "never"

    def __init__(self, failure: ConnectionFailure | None = None) -> None:
        super().__init__()
        self.failure = failure

    async def attempt(self, target: Target, timeout: float) -> None:
        raise self.failure or TcpConnectError(target.display(), 1, "connection refused")


class HangingChecker(RecordingChecker):
    """Never completes an attempt unless cancelled."""

    name = "hanging"

    def __init__(self) -> None:
        super().__init__()
        self.cancelled = 0

    async def attempt(self, target: Target, timeout: float) -> None:
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
