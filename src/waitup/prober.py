"""Single-target probe loop.

The prober drives one target through repeated connection attempts until it
reaches a terminal state:

- SUCCEEDED: an attempt reached the target.
- EXHAUSTED: ``max_retries`` attempts failed.
- TIMED_OUT: the overall deadline passed.
- REJECTED: the policy gate refused the target (never retried).
- CANCELLED: the shared cancellation token fired.

Every state but CANCELLED is reported as a ``TargetResult``; cancellation is
raised as ``WaitCancelledError``. Both suspension points (the attempt itself
and the sleep between attempts) race the cancellation token, so a cancelled
prober stops within one event-loop tick.

Usage:
    result = await wait_for_single_target(tcp_target("db", 5432), WaitConfig(timeout=10))
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from waitup.backoff import ExponentialBackoffStrategy, RetryStrategy
from waitup.cancellation import CancellationToken
from waitup.checker import ConnectionChecker, DefaultConnectionChecker
from waitup.errors import ConnectionFailure, PolicyError, WaitCancelledError
from waitup.logging import get_logger
from waitup.policy import PolicyGate
from waitup.target import Target
from waitup.types import ProbeState, TargetResult, WaitConfig

logger = get_logger(__name__)

__all__ = [
    "MIN_SLEEP_INTERVAL",
    "OVERALL_TIMEOUT_MESSAGE",
    "Prober",
    "wait_for_single_target",
]

T = TypeVar("T")

# Floor for the sleep between attempts, so a zero interval cannot spin.
MIN_SLEEP_INTERVAL: float = 0.01

OVERALL_TIMEOUT_MESSAGE = "Overall timeout exceeded"


async def race_cancellation(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    """Await ``awaitable`` unless ``token`` is cancelled first.

    The losing side is cancelled and not awaited to completion.

    Raises:
        WaitCancelledError: If the token fired before ``awaitable`` finished.
    """
    if token is None:
        return await awaitable
    if token.is_cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise WaitCancelledError()

    work = asyncio.ensure_future(awaitable)
    cancelled = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({work, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancelled.cancel()
        if not work.done():
            work.cancel()

    if work.done() and not work.cancelled():
        return work.result()
    raise WaitCancelledError()


class Prober:
    """Runs the retry loop for one target at a time.

    A prober holds no per-target state, so one instance can serve every
    target of a run concurrently.

    Args:
        checker: Performs single connection attempts.
        gate: Policy checks run before every attempt.
        retry_strategy: Computes the sleep between attempts. Defaults to
            exponential backoff capped at the config's ``max_interval``.
        time_func: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        checker: ConnectionChecker | None = None,
        gate: PolicyGate | None = None,
        retry_strategy: RetryStrategy | None = None,
        time_func: Callable[[], float] = time.monotonic,
    ) -> None:
        self.checker: ConnectionChecker = checker or DefaultConnectionChecker()
        self.gate = gate or PolicyGate()
        self.retry_strategy = retry_strategy
        self._time = time_func

    def _strategy_for(self, config: WaitConfig) -> RetryStrategy:
        if self.retry_strategy is not None:
            return self.retry_strategy
        return ExponentialBackoffStrategy(max_interval=config.max_interval)

    async def probe(self, target: Target, config: WaitConfig) -> TargetResult:
        """Probe ``target`` until it succeeds or the run gives up on it.

        Args:
            target: The endpoint to wait for.
            config: Run policy.

        Returns:
            The terminal result for the target.

        Raises:
            WaitCancelledError: If the cancellation token fired.
        """
        token = config.cancellation_token
        strategy = self._strategy_for(config)
        strategy.reset()
        log = logger.with_context(target=target.display())

        start = self._time()
        deadline = start + config.timeout
        interval = config.initial_interval
        attempts = 0
        last_error: str | None = None

        def finish(state: ProbeState, error: str | None = None) -> TargetResult:
            return TargetResult(
                target=target,
                success=state is ProbeState.SUCCEEDED,
                elapsed=self._time() - start,
                attempts=attempts,
                error=error,
                state=state,
            )

        while True:
            if token is not None and token.is_cancelled:
                log.info("Probe cancelled", extra={"attempt": attempts, "state": ProbeState.CANCELLED})
                raise WaitCancelledError()

            now = self._time()
            if now >= deadline:
                log.warning(
                    "Gave up after %d attempt(s): %s",
                    attempts,
                    last_error or OVERALL_TIMEOUT_MESSAGE,
                    extra={"attempt": attempts, "state": ProbeState.TIMED_OUT},
                )
                return finish(ProbeState.TIMED_OUT, OVERALL_TIMEOUT_MESSAGE)

            attempts += 1
            attempt_timeout = min(config.connection_timeout, deadline - now)

            try:
                self.gate.check(target)
            except PolicyError as e:
                log.warning(
                    "Attempt rejected by policy: %s",
                    e,
                    extra={"attempt": attempts, "state": ProbeState.REJECTED},
                )
                return finish(ProbeState.REJECTED, str(e))

            try:
                await race_cancellation(self.checker.check(target, attempt_timeout), token)
            except ConnectionFailure as e:
                last_error = str(e)
                log.debug("Attempt failed: %s", e, extra={"attempt": attempts})
            except WaitCancelledError:
                log.info("Probe cancelled", extra={"attempt": attempts, "state": ProbeState.CANCELLED})
                raise
            else:
                log.debug(
                    "Target is ready",
                    extra={"attempt": attempts, "state": ProbeState.SUCCEEDED},
                )
                return finish(ProbeState.SUCCEEDED)

            if not strategy.should_retry(attempts, config.max_retries):
                message = f"Max retries ({config.max_retries}) exceeded: {last_error}"
                log.warning("%s", message, extra={"attempt": attempts, "state": ProbeState.EXHAUSTED})
                return finish(ProbeState.EXHAUSTED, message)

            remaining = deadline - self._time()
            if remaining > 0:
                delay = min(max(interval, MIN_SLEEP_INTERVAL), remaining)
                await race_cancellation(asyncio.sleep(delay), token)

            interval = strategy.next_interval(interval)


async def wait_for_single_target(
    target: Target,
    config: WaitConfig | None = None,
    checker: ConnectionChecker | None = None,
) -> TargetResult:
    """Wait for one target using the default prober.

    Args:
        target: The endpoint to wait for.
        config: Run policy; defaults to ``WaitConfig()``.
        checker: Alternate connection checker.

    Returns:
        The terminal result for the target.

    Raises:
        WaitCancelledError: If the config's cancellation token fired.
    """
    config = config or WaitConfig()
    prober = Prober(checker=checker, gate=PolicyGate.from_config(config))
    return await prober.probe(target, config)
