"""Multi-target orchestration.

``wait_for_connection`` runs one prober task per target and combines the
outcomes under one of two strategies:

- ALL (``WaitForAllStrategy``): every target must become reachable. The run
  waits for every prober to finish; any failure raises ``WaitTimeoutError``
  naming each failed target.
- ANY (``WaitForAnyStrategy``): the first reachable target wins and the other
  probers are cancelled. If every target fails, ``WaitTimeoutError`` names all
  of them, in input order.

Cancellation via the config's token propagates as ``WaitCancelledError``
after all outstanding prober tasks have been cancelled.

Usage:
    result = await wait_for_connection(
        [tcp_target("db", 5432), tcp_target("cache", 6379)],
        WaitConfig(timeout=60),
    )
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from waitup.checker import ConnectionChecker
from waitup.errors import WaitTimeoutError
from waitup.logging import get_logger
from waitup.policy import PolicyGate
from waitup.prober import Prober
from waitup.target import Target
from waitup.types import ProbeState, TargetResult, WaitConfig, WaitResult

logger = get_logger(__name__)

__all__ = [
    "ConnectionStrategy",
    "WaitForAllStrategy",
    "WaitForAnyStrategy",
    "strategy_for",
    "wait_for_connection",
]


@runtime_checkable
class ConnectionStrategy(Protocol):
    """Protocol for combining per-target probes into one result."""

    name: str

    async def execute(
        self, targets: Sequence[Target], prober: Prober, config: WaitConfig
    ) -> WaitResult:
        """Probe ``targets`` and reduce their outcomes.

        Raises:
            WaitTimeoutError: If the strategy was not satisfied.
            WaitCancelledError: If the run was cancelled.
        """
        ...  # pragma: no cover


async def _cancel_all(tasks: Sequence[asyncio.Task[TargetResult]]) -> None:
    for task in tasks:
        task.cancel()
    # Let cancelled tasks unwind so their connections are released.
    await asyncio.gather(*tasks, return_exceptions=True)


def _all_rejected(failed: Sequence[TargetResult]) -> bool:
    return bool(failed) and all(r.state is ProbeState.REJECTED for r in failed)


def _spawn(
    targets: Sequence[Target], prober: Prober, config: WaitConfig
) -> list[asyncio.Task[TargetResult]]:
    return [
        asyncio.create_task(prober.probe(target, config), name=f"probe:{target.display()}")
        for target in targets
    ]


class WaitForAllStrategy:
    """Succeed only when every target becomes reachable."""

    name = "all"

    async def execute(
        self, targets: Sequence[Target], prober: Prober, config: WaitConfig
    ) -> WaitResult:
        start = time.monotonic()
        tasks = _spawn(targets, prober, config)
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                error = None if task.cancelled() else task.exception()
                if error is not None:
                    raise error
        except BaseException:
            await _cancel_all(tasks)
            raise

        # No task raised, so every one finished with a result.
        results = tuple(task.result() for task in tasks)
        result = WaitResult(
            success=all(r.success for r in results),
            elapsed=time.monotonic() - start,
            attempts=sum(r.attempts for r in results),
            target_results=results,
        )
        if not result.success:
            failed_results = [r for r in results if not r.success]
            failed = [r.target.display() for r in failed_results]
            logger.warning(
                "%d of %d target(s) not ready: %s",
                len(failed),
                len(results),
                ", ".join(failed),
                extra={"strategy": self.name},
            )
            raise WaitTimeoutError(failed, result, rejected=_all_rejected(failed_results))
        return result


class WaitForAnyStrategy:
    """Succeed as soon as any one target becomes reachable."""

    name = "any"

    async def execute(
        self, targets: Sequence[Target], prober: Prober, config: WaitConfig
    ) -> WaitResult:
        start = time.monotonic()
        tasks = _spawn(targets, prober, config)
        pending: set[asyncio.Task[TargetResult]] = set(tasks)
        winner: TargetResult | None = None
        try:
            while pending and winner is None:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    # Raises WaitCancelledError if this prober was cancelled.
                    outcome = task.result()
                    if outcome.success and winner is None:
                        winner = outcome
        finally:
            if pending:
                await _cancel_all(list(pending))

        if winner is not None:
            return WaitResult(
                success=True,
                elapsed=time.monotonic() - start,
                attempts=winner.attempts,
                target_results=(winner,),
            )

        results = tuple(task.result() for task in tasks)
        names = [target.display() for target in targets]
        logger.warning(
            "None of %d target(s) became ready: %s",
            len(targets),
            ", ".join(names),
            extra={"strategy": self.name},
        )
        raise WaitTimeoutError(
            names,
            WaitResult(
                success=False,
                elapsed=time.monotonic() - start,
                attempts=sum(r.attempts for r in results),
                target_results=results,
            ),
            rejected=_all_rejected(results),
        )


def strategy_for(config: WaitConfig) -> ConnectionStrategy:
    """Pick the strategy selected by ``config.wait_for_any``."""
    return WaitForAnyStrategy() if config.wait_for_any else WaitForAllStrategy()


async def wait_for_connection(
    targets: Sequence[Target],
    config: WaitConfig | None = None,
    checker: ConnectionChecker | None = None,
    strategy: ConnectionStrategy | None = None,
) -> WaitResult:
    """Wait for ``targets`` to become reachable.

    Args:
        targets: Endpoints to probe. An empty sequence succeeds immediately.
        config: Run policy; defaults to ``WaitConfig()``.
        checker: Alternate connection checker, e.g. a test fake.
        strategy: Alternate combination strategy; defaults to ALL or ANY per
            ``config.wait_for_any``.

    Returns:
        The aggregate result of a successful run.

    Raises:
        WaitTimeoutError: If the strategy was not satisfied. The exception
            carries the failed target names and the full ``WaitResult``.
        WaitCancelledError: If the config's cancellation token fired.
    """
    config = config or WaitConfig()
    if not targets:
        return WaitResult(success=True, elapsed=0.0, attempts=0, target_results=())

    strategy = strategy or strategy_for(config)
    # One gate per run: all probers share the same rate limiter.
    prober = Prober(checker=checker, gate=PolicyGate.from_config(config))
    logger.debug(
        "Waiting for %d target(s)",
        len(targets),
        extra={"strategy": strategy.name},
    )
    return await strategy.execute(targets, prober, config)
