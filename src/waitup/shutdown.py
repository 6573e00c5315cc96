"""Signal handling for waitup runs.

This module turns SIGINT (Ctrl+C) and SIGTERM into a cancellation of the
run's shared ``CancellationToken``, so every prober stops promptly and the
run reports ``cancelled`` instead of a timeout.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable
from types import FrameType

from waitup.cancellation import CancellationToken
from waitup.logging import get_logger

logger = get_logger(__name__)

__all__ = ["ShutdownHandler", "create_shutdown_handler"]

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownHandler:
    """Cancels a run when the process is asked to stop.

    Args:
        token: The run's cancellation token.
        on_shutdown: Optional callback invoked after the token is cancelled.
    """

    def __init__(
        self,
        token: CancellationToken,
        on_shutdown: Callable[[], None] | None = None,
    ) -> None:
        self._token = token
        self._on_shutdown = on_shutdown
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def shutdown_requested(self) -> bool:
        """Check if shutdown has been requested."""
        return self._token.is_cancelled

    def request_shutdown(self) -> None:
        """Cancel the run.

        Can be called programmatically as well as from a signal.
        """
        if self._token.is_cancelled:
            return
        logger.info("Shutdown requested, cancelling probes")
        self._token.cancel()
        if self._on_shutdown is not None:
            self._on_shutdown()

    def handle_signal(self, signum: int, frame: FrameType | None) -> None:
        """Handle SIGINT/SIGTERM delivered through ``signal.signal``.

        The cancellation itself is scheduled on the event loop rather than
        run inside the signal handler.

        Args:
            signum: The signal number received.
            frame: The current stack frame (unused).
        """
        logger.info("Received %s, cancelling", signal.Signals(signum).name)
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.request_shutdown)
        else:
            self.request_shutdown()

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Install handlers for SIGINT and SIGTERM on ``loop``.

        Falls back to ``signal.signal`` where the loop does not support
        signal handlers (Windows).
        """
        self._loop = loop
        for sig in HANDLED_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_loop_signal, sig)
            except NotImplementedError:
                signal.signal(sig, self.handle_signal)
        logger.debug("Signal handlers installed for SIGINT and SIGTERM")

    def remove_signal_handlers(self) -> None:
        """Restore default handling for SIGINT and SIGTERM."""
        loop = self._loop
        for sig in HANDLED_SIGNALS:
            try:
                if loop is not None and not loop.is_closed():
                    loop.remove_signal_handler(sig)
            except NotImplementedError:
                signal.signal(
                    sig, signal.default_int_handler if sig == signal.SIGINT else signal.SIG_DFL
                )
        self._loop = None

    def _on_loop_signal(self, signum: int) -> None:
        logger.info("Received %s, cancelling", signal.Signals(signum).name)
        self.request_shutdown()


def create_shutdown_handler(
    token: CancellationToken | None = None,
    on_shutdown: Callable[[], None] | None = None,
) -> ShutdownHandler:
    """Create a shutdown handler, with a fresh token unless one is given."""
    return ShutdownHandler(token or CancellationToken(), on_shutdown=on_shutdown)
