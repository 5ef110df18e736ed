"""Turning termination signals into a cancellation request."""

from __future__ import annotations

import signal
import sys
from collections.abc import Callable
from typing import Any

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = tuple(
    sig
    for sig in (
        getattr(signal, name, None)
        for name in ("SIGINT", "SIGTERM", "SIGHUP", "SIGQUIT", "SIGPIPE")
    )
    if sig is not None
)


class ShutdownSignals:
    """Calls ``cancel`` on every shutdown signal.

    A second SIGINT in a row exits the process at once with status 1.
    """

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel = cancel
        self._was_sigint = False

    def handle(self, signum: int) -> None:
        is_sigint = signum == signal.SIGINT
        if self._was_sigint and is_sigint:
            sys.exit(1)
        self._was_sigint = is_sigint
        self._cancel()

    def install(self) -> dict[signal.Signals, Any]:
        """Install handlers for the shutdown signals; returns the previous handlers."""
        previous = {}
        for sig in SHUTDOWN_SIGNALS:
            previous[sig] = signal.signal(sig, self._on_signal)
        return previous

    def _on_signal(self, signum: int, _frame: object) -> None:
        self.handle(signum)