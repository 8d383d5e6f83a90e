"""
The polling loop.

PinDaemon drives a PinOrchestrator: it recovers any pin left by a previous
run, ticks every interval until shutdown is requested, and restores the
original affinity on the way out.
"""

import logging
import threading
from typing import Optional

from ..validation import (
    CcdGamedError,
    ErrorSeverity,
    StateFileError,
    UnitControlError,
    handle_error,
    simple_retry,
)
from .pinning import PinOrchestrator
from .signal_handler import SignalHandler

logger = logging.getLogger(__name__)


class PinDaemon:
    """
    Runs the orchestrator until shut down.

    Args:
        orchestrator: Does the actual pinning work.
        interval: Seconds between ticks.
        shutdown_event: Set to stop the loop; a new event is created when omitted.
        restore_attempts: Attempts allowed for the final restore.
        restore_delay: Seconds between restore attempts.
    """

    def __init__(
        self,
        orchestrator: PinOrchestrator,
        interval: float,
        shutdown_event: Optional[threading.Event] = None,
        restore_attempts: int = 3,
        restore_delay: float = 1.0,
    ):
        self.orchestrator = orchestrator
        self.interval = interval
        self.shutdown_event = shutdown_event or threading.Event()
        self.restore_attempts = restore_attempts
        self.restore_delay = restore_delay
        self.ticks = 0
        self.failed_ticks = 0

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def _recover(self) -> None:
        try:
            self.orchestrator.recover()
        except CcdGamedError as e:
            handle_error(
                e, "recovering previous pin", severity=ErrorSeverity.ERROR,
                reraise=False, logger=logger
            )

    def _tick(self) -> None:
        self.ticks += 1
        try:
            report = self.orchestrator.tick()
        except (CcdGamedError, OSError) as e:
            self.failed_ticks += 1
            handle_error(
                e, f"tick {self.ticks}", severity=ErrorSeverity.ERROR,
                reraise=False, logger=logger
            )
            return
        if report.created_scopes or report.pinned_units or report.restored:
            logger.debug(
                f"Tick {self.ticks}: games={sorted(report.games)} "
                f"created={report.created_scopes} pinned={report.pinned_units} "
                f"restored={report.restored}"
            )

    def run_once(self) -> None:
        """Recover, then run a single tick. The pin, if any, is left in place."""
        self._recover()
        self._tick()

    def run(self, install_signal_handlers: bool = True) -> None:
        """
        Loop until the shutdown event is set, then restore.

        Raises:
            UnitControlError: If the final restore failed on every attempt
            StateFileError: If the final state could not be saved
        """
        handler = SignalHandler(self.shutdown_event) if install_signal_handlers else None
        if handler is not None:
            handler.setup_signal_handlers()

        logger.info(f"Daemon started, polling every {self.interval}s")
        try:
            self._recover()
            while not self.shutdown_event.is_set():
                self._tick()
                self.shutdown_event.wait(self.interval)
        finally:
            try:
                self.shutdown()
            finally:
                if handler is not None:
                    handler.cleanup_signal_handlers()
        logger.info(f"Daemon stopped after {self.ticks} ticks ({self.failed_ticks} failed)")

    def shutdown(self) -> None:
        """Restore original affinity if a pin is active, with retries."""
        if not self.orchestrator.pin_active:
            return
        logger.info("Restoring original CPU affinity before exit")
        simple_retry(
            self.orchestrator.restore,
            max_attempts=self.restore_attempts,
            delay=self.restore_delay,
            context="restoring CPU affinity",
            retry_on=(UnitControlError, StateFileError),
        )
