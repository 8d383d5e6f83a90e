"""
Signal handling for the daemon loop.

SIGINT and SIGTERM set the daemon's shutdown event so the loop wakes from
its sleep immediately and restores the original affinity before exiting.
"""

import logging
import signal
import threading
from typing import Any

logger = logging.getLogger(__name__)


class SignalHandler:
    """
    Manages signal registration and cleanup for a PinDaemon.

    Args:
        shutdown_event: Event set when a termination signal arrives.
    """

    def __init__(self, shutdown_event: threading.Event):
        self.shutdown_event = shutdown_event
        self._original_sigint_handler = None
        self._original_sigterm_handler = None
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Install handlers for SIGINT and SIGTERM."""
        try:
            # Store original handlers so we can restore them later
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._handle_signal)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._handle_signal)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up for daemon loop")
        except (ValueError, OSError) as e:
            # signal.signal only works from the main thread
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def _handle_signal(self, signum: int, frame: Any) -> None:
        """
        Request shutdown of the daemon loop.

        Args:
            signum: Signal number that was received
            frame: Current stack frame (unused)
        """
        if self.shutdown_event.is_set():
            logger.warning(f"Signal {signum} received again, shutdown already in progress")
            return
        logger.warning(f"Signal {signum} received. Shutting down.")
        self.shutdown_event.set()
