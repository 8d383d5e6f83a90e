"""
Orchestration module for CPU pinning.

Components:
- PinOrchestrator: One polling step, apply and restore
- PinDaemon: The polling loop with shutdown restore
- SignalHandler: SIGINT/SIGTERM to shutdown event
"""

from .daemon import PinDaemon
from .pinning import PinOrchestrator
from .signal_handler import SignalHandler

__all__ = [
    "PinDaemon",
    "PinOrchestrator",
    "SignalHandler",
]
