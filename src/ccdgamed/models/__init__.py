"""
Data models and structures for the daemon.

Configuration Models:
- Resolved daemon settings (polling, game detection, slices, overrides)
- Immutable per-scan process classification inputs

Runtime Models:
- CPU topology partition
- Observed game processes and per-tick reports

State Models:
- The persisted pin record used to restore original CPU affinity
"""

# Configuration models
from .config import DaemonConfig, ScannerConfig, to_set_lower

# Runtime models
from .runtime import ID_SOURCE_ALLOWLIST, GameProcess, TickReport, TopologyResult

# State models
from .state import STATE_VERSION, StateFile

__all__ = [
    # Configuration
    "DaemonConfig",
    "ScannerConfig",
    "to_set_lower",
    # Runtime
    "ID_SOURCE_ALLOWLIST",
    "GameProcess",
    "TickReport",
    "TopologyResult",
    # State
    "STATE_VERSION",
    "StateFile",
]
