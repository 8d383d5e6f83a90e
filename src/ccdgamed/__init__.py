"""
ccd-gamed: Cache-domain aware CPU pinning for games.

On CPUs with several last-level cache domains (e.g. multi-CCD Ryzen parts),
this daemon keeps the desktop and background services on the domain that
contains CPU 0 and gives every running game the remaining domains, using
transient systemd scopes and the ``AllowedCPUs`` unit property.

The package is organized into specialized modules:
- config: Configuration loading and validation
- models: Data structures and type definitions
- validation: Exceptions, input validation and error handling
- system: CPU lists, cache topology, process scanning and unit naming
- control: systemd user manager access (D-Bus, systemctl, dry-run)
- state: Crash-safe persistence of the pin state
- orchestration: Applying and restoring the pin, the polling loop
- cli: Command-line interface

Usage:
    From command line:
        ccd-gamed run
        ccd-gamed --dry-run run --once

    Programmatically:
        from ccdgamed import load_config, create_unit_controller, PinOrchestrator
"""

# Main interfaces
from .config import load_config
from .control import create_unit_controller
from .orchestration import PinDaemon, PinOrchestrator
from .cli import main_cli

# Model classes for external use
from .models import (
    DaemonConfig,
    GameProcess,
    ScannerConfig,
    StateFile,
    TickReport,
    TopologyResult,
)

# Validation utilities
from .validation import (
    CcdGamedError,
    StateFileError,
    TopologyError,
    UnitControlError,
    ValidationError,
)

# System utilities
from .system import (
    ProcessScanner,
    canonicalize_cpu_list,
    detect,
    format_cpu_list,
    parse_cpu_list,
    resolve_cpu_sets,
    select_os_and_game,
    unit_name_for_game_id,
)

# State persistence
from .state import default_state_path, load_state, save_state

__version__ = "0.1.0"

__all__ = [
    # Main interfaces
    "load_config",
    "create_unit_controller",
    "PinDaemon",
    "PinOrchestrator",
    "main_cli",
    # Models
    "DaemonConfig",
    "GameProcess",
    "ScannerConfig",
    "StateFile",
    "TickReport",
    "TopologyResult",
    # Validation
    "CcdGamedError",
    "StateFileError",
    "TopologyError",
    "UnitControlError",
    "ValidationError",
    # System utilities
    "ProcessScanner",
    "canonicalize_cpu_list",
    "detect",
    "format_cpu_list",
    "parse_cpu_list",
    "resolve_cpu_sets",
    "select_os_and_game",
    "unit_name_for_game_id",
    # State
    "default_state_path",
    "load_state",
    "save_state",
]
