"""
System interaction utilities for CPU partitioning and game discovery.

This module provides the host-facing, read-mostly side of the daemon:

- CPU list parsing and canonical formatting
- Cache-domain topology detection from sysfs
- Game process discovery from procfs
- Deterministic scope naming for games
- Command execution with timeouts and captured output

Everything here takes its filesystem roots as arguments so it can be
exercised against fake ``/proc`` and ``/sys`` trees.
"""

# Command execution
from .commands import check_systemctl_installed, combined_output, run_command

# CPU lists
from .cpulist import canonicalize_cpu_list, contains_cpu, format_cpu_list, parse_cpu_list

# Process discovery
from .processes import ProcessScanner, parse_stat_start_time

# Topology
from .topology import available_cpus, detect, resolve_cpu_sets, select_os_and_game

# Unit naming
from .units import is_game_scope, unit_name_for_game_id

__all__ = [
    # Commands
    "check_systemctl_installed",
    "combined_output",
    "run_command",
    # CPU lists
    "canonicalize_cpu_list",
    "contains_cpu",
    "format_cpu_list",
    "parse_cpu_list",
    # Processes
    "ProcessScanner",
    "parse_stat_start_time",
    # Topology
    "available_cpus",
    "detect",
    "resolve_cpu_sets",
    "select_os_and_game",
    # Units
    "is_game_scope",
    "unit_name_for_game_id",
]
