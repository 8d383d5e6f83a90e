"""
Runtime data models.

This module contains the values produced and consumed on every polling
tick: the detected topology, the observed game processes and the summary
of what a tick did.
"""

from dataclasses import dataclass, field
from typing import Dict, List

ID_SOURCE_ALLOWLIST = "exe_allowlist"


@dataclass(frozen=True)
class TopologyResult:
    """
    OS/game CPU partition derived from the cache-sharing domains.
    """

    # Canonical CPU list of the domain containing CPU 0.
    os_cpus: str
    # Canonical union of every other domain.
    game_cpus: str
    # Every distinct canonical domain list, sorted.
    lists: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class GameProcess:
    """
    One process believed to belong to a game.

    Attributes:
        pid: Process ID.
        start_time: Kernel start time in clock ticks since boot. Together
            with ``pid`` it identifies the process across PID reuse; 0 when
            it could not be read.
        exe: Lower-cased executable base name.
        game_id: Resolved game identifier.
        id_source: ``"exe_allowlist"`` or the environment variable that matched.
    """

    pid: int
    start_time: int
    exe: str
    game_id: str
    id_source: str

    @property
    def identity(self):
        """(pid, start_time) pair that survives PID reuse checks."""
        return (self.pid, self.start_time)


@dataclass
class TickReport:
    """
    Summary of one orchestrator tick.
    """

    os_cpus: str = ""
    game_cpus: str = ""
    # game_id -> scope unit name
    games: Dict[str, str] = field(default_factory=dict)
    created_scopes: List[str] = field(default_factory=list)
    pinned_units: List[str] = field(default_factory=list)
    restored: bool = False
