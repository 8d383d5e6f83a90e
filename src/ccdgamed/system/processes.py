"""
Game process discovery from the process table.

This module walks the process table with psutil and groups the current
user's processes by the game they belong to. A process is attributed to a
game by, in order:

1. The highest-priority configured environment variable it defines
   (e.g. ``SteamAppId``), whose value becomes the game id.
2. Its executable name, if that name is on the allowlist.

Processes that vanish or become unreadable mid-scan are skipped silently;
only failing to list the process table itself is an error.
"""

import logging
import os
from typing import Dict, Iterable, List, Optional, Tuple

import psutil

from ..models.config import ScannerConfig, to_set_lower
from ..models.runtime import ID_SOURCE_ALLOWLIST, GameProcess
from ..validation import ProcessTableError

logger = logging.getLogger(__name__)

# Index of starttime among the fields that follow "pid (comm)" in
# /proc/<pid>/stat: field 3 (state) is index 0, field 22 is index 19.
_STARTTIME_INDEX = 19

__all__ = ["ProcessScanner", "parse_stat_start_time", "to_set_lower"]


def parse_stat_start_time(stat: str) -> int:
    """Extract the start time (field 22) from a ``/proc/<pid>/stat`` record.

    The command name in field 2 may itself contain spaces and parentheses,
    so fields are only split after the last ``)``.

    Raises:
        ValueError: If the record is empty, malformed or too short.

    Examples:
        >>> parse_stat_start_time("42 (a) b) S " + " ".join(["0"] * 18) + " 777 0")
        777
    """
    line = stat.strip()
    if not line:
        raise ValueError("empty stat")
    idx = line.rfind(")")
    if idx == -1 or idx + 2 >= len(line):
        raise ValueError("invalid stat format")
    fields = line[idx + 2:].split()
    if len(fields) <= _STARTTIME_INDEX:
        raise ValueError("stat too short")
    return int(fields[_STARTTIME_INDEX])


class ProcessScanner:
    """
    Scans the process table for one user's game processes.

    The proc filesystem location follows ``psutil.PROCFS_PATH``.

    Args:
        uid: Numeric user id whose processes are considered.
        env_keys: Environment variable names, highest priority first.
        exe_allowlist: Executable names treated as games without env evidence.
        ignore_exe: Executable names never treated as games.
    """

    def __init__(
        self,
        uid: int,
        env_keys: Iterable[str] = (),
        exe_allowlist: Iterable[str] = (),
        ignore_exe: Iterable[str] = (),
    ):
        self.config = ScannerConfig.build(
            uid=uid,
            env_keys=list(env_keys),
            exe_allowlist=list(exe_allowlist),
            ignore_exe=list(ignore_exe),
        )

    @classmethod
    def from_config(cls, config: ScannerConfig) -> "ProcessScanner":
        """Create a scanner from an already-normalized ScannerConfig."""
        return cls(
            uid=config.uid,
            env_keys=config.env_keys,
            exe_allowlist=config.exe_allowlist,
            ignore_exe=config.ignore_exe,
        )

    @property
    def uid(self) -> int:
        return self.config.uid

    def scan(self) -> Dict[str, List[GameProcess]]:
        """
        Group the user's game processes by game id.

        Returns:
            Mapping of game id to processes in PID order.

        Raises:
            ProcessTableError: If the process table cannot be listed.
        """
        results: Dict[str, List[GameProcess]] = {}
        processes_scanned = 0
        try:
            for proc in psutil.process_iter():
                processes_scanned += 1
                try:
                    process = self._inspect(proc)
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    continue
                if process is not None:
                    results.setdefault(process.game_id, []).append(process)
        except OSError as e:
            raise ProcessTableError(f"cannot list {psutil.PROCFS_PATH}: {e}") from e

        if results:
            logger.debug(
                f"Scanned {processes_scanned} processes, found "
                f"{sum(len(p) for p in results.values())} game processes "
                f"in {len(results)} games"
            )
        return results

    def _inspect(self, proc: psutil.Process) -> Optional[GameProcess]:
        """Classify one process, or return None if it is not a game process."""
        if proc.uids().real != self.config.uid:
            return None

        exe = _exe_basename_lower(proc.exe())
        if not exe:
            return None
        if exe in self.config.ignore_exe:
            return None

        game_id, source = self._game_id_from_environ(proc)
        if not game_id and exe in self.config.exe_allowlist:
            game_id, source = exe, ID_SOURCE_ALLOWLIST
        if not game_id:
            return None

        return GameProcess(
            pid=proc.pid,
            start_time=_read_start_time(proc.pid),
            exe=exe,
            game_id=game_id,
            id_source=source,
        )

    def _game_id_from_environ(self, proc: psutil.Process) -> Tuple[str, str]:
        """Return (value, key) for the best matching env key, or ("", "")."""
        if not self.config.env_keys:
            return "", ""
        try:
            environ = proc.environ()
        except psutil.AccessDenied:
            return "", ""

        for key in self.config.env_keys:
            value = environ.get(key, "").strip()
            if value:
                return value, key
        return "", ""


def _exe_basename_lower(path: str) -> str:
    base = os.path.basename(path or "").strip()
    if base in ("", ".", "/"):
        return ""
    return base.lower()


def _read_start_time(pid: int) -> int:
    """Start time from field 22 of the stat file, 0 when unavailable."""
    try:
        with open(f"{psutil.PROCFS_PATH}/{pid}/stat", "r", errors="replace") as f_stat:
            return parse_stat_start_time(f_stat.read())
    except (OSError, ValueError) as e:
        logger.debug(f"PID {pid}: start time unavailable ({e}), using 0")
        return 0
