"""
Configuration data models.

This module contains the resolved daemon configuration loaded from
`config.toml` and the immutable scanner configuration derived from it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple

DEFAULT_ENV_KEYS = ["SteamAppId", "SteamGameId", "STEAM_COMPAT_APP_ID"]

# Launcher and runtime helpers that carry the game's environment but must
# stay on the OS CPUs.
DEFAULT_IGNORE_EXE = [
    "steam",
    "steamwebhelper",
    "steam-runtime-launcher-service",
    "pressure-vessel-wrap",
    "pv-bwrap",
    "bwrap",
    "reaper",
    "srt-logger",
    "wineserver",
    "gamemoded",
    "mangohud",
]

DEFAULT_PIN_SLICES = ["app.slice", "background.slice"]
DEFAULT_GAME_SLICE = "game.slice"
SESSION_SLICE = "session.slice"


@dataclass
class DaemonConfig:
    """
    Resolved daemon configuration, loaded from `config.toml` plus the ignore file.
    """

    # Polling interval in seconds.
    interval: float = 2.0
    # Environment variables that identify a game, highest priority first.
    env_keys: List[str] = field(default_factory=lambda: list(DEFAULT_ENV_KEYS))
    # Lower-cased executable names treated as games without env evidence.
    exe_allowlist: List[str] = field(default_factory=list)
    # Lower-cased executable names never treated as games.
    ignore_exe: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_EXE))
    # Pin session.slice to the OS CPUs as well as pin_slices.
    pin_session_slice: bool = False
    # Additional slices pinned to the OS CPUs while a game runs.
    pin_slices: List[str] = field(default_factory=lambda: list(DEFAULT_PIN_SLICES))
    # Slice the transient game scopes are created under.
    game_slice: str = DEFAULT_GAME_SLICE
    # Manual overrides; both set means topology detection is skipped.
    os_cpus_override: str = ""
    game_cpus_override: str = ""
    # Where the pin state is persisted.
    state_file: Optional[Path] = None
    log_level: str = "INFO"
    # Files the configuration was assembled from, for diagnostics.
    config_path: Optional[Path] = None
    ignore_file: Optional[Path] = None

    def os_slices(self) -> List[str]:
        """Slices pinned to the OS CPUs, in pin order, without duplicates."""
        slices = list(self.pin_slices)
        if self.pin_session_slice:
            slices.append(SESSION_SLICE)
        seen = set()
        ordered = []
        for name in slices:
            if name not in seen:
                seen.add(name)
                ordered.append(name)
        return ordered

    def scanner_config(self, uid: int) -> "ScannerConfig":
        """Derive the scanner configuration for the given user id."""
        return ScannerConfig.build(
            uid=uid,
            env_keys=self.env_keys,
            exe_allowlist=self.exe_allowlist,
            ignore_exe=self.ignore_exe,
        )


@dataclass(frozen=True)
class ScannerConfig:
    """
    Immutable inputs of one process-table scan.
    """

    uid: int
    env_keys: Tuple[str, ...]
    exe_allowlist: FrozenSet[str]
    ignore_exe: FrozenSet[str]

    @classmethod
    def build(cls, uid: int, env_keys, exe_allowlist, ignore_exe) -> "ScannerConfig":
        """Normalize raw lists: env keys trimmed and de-duplicated, names lower-cased."""
        keys = []
        for key in env_keys:
            key = key.strip()
            if key and key not in keys:
                keys.append(key)
        return cls(
            uid=uid,
            env_keys=tuple(keys),
            exe_allowlist=frozenset(to_set_lower(exe_allowlist)),
            ignore_exe=frozenset(to_set_lower(ignore_exe)),
        )


def to_set_lower(values) -> set:
    """Trim, lower-case and drop empty entries.

    Examples:
        >>> to_set_lower([" a ", "", "A"])
        {'a'}
    """
    result = set()
    for value in values:
        value = value.strip().lower()
        if value:
            result.add(value)
    return result
