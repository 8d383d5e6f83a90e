"""
Pytest configuration and shared fixtures for the ccd-gamed test suite.

This module provides fake procfs/sysfs trees, a recording unit controller
and configuration helpers. No test touches the real /proc, /sys, D-Bus or
systemctl.
"""

import os
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import psutil
import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ccdgamed.control.base import (  # noqa: E402
    AbstractUnitController,
    normalize_pids,
    require_scope_name,
)
from ccdgamed.validation import UnitControlError  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


# ============================================================================
# Fake procfs / sysfs
# ============================================================================


class FakeProc:
    """Builds ``<root>/<pid>/{status,cmdline,exe,environ,stat}`` entries."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def add(
        self,
        pid: int,
        uid: int = 1000,
        exe: Optional[str] = "/usr/bin/game",
        environ: Optional[Dict[str, str]] = None,
        start_time: Optional[int] = 4242,
        comm: str = "game",
        raw_environ: Optional[bytes] = None,
    ) -> Path:
        pid_dir = self.root / str(pid)
        pid_dir.mkdir(parents=True, exist_ok=True)
        (pid_dir / "status").write_text(
            f"Name:\t{comm}\nState:\tS (sleeping)\nUid:\t{uid}\t{uid}\t{uid}\t{uid}\n"
        )
        (pid_dir / "cmdline").write_bytes(b"")
        if exe is not None:
            os.symlink(exe, pid_dir / "exe")
        if raw_environ is None:
            raw_environ = b"".join(
                f"{k}={v}".encode() + b"\0" for k, v in (environ or {}).items()
            )
        (pid_dir / "environ").write_bytes(raw_environ)
        if start_time is not None:
            (pid_dir / "stat").write_text(make_stat(pid, comm, start_time))
        return pid_dir


def make_stat(pid: int, comm: str, start_time: int) -> str:
    """A full-length /proc/<pid>/stat line with ``start_time`` in field 22."""
    # fields 3..21 (19 values), then starttime, then fields 23..52
    middle = ["S"] + ["0"] * 18
    tail = ["0"] * 30
    return f"{pid} ({comm}) {' '.join(middle)} {start_time} {' '.join(tail)}\n"


def write_cache_lists(sysfs_root: Path, lists: Iterable[str], index: int = 3) -> None:
    """Write one shared_cpu_list per entry under cpuN/cache/index<index>/."""
    for cpu, text in enumerate(lists):
        cache_dir = sysfs_root / "devices" / "system" / "cpu" / f"cpu{cpu}" / "cache" / f"index{index}"
        cache_dir.mkdir(parents=True, exist_ok=True)
        (cache_dir / "shared_cpu_list").write_text(text + "\n")


@pytest.fixture
def fake_proc(tmp_path, monkeypatch):
    """An empty fake /proc tree that psutil reads instead of the real one."""
    fake = FakeProc(tmp_path / "proc")
    monkeypatch.setattr(psutil, "PROCFS_PATH", str(fake.root))
    # process_iter caches Process objects by PID across calls
    psutil.process_iter.cache_clear()
    yield fake
    psutil.process_iter.cache_clear()


@pytest.fixture
def sysfs_root(tmp_path):
    """Root of a fake /sys tree."""
    root = tmp_path / "sys"
    root.mkdir()
    return root


# ============================================================================
# Recording unit controller
# ============================================================================


class RecordingController(AbstractUnitController):
    """
    In-memory systemd stand-in.

    Tracks existing scopes and AllowedCPUs per unit, records every call in
    ``calls`` and raises UnitControlError for units listed in ``fail_units``.
    """

    def __init__(self, affinity: Optional[Dict[str, str]] = None):
        self.scopes: Dict[str, List[int]] = {}
        self.affinity: Dict[str, str] = dict(affinity or {})
        self.calls: List[tuple] = []
        self.fail_units = set()
        self.started: List[str] = []

    def _check(self, unit: str) -> None:
        if unit in self.fail_units:
            raise UnitControlError(f"simulated failure for {unit}", unit=unit)

    def ensure_scope(self, name, pids, slice_name="", description=""):
        require_scope_name(name)
        pids = normalize_pids(pids)
        self.calls.append(("ensure_scope", name, tuple(pids)))
        if name in self.scopes:
            return False
        self.scopes[name] = list(pids)
        self.affinity.setdefault(name, "")
        return True

    def attach_processes(self, unit, subcgroup, pids):
        pids = normalize_pids(pids)
        self.calls.append(("attach_processes", unit, tuple(pids)))
        if pids:
            self.scopes.setdefault(unit, []).extend(pids)

    def get_affinity(self, unit):
        self.calls.append(("get_affinity", unit))
        return self.affinity.get(unit, "")

    def set_affinity(self, unit, cpus):
        self.calls.append(("set_affinity", unit, cpus))
        self._check(unit)
        self.affinity[unit] = cpus

    def start_unit(self, unit):
        self.calls.append(("start_unit", unit))
        self.started.append(unit)

    def calls_named(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def controller():
    """A recording controller with app.slice and background.slice unrestricted."""
    return RecordingController({"app.slice": "", "background.slice": "0-31"})


# ============================================================================
# Configuration
# ============================================================================


@pytest.fixture
def xdg_env(tmp_path):
    """Environment mapping with XDG config/state roots under tmp_path."""
    return {
        "XDG_CONFIG_HOME": str(tmp_path / "config"),
        "XDG_STATE_HOME": str(tmp_path / "state"),
    }

