"""
Dry-run unit controller.

Every mutating operation only logs what it would do and succeeds, so the
orchestrator runs its normal path end to end without touching systemd.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .base import (
    AbstractUnitController,
    normalize_pids,
    normalize_slice,
    require_scope_name,
)
from .systemctl import SystemctlTransport

logger = logging.getLogger(__name__)


@dataclass
class Intent:
    """One mutating call that a dry run skipped."""

    operation: str
    unit: str
    details: Dict[str, Any] = field(default_factory=dict)


class DryRunUnitController(AbstractUnitController):
    """
    Logs intent for every mutation and reports success.

    ``ensure_scope`` always returns True so callers take their usual
    "scope is ready" path. ``get_affinity`` is read-only and still asks
    systemctl, so the recorded original values are realistic.

    Args:
        reader: Transport used for ``get_affinity``; None returns "".
    """

    def __init__(self, reader: Optional[SystemctlTransport] = None):
        self.reader = reader
        self.intents: List[Intent] = []

    @property
    def dry_run(self) -> bool:
        return True

    def _record(self, operation: str, unit: str, message: str, **details) -> None:
        self.intents.append(Intent(operation=operation, unit=unit, details=details))
        logger.info(f"dry-run: {message}")

    def ensure_scope(
        self, name: str, pids: Iterable[int], slice_name: str = "", description: str = ""
    ) -> bool:
        require_scope_name(name)
        slice_name = normalize_slice(slice_name)
        pid_list = normalize_pids(pids)
        self._record(
            "start_transient_unit",
            name,
            f"StartTransientUnit({name!r}) slice={slice_name!r} pids={pid_list}",
            slice=slice_name,
            pids=pid_list,
            description=description,
        )
        return True

    def attach_processes(self, unit: str, subcgroup: str, pids: Iterable[int]) -> None:
        pid_list = normalize_pids(pids)
        if not pid_list:
            return
        self._record(
            "attach_processes",
            unit,
            f"AttachProcessesToUnit({unit!r}, {subcgroup!r}) pids={pid_list}",
            subcgroup=subcgroup,
            pids=pid_list,
        )

    def get_affinity(self, unit: str) -> str:
        if self.reader is None:
            return ""
        return self.reader.get_affinity(unit)

    def set_affinity(self, unit: str, cpus: str) -> None:
        argv = SystemctlTransport.set_affinity_args(unit, cpus)
        self._record("set_affinity", unit, " ".join(argv), cpus=cpus)

    def start_unit(self, unit: str) -> None:
        argv = SystemctlTransport.start_unit_args(unit)
        self._record("start_unit", unit, " ".join(argv))
