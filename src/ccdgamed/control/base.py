"""
Defines the abstract interface for systemd unit control.

This module provides:
- AbstractUnitController: the operations the orchestrator needs on units
  (scope creation, process attachment, AllowedCPUs get/set, unit start).
- Shared argument normalization used by every implementation.

Implementations live in ``systemd`` (real D-Bus and systemctl transports)
and ``dry_run`` (logs intent, mutates nothing).
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

from ..system.units import SCOPE_SUFFIX
from ..validation import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_GAME_SLICE = "game.slice"


def normalize_pids(pids: Iterable[int]) -> List[int]:
    """Drop non-positive PIDs, keeping order."""
    return [int(pid) for pid in pids if int(pid) > 0]


def normalize_slice(slice_name: str) -> str:
    """Blank slice names fall back to the game slice."""
    slice_name = (slice_name or "").strip()
    return slice_name or DEFAULT_GAME_SLICE


def require_scope_name(name: str) -> str:
    """
    Reject names that are not scope units.

    Raises:
        ValidationError: If ``name`` does not end with ``.scope``
    """
    if not isinstance(name, str) or not name.endswith(SCOPE_SUFFIX):
        raise ValidationError(
            f"scope name must end with {SCOPE_SUFFIX}: {name!r}",
            field_name="scope_name",
            value=name,
        )
    return name


class AbstractUnitController(ABC):
    """
    Abstract base class for unit controllers.

    Every mutating method is idempotent from the caller's point of view:
    repeating it on the next polling tick converges without error noise.
    """

    @property
    def dry_run(self) -> bool:
        """True if this controller never mutates the system."""
        return False

    @abstractmethod
    def ensure_scope(
        self, name: str, pids: Iterable[int], slice_name: str = "", description: str = ""
    ) -> bool:
        """
        Create the transient scope ``name`` holding ``pids`` if it is missing.

        Args:
            name: Scope unit name; must end with ``.scope``.
            pids: Processes to place in the scope. Non-positive values are dropped.
            slice_name: Parent slice; blank means ``game.slice``.
            description: Human-readable unit description.

        Returns:
            True if the scope was created, False if it already existed.

        Raises:
            ValidationError: If ``name`` is not a scope name
            UnitControlError: On any other transport failure
        """

    @abstractmethod
    def attach_processes(self, unit: str, subcgroup: str, pids: Iterable[int]) -> None:
        """
        Move ``pids`` into an existing unit. No-op for an empty PID list.

        Raises:
            UnitControlError: On transport failure
        """

    @abstractmethod
    def get_affinity(self, unit: str) -> str:
        """
        Return the unit's current ``AllowedCPUs`` value (may be empty).

        Raises:
            UnitControlError: On transport failure
        """

    @abstractmethod
    def set_affinity(self, unit: str, cpus: str) -> None:
        """
        Set the unit's ``AllowedCPUs`` for the runtime of the unit.

        Raises:
            UnitControlError: On transport failure
        """

    @abstractmethod
    def start_unit(self, unit: str) -> None:
        """
        Start ``unit``.

        Raises:
            UnitControlError: On transport failure
        """

    def close(self) -> None:
        """Release transport resources."""
