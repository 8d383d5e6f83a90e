"""
Unit controller backed by the real systemd user manager.
"""

import logging
from typing import Iterable, Optional

from .base import AbstractUnitController, normalize_pids, require_scope_name
from .dbus_manager import UserBusTransport
from .systemctl import SystemctlTransport

logger = logging.getLogger(__name__)


class SystemdUnitController(AbstractUnitController):
    """
    Routes scope operations over D-Bus and property operations through systemctl.

    ``StartTransientUnit`` is only reachable over D-Bus and can create a
    scope around running PIDs in one call; ``AllowedCPUs`` reads and writes
    go through ``systemctl`` so diagnostics include the tool's own output.

    Args:
        bus: D-Bus transport, opened lazily on first scope call when omitted.
        systemctl: systemctl transport.
        bus_timeout: Reply timeout used when the bus is opened lazily.
    """

    def __init__(
        self,
        bus: Optional[UserBusTransport] = None,
        systemctl: Optional[SystemctlTransport] = None,
        bus_timeout: Optional[float] = None,
    ):
        self._bus = bus
        self._bus_timeout = bus_timeout
        self.systemctl = systemctl or SystemctlTransport()

    @property
    def bus(self) -> UserBusTransport:
        if self._bus is None:
            if self._bus_timeout is None:
                self._bus = UserBusTransport()
            else:
                self._bus = UserBusTransport(timeout=self._bus_timeout)
        return self._bus

    def ensure_scope(
        self, name: str, pids: Iterable[int], slice_name: str = "", description: str = ""
    ) -> bool:
        require_scope_name(name)
        return self.bus.start_transient_scope(name, pids, slice_name, description)

    def attach_processes(self, unit: str, subcgroup: str, pids: Iterable[int]) -> None:
        pid_list = normalize_pids(pids)
        if not pid_list:
            return
        self.bus.attach_processes(unit, subcgroup, pid_list)

    def get_affinity(self, unit: str) -> str:
        return self.systemctl.get_affinity(unit)

    def set_affinity(self, unit: str, cpus: str) -> None:
        self.systemctl.set_affinity(unit, cpus)

    def start_unit(self, unit: str) -> None:
        self.systemctl.start_unit(unit)

    def close(self) -> None:
        if self._bus is not None:
            self._bus.close()
            self._bus = None
