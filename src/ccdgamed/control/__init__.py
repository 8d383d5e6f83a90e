"""
Systemd unit control.

One interface (AbstractUnitController) with two implementations selected at
startup by :func:`create_unit_controller`:

- SystemdUnitController: D-Bus for transient scopes, systemctl for properties
- DryRunUnitController: logs intent, never mutates
"""

from .base import AbstractUnitController, normalize_pids, normalize_slice, require_scope_name
from .dbus_manager import UserBusTransport, is_unit_exists_error, user_bus_address
from .dry_run import DryRunUnitController, Intent
from .factory import create_unit_controller
from .systemctl import SystemctlTransport
from .systemd import SystemdUnitController

__all__ = [
    "AbstractUnitController",
    "DryRunUnitController",
    "Intent",
    "SystemctlTransport",
    "SystemdUnitController",
    "UserBusTransport",
    "create_unit_controller",
    "is_unit_exists_error",
    "normalize_pids",
    "normalize_slice",
    "require_scope_name",
    "user_bus_address",
]
