"""
Unit controller factory.

Selects the controller implementation once at startup so callers only ever
see the AbstractUnitController interface.
"""

import logging

from ..system.commands import DEFAULT_COMMAND_TIMEOUT
from .base import AbstractUnitController
from .dbus_manager import DEFAULT_DBUS_TIMEOUT

logger = logging.getLogger(__name__)


def create_unit_controller(
    dry_run: bool = False,
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
    bus_timeout: float = DEFAULT_DBUS_TIMEOUT,
) -> AbstractUnitController:
    """
    Create the unit controller for this run.

    Args:
        dry_run: Log intended mutations instead of performing them.
        command_timeout: Seconds allowed per systemctl invocation.
        bus_timeout: Seconds allowed per D-Bus call.

    Returns:
        A DryRunUnitController or a SystemdUnitController
    """
    from .systemctl import SystemctlTransport

    systemctl = SystemctlTransport(timeout=command_timeout)
    if dry_run:
        from .dry_run import DryRunUnitController

        logger.info("Unit controller: dry-run (no systemd changes will be made)")
        return DryRunUnitController(reader=systemctl)

    from .systemd import SystemdUnitController

    logger.info(
        f"Unit controller: systemd user manager (dbus timeout {bus_timeout}s, "
        f"systemctl timeout {command_timeout}s)"
    )
    return SystemdUnitController(systemctl=systemctl, bus_timeout=bus_timeout)
