"""
D-Bus transport to the systemd user manager.

Creates transient scopes around already-running processes and moves
processes into existing units. Both calls go to
``org.freedesktop.systemd1.Manager`` on the user bus:

- ``StartTransientUnit(s name, s mode, a(sv) properties, a(sa(sv)) aux)``
- ``AttachProcessesToUnit(s unit, s subcgroup, au pids)``

A ``UnitExists`` fault from ``StartTransientUnit`` means the scope is
already there and is reported as "not created" instead of an error.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Mapping, Optional

from jeepney import DBusAddress, DBusErrorResponse, new_method_call
from jeepney.io.blocking import open_dbus_connection
from jeepney.wrappers import unwrap_msg

from ..validation import UnitControlError
from .base import normalize_pids, normalize_slice, require_scope_name

logger = logging.getLogger(__name__)

DEFAULT_DBUS_TIMEOUT = 5.0
UNIT_EXISTS_ERROR = "org.freedesktop.systemd1.UnitExists"

SYSTEMD_MANAGER = DBusAddress(
    "/org/freedesktop/systemd1",
    bus_name="org.freedesktop.systemd1",
    interface="org.freedesktop.systemd1.Manager",
)


def user_bus_address(env: Optional[Mapping[str, str]] = None, uid: Optional[int] = None) -> str:
    """
    Resolve the user bus address.

    ``DBUS_SESSION_BUS_ADDRESS`` wins; otherwise the socket under
    ``XDG_RUNTIME_DIR``, otherwise ``/run/user/<uid>/bus``.
    """
    env = os.environ if env is None else env
    address = env.get("DBUS_SESSION_BUS_ADDRESS", "").strip()
    if address:
        return address
    runtime_dir = env.get("XDG_RUNTIME_DIR", "").strip()
    if runtime_dir:
        return f"unix:path={Path(runtime_dir) / 'bus'}"
    if uid is None:
        uid = os.getuid()
    return f"unix:path=/run/user/{uid}/bus"


def is_unit_exists_error(error: BaseException) -> bool:
    """True if ``error`` is systemd's "unit already exists" fault."""
    name = getattr(error, "name", None) or ""
    return name == UNIT_EXISTS_ERROR or "UnitExists" in name


class UserBusTransport:
    """
    Blocking jeepney connection to the systemd user manager.

    Args:
        connection: An open jeepney blocking connection. When omitted the
            user bus is opened via :func:`user_bus_address`.
        timeout: Seconds to wait for each reply.
    """

    def __init__(self, connection=None, timeout: float = DEFAULT_DBUS_TIMEOUT):
        self.timeout = timeout
        if connection is None:
            address = user_bus_address()
            logger.debug(f"Connecting to user bus at {address}")
            try:
                connection = open_dbus_connection(bus=address)
            except (OSError, ValueError) as e:
                raise UnitControlError(f"cannot connect to user bus {address}: {e}") from e
        self._conn = connection

    def _call(self, method: str, signature: str, body: tuple, unit: str):
        message = new_method_call(SYSTEMD_MANAGER, method, signature, body)
        try:
            reply = self._conn.send_and_get_reply(message, timeout=self.timeout)
            return unwrap_msg(reply)
        except TimeoutError as e:
            raise UnitControlError(
                f"{method}({unit}): no reply within {self.timeout}s", unit=unit
            ) from e
        except OSError as e:
            raise UnitControlError(f"{method}({unit}): {e}", unit=unit) from e

    def start_transient_scope(
        self, name: str, pids: Iterable[int], slice_name: str = "", description: str = ""
    ) -> bool:
        """
        Create a transient scope around ``pids``.

        Returns:
            True if created, False if the unit already existed.

        Raises:
            ValidationError: If ``name`` is not a scope name
            UnitControlError: On any other failure
        """
        require_scope_name(name)
        slice_name = normalize_slice(slice_name)
        pid_list = normalize_pids(pids)

        properties = [
            ("Description", ("s", description)),
            ("Slice", ("s", slice_name)),
            ("PIDs", ("au", pid_list)),
        ]
        try:
            self._call(
                "StartTransientUnit",
                "ssa(sv)a(sa(sv))",
                (name, "fail", properties, []),
                name,
            )
        except DBusErrorResponse as e:
            if is_unit_exists_error(e):
                logger.debug(f"Scope {name} already exists")
                return False
            raise UnitControlError(f"StartTransientUnit({name}): {e}", unit=name, output=str(e)) from e
        logger.info(f"Created scope {name} in {slice_name} with PIDs {pid_list}")
        return True

    def attach_processes(self, unit: str, subcgroup: str, pids: Iterable[int]) -> None:
        """Move ``pids`` into ``unit``; an empty list is a no-op."""
        pid_list = normalize_pids(pids)
        if not pid_list:
            return
        try:
            self._call("AttachProcessesToUnit", "ssau", (unit, subcgroup or "", pid_list), unit)
        except DBusErrorResponse as e:
            raise UnitControlError(
                f"AttachProcessesToUnit({unit}): {e}", unit=unit, output=str(e)
            ) from e

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
