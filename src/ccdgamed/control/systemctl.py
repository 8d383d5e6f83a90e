"""
``systemctl --user`` transport for unit properties.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from ..system.commands import DEFAULT_COMMAND_TIMEOUT, combined_output, run_command
from ..validation import UnitControlError

logger = logging.getLogger(__name__)

SYSTEMCTL = "systemctl"
ALLOWED_CPUS = "AllowedCPUs"

CommandRunner = Callable[[Sequence[str], Optional[float]], Tuple[int, str, str]]


class SystemctlTransport:
    """
    Reads and writes unit properties through the ``systemctl`` binary.

    Every call targets the user manager (``--user``). Failures raise
    UnitControlError carrying the tool's trimmed stdout and stderr.

    Args:
        timeout: Seconds allowed per invocation.
        runner: Command runner, ``run_command`` by default.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
        runner: Optional[CommandRunner] = None,
    ):
        self.timeout = timeout
        self._runner = runner or run_command

    @staticmethod
    def _argv(*args: str) -> List[str]:
        return [SYSTEMCTL, "--user", *args]

    def _run(self, verb: str, unit: str, argv: List[str]) -> str:
        returncode, stdout, stderr = self._runner(argv, self.timeout)
        output = combined_output(stdout, stderr)
        if returncode != 0:
            raise UnitControlError(
                f"systemctl {verb} {unit}: exit status {returncode} ({output})",
                unit=unit,
                output=output,
            )
        return output

    def get_property(self, unit: str, name: str) -> str:
        """Return one property value of ``unit``, trimmed."""
        return self._run("show", unit, self._argv("show", "-p", name, "--value", unit))

    def set_property(self, unit: str, name: str, value: str) -> None:
        """Set one property on ``unit`` until it stops (``--runtime``)."""
        self._run(
            "set-property", unit, self._argv("set-property", "--runtime", unit, f"{name}={value}")
        )

    def get_affinity(self, unit: str) -> str:
        return self.get_property(unit, ALLOWED_CPUS)

    def set_affinity(self, unit: str, cpus: str) -> None:
        logger.debug(f"Setting {ALLOWED_CPUS}={cpus!r} on {unit}")
        self.set_property(unit, ALLOWED_CPUS, cpus)

    def start_unit(self, unit: str) -> None:
        self._run("start", unit, self.start_unit_args(unit))

    @staticmethod
    def set_affinity_args(unit: str, cpus: str) -> List[str]:
        """Argument vector :meth:`set_affinity` would run."""
        return SystemctlTransport._argv("set-property", "--runtime", unit, f"{ALLOWED_CPUS}={cpus}")

    @staticmethod
    def start_unit_args(unit: str) -> List[str]:
        """Argument vector :meth:`start_unit` would run."""
        return SystemctlTransport._argv("start", unit)
