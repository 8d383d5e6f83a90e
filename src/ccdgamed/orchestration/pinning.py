"""
Pin orchestration.

Moves each running game into its own transient scope under the game slice,
pins those scopes to the game CPUs and the configured OS slices to the OS
CPUs, and puts everything back once no game is running.

Every unit's original ``AllowedCPUs`` value is persisted before the daemon
first changes it. Restoration replays that mapping, so a crash at any point
leaves enough on disk for the next start to undo the pin.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

import psutil

from ..control import AbstractUnitController
from ..models.config import DaemonConfig
from ..models.runtime import GameProcess, TickReport, TopologyResult
from ..state import default_state_path, load_state, save_state
from ..system.processes import ProcessScanner
from ..system.topology import resolve_cpu_sets
from ..system.units import is_game_scope, unit_name_for_game_id
from ..validation import UnitControlError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PinOrchestrator:
    """
    Applies and restores CPU pinning for one user session.

    Args:
        config: Daemon configuration.
        scanner: Finds game processes.
        controller: Performs unit operations (real or dry-run).
        state_path: State file; defaults to ``config.state_file`` or the XDG location.
        cpu_resolver: Returns the OS/game partition; defaults to the
            configured overrides or topology detection.
        pid_exists: Liveness check applied to scanned PIDs before use.
        clock: Source of timestamps recorded in the state.
    """

    def __init__(
        self,
        config: DaemonConfig,
        scanner: ProcessScanner,
        controller: AbstractUnitController,
        state_path: Optional[Path] = None,
        cpu_resolver: Optional[Callable[[], TopologyResult]] = None,
        pid_exists: Callable[[int], bool] = psutil.pid_exists,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config
        self.scanner = scanner
        self.controller = controller
        self.state_path = Path(state_path or config.state_file or default_state_path())
        self.cpu_resolver = cpu_resolver or self._resolve_from_config
        self._pid_exists = pid_exists
        self._clock = clock

        self.state = load_state(self.state_path)
        # unit -> CPU list applied by this process
        self._pinned: Dict[str, str] = {}
        self._game_slice_started = False

    def _resolve_from_config(self) -> TopologyResult:
        return resolve_cpu_sets(self.config.os_cpus_override, self.config.game_cpus_override)

    @property
    def pin_active(self) -> bool:
        """True while the state records a pin or unrestored originals."""
        return bool(self.state.pin_applied or self.state.original_allowed_cpus)

    def _save(self) -> None:
        if self.controller.dry_run:
            logger.info(f"dry-run: would save state to {self.state_path}")
            return
        save_state(self.state_path, self.state)

    def recover(self) -> bool:
        """
        Undo a pin left behind by a previous run.

        Returns:
            True if a restore was performed

        Raises:
            UnitControlError: If a non-scope unit could not be restored
        """
        if not self.pin_active:
            return False
        logger.warning(
            f"State file {self.state_path} records an active pin from a previous run, restoring"
        )
        self.restore()
        return True

    def tick(self) -> TickReport:
        """
        Run one polling step: pin while games run, restore once they stop.
        """
        cpus = self.cpu_resolver()
        groups = self.scanner.scan()
        report = TickReport(os_cpus=cpus.os_cpus, game_cpus=cpus.game_cpus)

        if groups:
            self.apply(groups, cpus, report)
        if not report.games and self.pin_active:
            logger.info("No games running, restoring original CPU affinity")
            self.restore()
            report.restored = True
        return report

    def _live_pids(self, processes: List[GameProcess]) -> List[int]:
        pids = []
        for process in processes:
            if self._pid_exists(process.pid):
                pids.append(process.pid)
            else:
                logger.debug(f"Process {process.pid} ({process.exe}) exited before it could be moved")
        return pids

    def _place_games(self, groups: Dict[str, List[GameProcess]], report: TickReport) -> None:
        for game_id in sorted(groups):
            pids = self._live_pids(groups[game_id])
            if not pids:
                continue
            unit = unit_name_for_game_id(game_id)
            created = self.controller.ensure_scope(
                unit, pids, slice_name=self.config.game_slice, description=f"Game {game_id}"
            )
            if created:
                logger.info(f"Created {unit} for game {game_id} with PIDs {pids}")
                report.created_scopes.append(unit)
            else:
                self.controller.attach_processes(unit, "", pids)
            report.games[game_id] = unit

    def apply(
        self,
        groups: Dict[str, List[GameProcess]],
        cpus: TopologyResult,
        report: Optional[TickReport] = None,
    ) -> TickReport:
        """
        Place every game into its scope and pin scopes and OS slices.

        Args:
            groups: Game id to processes, as returned by the scanner.
            cpus: OS/game partition to apply.
            report: Report to fill in; a new one is created when omitted.

        Raises:
            UnitControlError: If a unit operation fails
            StateFileError: If the state cannot be saved
        """
        if report is None:
            report = TickReport(os_cpus=cpus.os_cpus, game_cpus=cpus.game_cpus)

        if not self._game_slice_started:
            self.controller.start_unit(self.config.game_slice)
            self._game_slice_started = True

        self._place_games(groups, report)
        if not report.games:
            return report
        scopes = set(report.games.values())

        changed = False
        originals = self.state.original_allowed_cpus
        for unit in list(originals):
            if is_game_scope(unit) and unit not in scopes:
                logger.debug(f"Forgetting {unit}, its game has exited")
                del originals[unit]
                self._pinned.pop(unit, None)
                changed = True

        targets = [(unit, cpus.game_cpus) for unit in sorted(scopes)]
        targets += [(unit, cpus.os_cpus) for unit in self.config.os_slices()]
        pending = [(unit, value) for unit, value in targets if self._pinned.get(unit) != value]

        # Originals must be on disk before the first change to their unit.
        missing = [unit for unit, _ in pending if unit not in originals]
        for unit in missing:
            originals[unit] = self.controller.get_affinity(unit)
            logger.debug(f"Recorded original AllowedCPUs of {unit}: {originals[unit]!r}")
        if missing:
            self._save()

        for unit, value in pending:
            self.controller.set_affinity(unit, value)
            self._pinned[unit] = value
            report.pinned_units.append(unit)
            logger.info(f"Pinned {unit} to CPUs {value}")

        if (
            pending
            or changed
            or not self.state.pin_applied
            or self.state.os_cpus != cpus.os_cpus
            or self.state.game_cpus != cpus.game_cpus
        ):
            self.state.pin_applied = True
            self.state.os_cpus = cpus.os_cpus
            self.state.game_cpus = cpus.game_cpus
            self.state.last_successful_pin_apply = self._clock()
            self._save()
        return report

    def restore(self) -> None:
        """
        Set every recorded unit back to its original ``AllowedCPUs``.

        Game scopes that can no longer be updated are assumed gone and are
        dropped. Other failures keep their entry so a later restore can
        retry them.

        Raises:
            UnitControlError: If any non-scope unit could not be restored
            StateFileError: If the state cannot be saved
        """
        originals = self.state.original_allowed_cpus
        failed = []
        for unit in sorted(originals):
            try:
                self.controller.set_affinity(unit, originals[unit])
            except UnitControlError as e:
                if is_game_scope(unit):
                    logger.info(f"Skipping restore of {unit}, the scope is gone: {e}")
                else:
                    logger.error(f"Failed to restore {unit}: {e}")
                    failed.append(unit)
                    continue
            else:
                logger.info(f"Restored {unit} to CPUs {originals[unit] or '(all)'}")
            del originals[unit]
            self._pinned.pop(unit, None)

        if failed:
            self._save()
            raise UnitControlError(
                f"failed to restore AllowedCPUs of {', '.join(failed)}", unit=failed[0]
            )

        self._pinned.clear()
        self.state.pin_applied = False
        self.state.last_successful_restore = self._clock()
        self._save()
