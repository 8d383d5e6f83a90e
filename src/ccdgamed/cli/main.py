"""
Command-line interface for the ccd-gamed CPU pinning daemon.

This module provides the main CLI entry point, handling command-line
arguments, configuration loading and dispatch to the daemon loop or to one
of the inspection commands.
"""

import argparse
import json
import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import List, Optional

from ..config import load_config
from ..control import create_unit_controller
from ..models.config import DaemonConfig
from ..orchestration import PinDaemon, PinOrchestrator
from ..state import default_state_path, load_state
from ..system.commands import check_systemctl_installed
from ..system.processes import ProcessScanner
from ..system.topology import resolve_cpu_sets
from ..system.units import unit_name_for_game_id
from ..validation import CcdGamedError, handle_cli_error

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool) -> None:
    """Configure root logging; command output stays alone on stdout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ccd-gamed",
        description="Pin running games to their own CPU cache domain and the desktop to the rest.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.toml (default: $XDG_CONFIG_HOME/ccd-gamed/config.toml).",
    )
    parser.add_argument(
        "--state",
        type=Path,
        help="Path to the state file (default: $XDG_STATE_HOME/ccd-gamed/state.json).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log intended systemd changes without making them.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    run_parser = subparsers.add_parser("run", help="Run the pinning daemon.")
    run_parser.add_argument(
        "--once", action="store_true", help="Run a single polling step and exit."
    )
    subparsers.add_parser("detect", help="Print the detected OS and game CPU sets.")
    subparsers.add_parser("scan", help="Print running game processes grouped by game.")
    subparsers.add_parser("restore", help="Restore recorded original CPU affinity.")
    subparsers.add_parser("status", help="Print the state file.")
    return parser


def _state_path(args: argparse.Namespace, config: DaemonConfig) -> Path:
    return args.state or config.state_file or default_state_path()


def _build_scanner(config: DaemonConfig) -> ProcessScanner:
    return ProcessScanner.from_config(config.scanner_config(os.getuid()))


def _build_orchestrator(args: argparse.Namespace, config: DaemonConfig) -> PinOrchestrator:
    controller = create_unit_controller(dry_run=args.dry_run)
    return PinOrchestrator(
        config=config,
        scanner=_build_scanner(config),
        controller=controller,
        state_path=_state_path(args, config),
    )


def cmd_run(args: argparse.Namespace, config: DaemonConfig) -> int:
    if not args.dry_run and not check_systemctl_installed():
        logger.error("systemctl not found on PATH; cannot change unit properties")
        return 1

    orchestrator = _build_orchestrator(args, config)
    daemon = PinDaemon(orchestrator, interval=config.interval)
    try:
        if args.once:
            daemon.run_once()
        else:
            daemon.run()
    finally:
        orchestrator.controller.close()
    return 1 if daemon.failed_ticks and args.once else 0


def cmd_detect(args: argparse.Namespace, config: DaemonConfig) -> int:
    result = resolve_cpu_sets(config.os_cpus_override, config.game_cpus_override)
    source = "override" if config.os_cpus_override else "cache topology"
    print(f"source:    {source}")
    print(f"os_cpus:   {result.os_cpus}")
    print(f"game_cpus: {result.game_cpus}")
    print(f"domains:   {' '.join(result.lists)}")
    return 0


def cmd_scan(args: argparse.Namespace, config: DaemonConfig) -> int:
    groups = _build_scanner(config).scan()
    if not groups:
        print("no game processes found")
        return 0
    for game_id in sorted(groups):
        print(f"{game_id} -> {unit_name_for_game_id(game_id)}")
        for process in groups[game_id]:
            print(
                f"  pid={process.pid} start={process.start_time} "
                f"exe={process.exe or '?'} source={process.id_source}"
            )
    return 0


def cmd_restore(args: argparse.Namespace, config: DaemonConfig) -> int:
    orchestrator = _build_orchestrator(args, config)
    try:
        if not orchestrator.pin_active:
            logger.info("Nothing to restore")
            return 0
        orchestrator.restore()
    finally:
        orchestrator.controller.close()
    return 0


def cmd_status(args: argparse.Namespace, config: DaemonConfig) -> int:
    path = _state_path(args, config)
    state = load_state(path)
    print(f"state file: {path}")
    print(json.dumps(state.to_dict(), indent=2))
    return 0


COMMANDS = {
    "run": cmd_run,
    "detect": cmd_detect,
    "scan": cmd_scan,
    "restore": cmd_restore,
    "status": cmd_status,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, load configuration and run the selected command.

    Returns:
        Process exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = load_config(args.config)
    except (CcdGamedError, tomllib.TOMLDecodeError, OSError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )
    if not args.verbose:
        logging.getLogger().setLevel(config.log_level)

    try:
        return COMMANDS[args.command](args, config)
    except (CcdGamedError, OSError) as e:
        handle_cli_error(
            error=e,
            context=f"'{args.command}' command",
            exit_code=1,
            include_traceback=args.verbose,
            logger=logger,
        )
    return 1


def main_cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    main_cli()
