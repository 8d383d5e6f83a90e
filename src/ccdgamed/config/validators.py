"""
Configuration validation utilities.

This module turns the raw TOML mapping into a validated DaemonConfig.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.config import (
    DEFAULT_ENV_KEYS,
    DEFAULT_GAME_SLICE,
    DEFAULT_IGNORE_EXE,
    DEFAULT_PIN_SLICES,
    DaemonConfig,
)
from ..validation import (
    ValidationError,
    validate_bool,
    validate_cpu_list_text,
    validate_duration,
    validate_log_level,
    validate_string_list,
    validate_unit_name,
)
from .loader import IGNORE_FILE_NAME

logger = logging.getLogger(__name__)

KNOWN_KEYS = {
    "interval",
    "env_keys",
    "exe_allowlist",
    "ignore_exe",
    "ignore_file",
    "pin_session_slice",
    "pin_slices",
    "game_slice",
    "os_cpus",
    "game_cpus",
    "state_file",
    "log_level",
}


def validate_path(value: Any, base_dir: Path, field_name: str) -> Path:
    """
    Validate a path option; relative paths are resolved against ``base_dir``.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty path string", field_name=field_name, value=value
        )
    path = Path(value.strip()).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path


def validate_slice_list(value: Any, field_name: str = "pin_slices") -> List[str]:
    """Validate a list of ``.slice`` unit names."""
    return [
        validate_unit_name(name, suffix=".slice", field_name=field_name)
        for name in validate_string_list(value, field_name=field_name)
    ]


def validate_daemon_config(
    data: Dict[str, Any],
    config_dir: Path,
    default_state_file: Optional[Path] = None,
    default_ignore_file: Optional[Path] = None,
) -> DaemonConfig:
    """
    Validate and create a DaemonConfig from raw configuration data.

    Args:
        data: Raw configuration from config.toml (may be empty)
        config_dir: Directory relative paths are resolved against
        default_state_file: State file used when ``state_file`` is not set
        default_ignore_file: Ignore file used when ``ignore_file`` is not set;
            falls back to ``<config_dir>/ignore.txt``

    Returns:
        Validated DaemonConfig instance; ``ignore_exe`` does not yet include
        the ignore file's entries

    Raises:
        ValidationError: If validation fails
    """
    unknown = sorted(set(data) - KNOWN_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

    interval = validate_duration(data.get("interval", "2s"), field_name="interval")

    env_keys = validate_string_list(
        data.get("env_keys", list(DEFAULT_ENV_KEYS)), field_name="env_keys"
    )
    if not env_keys:
        logger.warning("env_keys is empty; only exe_allowlist can identify games")

    exe_allowlist = [
        name.lower()
        for name in validate_string_list(data.get("exe_allowlist", []), field_name="exe_allowlist")
    ]
    ignore_exe = [
        name.lower()
        for name in validate_string_list(
            data.get("ignore_exe", list(DEFAULT_IGNORE_EXE)), field_name="ignore_exe"
        )
    ]

    pin_session_slice = validate_bool(
        data.get("pin_session_slice", False), field_name="pin_session_slice"
    )
    pin_slices = validate_slice_list(
        data.get("pin_slices", list(DEFAULT_PIN_SLICES)), field_name="pin_slices"
    )
    game_slice = validate_unit_name(
        data.get("game_slice", DEFAULT_GAME_SLICE), suffix=".slice", field_name="game_slice"
    )
    if game_slice in pin_slices:
        raise ValidationError(
            f"game_slice {game_slice} cannot also be pinned to the OS CPUs",
            field_name="pin_slices",
            value=pin_slices,
        )

    os_cpus = validate_cpu_list_text(data.get("os_cpus", ""), field_name="os_cpus")
    game_cpus = validate_cpu_list_text(data.get("game_cpus", ""), field_name="game_cpus")
    if bool(os_cpus) != bool(game_cpus):
        raise ValidationError(
            "os_cpus and game_cpus must be set together",
            field_name="os_cpus" if not os_cpus else "game_cpus",
        )

    if "state_file" in data:
        state_file = validate_path(data["state_file"], config_dir, "state_file")
    else:
        state_file = default_state_file

    if "ignore_file" in data:
        ignore_file = validate_path(data["ignore_file"], config_dir, "ignore_file")
    elif default_ignore_file is not None:
        ignore_file = default_ignore_file
    else:
        ignore_file = config_dir / IGNORE_FILE_NAME

    log_level = validate_log_level(data.get("log_level", "INFO"))

    return DaemonConfig(
        interval=interval,
        env_keys=env_keys,
        exe_allowlist=exe_allowlist,
        ignore_exe=ignore_exe,
        pin_session_slice=pin_session_slice,
        pin_slices=pin_slices,
        game_slice=game_slice,
        os_cpus_override=os_cpus,
        game_cpus_override=game_cpus,
        state_file=state_file,
        log_level=log_level,
        ignore_file=ignore_file,
    )
