"""
Configuration loading entry point.

This module ties the TOML loader, the validators and the ignore file
together into a single resolved DaemonConfig.
"""

import logging
from pathlib import Path
from typing import Mapping, Optional

from ..models.config import DaemonConfig
from ..state import default_state_path
from ..validation import handle_config_error, ErrorSeverity
from .loader import (
    IGNORE_FILE_NAME,
    default_config_dir,
    default_config_path,
    load_ignore_file,
    load_main_config,
)
from .validators import validate_daemon_config

logger = logging.getLogger(__name__)


def load_config(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> DaemonConfig:
    """
    Load the daemon configuration.

    Reads config.toml (a missing file means all defaults), validates it,
    and merges the ignore file into ``ignore_exe``.

    Args:
        config_path: Path to config.toml; defaults to the XDG location
        env: Environment used to resolve XDG directories; defaults to os.environ

    Returns:
        Fully validated DaemonConfig instance

    Raises:
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If config.toml is malformed
        OSError: If a configuration file exists but cannot be read
    """
    if config_path is None:
        config_path = default_config_path(env)
    config_path = Path(config_path).expanduser()

    try:
        data = load_main_config(config_path)
        config = validate_daemon_config(
            data,
            config_dir=config_path.parent,
            default_state_file=default_state_path(env),
            default_ignore_file=default_config_dir(env) / IGNORE_FILE_NAME,
        )

        extra = load_ignore_file(config.ignore_file)
        for name in extra:
            name = name.lower()
            if name not in config.ignore_exe:
                config.ignore_exe.append(name)
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise

    config.config_path = config_path
    logger.info(
        f"Configuration loaded: interval={config.interval}s, "
        f"{len(config.env_keys)} env keys, {len(config.exe_allowlist)} allowlisted, "
        f"{len(config.ignore_exe)} ignored executables"
    )
    return config
