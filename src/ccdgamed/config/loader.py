"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the daemon's
configuration files: the main config.toml and the plain-text ignore list.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..validation import handle_config_error, ErrorSeverity, ValidationError

logger = logging.getLogger(__name__)

APP_DIR_NAME = "ccd-gamed"
CONFIG_FILE_NAME = "config.toml"
IGNORE_FILE_NAME = "ignore.txt"


def default_config_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Return the per-user configuration directory.

    ``$XDG_CONFIG_HOME/ccd-gamed`` if set, otherwise ``~/.config/ccd-gamed``.

    Raises:
        ValidationError: If neither XDG_CONFIG_HOME nor a home directory is available
    """
    env = os.environ if env is None else env
    base = env.get("XDG_CONFIG_HOME", "").strip()
    if base:
        return Path(base) / APP_DIR_NAME
    try:
        home = Path.home()
    except RuntimeError as e:
        raise ValidationError(f"cannot determine home directory: {e}") from e
    return home / ".config" / APP_DIR_NAME


def default_config_path(env: Optional[Mapping[str, str]] = None) -> Path:
    """Return ``<config dir>/config.toml``."""
    return default_config_dir(env) / CONFIG_FILE_NAME


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """
    Load the main configuration file (config.toml).

    A missing file is not an error; the daemon runs on defaults.

    Args:
        config_path: Path to the main config.toml file

    Returns:
        Parsed configuration data, or an empty dict if the file is absent
    """
    try:
        return load_toml_file(config_path, "main configuration file")
    except FileNotFoundError:
        logger.info(f"No configuration file at {config_path}, using defaults")
        return {}


def load_ignore_file(ignore_path: Path) -> List[str]:
    """
    Load extra executable names to ignore, one per line.

    Blank lines and lines starting with ``#`` are skipped. A missing file
    yields an empty list.

    Raises:
        OSError: If the file exists but cannot be read
    """
    try:
        text = ignore_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug(f"No ignore file at {ignore_path}")
        return []

    names = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        names.append(line)
    logger.debug(f"Loaded {len(names)} ignored executables from {ignore_path}")
    return names
