"""
Configuration management for the ccdgamed package.

This module provides a clean interface for loading, validating, and accessing
the daemon configuration from config.toml and the ignore file.
"""

# Main configuration interface
from .manager import load_config

# For advanced usage - direct access to loaders and validators
from .loader import (
    default_config_dir,
    default_config_path,
    load_ignore_file,
    load_main_config,
    load_toml_file,
)
from .validators import validate_daemon_config

__all__ = [
    # Main interface
    "load_config",
    # Advanced interface
    "default_config_dir",
    "default_config_path",
    "load_toml_file",
    "load_main_config",
    "load_ignore_file",
    "validate_daemon_config",
]
