"""
Validation and error handling for the ccdgamed package.

This module provides the exception hierarchy shared by every subsystem,
input validation for configuration values, and error handling helpers
with consistent error reporting across the daemon.
"""

# Core exception classes and error handling
from .exceptions import (
    CcdGamedError,
    CPUListError,
    ErrorSeverity,
    InvalidNumberError,
    InvalidRangeError,
    NoCacheFilesFoundError,
    NoOSCandidateError,
    NoReadableCacheFilesError,
    NoValidCPUListsError,
    ProcessTableError,
    StateFileError,
    TopologyError,
    UnitControlError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_file_error,
)

# Retry helpers
from .strategies import simple_retry

# Validation functions
from .validators import (
    validate_bool,
    validate_cpu_list_text,
    validate_duration,
    validate_log_level,
    validate_positive_float,
    validate_string_list,
    validate_unit_name,
)

__all__ = [
    # Exceptions
    "CcdGamedError",
    "CPUListError",
    "ErrorSeverity",
    "InvalidNumberError",
    "InvalidRangeError",
    "NoCacheFilesFoundError",
    "NoOSCandidateError",
    "NoReadableCacheFilesError",
    "NoValidCPUListsError",
    "ProcessTableError",
    "StateFileError",
    "TopologyError",
    "UnitControlError",
    "ValidationError",
    # Handlers
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "handle_file_error",
    # Strategies
    "simple_retry",
    # Validators
    "validate_bool",
    "validate_cpu_list_text",
    "validate_duration",
    "validate_log_level",
    "validate_positive_float",
    "validate_string_list",
    "validate_unit_name",
]
