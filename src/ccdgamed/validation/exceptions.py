"""
Exception hierarchy and error handling helpers.

This module defines the typed errors raised by the core subsystems and the
small set of logging helpers used to report them consistently across the
daemon.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class CcdGamedError(Exception):
    """Base class for every error raised by ccd-gamed."""


class ValidationError(CcdGamedError):
    """
    Exception raised when configuration or argument validation fails.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class CPUListError(CcdGamedError):
    """A CPU list expression could not be parsed."""

    def __init__(self, message: str, token: str = ""):
        super().__init__(message)
        self.token = token


class InvalidRangeError(CPUListError):
    """A range's lower bound exceeds its upper bound (e.g. ``3-1``)."""


class InvalidNumberError(CPUListError):
    """A token is not a non-negative integer."""


class TopologyError(CcdGamedError):
    """CPU topology could not be classified into OS and game sets."""


class NoValidCPUListsError(TopologyError):
    """No usable CPU list was discovered."""


class NoOSCandidateError(TopologyError):
    """None of the discovered CPU lists contains CPU 0."""


class NoCacheFilesFoundError(TopologyError):
    """No shared-cache descriptor files exist on this host."""


class NoReadableCacheFilesError(TopologyError):
    """Shared-cache descriptor files exist but none could be read."""


class ProcessTableError(CcdGamedError):
    """The process table root could not be listed."""


class UnitControlError(CcdGamedError):
    """
    A control-plane call (D-Bus or systemctl) failed.

    Attributes:
        unit: The unit the call was addressed to, if any.
        output: Diagnostic text captured from the transport.
    """

    def __init__(self, message: str, unit: str = "", output: str = ""):
        super().__init__(message)
        self.unit = unit
        self.output = output


class StateFileError(CcdGamedError):
    """The persisted state could not be parsed or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    """Handle file-related errors."""
    handle_error(error, f"file {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a CLI-level error and exit the process."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)
    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    if include_traceback:
        severity = ErrorSeverity.CRITICAL

    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
