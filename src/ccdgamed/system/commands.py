"""
Command execution utilities.

This module runs external tools (``systemctl``) with captured output and a
hard timeout so a hung service manager cannot stall the daemon.
"""

import logging
import shlex
import shutil
import subprocess
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 10.0


def run_command(
    args: Sequence[str], timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT
) -> Tuple[int, str, str]:
    """Execute a command and capture its output with robust error handling.

    Args:
        args: The argument vector; ``args[0]`` is looked up on ``PATH``.
        timeout: Seconds before the child is killed, None for no limit.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 when the command could not be run or timed out.

    Note:
        Uses UTF-8 encoding with error replacement for robust text handling.
    """
    command = shlex.join(args)
    logger.debug(f"Executing command: '{command}'")
    try:
        process = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except FileNotFoundError as e:
        logger.error(f"Command not found: {args[0]}: {type(e).__name__}: {e}")
        return -1, "", f"Error: Command not found '{args[0]}'"
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: '{command}'")
        return -1, "", f"Error: Command timed out after {timeout}s"
    except OSError as e:
        logger.error(f"Failed to run '{command}': {type(e).__name__}: {e}", exc_info=True)
        return -1, "", f"An unexpected error occurred: {e}"


def combined_output(stdout: str, stderr: str) -> str:
    """Join stdout and stderr into one trimmed diagnostic string."""
    parts: List[str] = [s.strip() for s in (stdout, stderr) if s and s.strip()]
    return "\n".join(parts)


def check_systemctl_installed() -> bool:
    """Check if the 'systemctl' command is available on the system."""
    return shutil.which("systemctl") is not None
