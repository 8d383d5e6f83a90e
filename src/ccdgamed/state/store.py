"""
Crash-safe persistence of the pin state.

The state file records which units were pinned and their ``AllowedCPUs``
before the first change, so a later run (or the same run on shutdown) can
restore them exactly. Writes go to a sibling temporary file that is then
renamed over the real one; readers never see a partial file and a crash
mid-write leaves the previous state intact.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional, Union

from ..models.state import StateFile
from ..validation import StateFileError, ValidationError, handle_file_error, ErrorSeverity

logger = logging.getLogger(__name__)

APP_DIR_NAME = "ccd-gamed"
STATE_FILE_NAME = "state.json"


def default_state_path(env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Return the per-user state file path.

    ``$XDG_STATE_HOME/ccd-gamed/state.json`` if set, otherwise
    ``~/.local/state/ccd-gamed/state.json``.

    Raises:
        ValidationError: If neither XDG_STATE_HOME nor a home directory is available
    """
    env = os.environ if env is None else env
    base = env.get("XDG_STATE_HOME", "").strip()
    if base:
        return Path(base) / APP_DIR_NAME / STATE_FILE_NAME
    try:
        home = Path.home()
    except RuntimeError as e:
        raise ValidationError(f"cannot determine home directory: {e}") from e
    return home / ".local" / "state" / APP_DIR_NAME / STATE_FILE_NAME


def load_state(path: Union[str, Path]) -> StateFile:
    """
    Load the state file.

    A missing file yields a fresh default state. A version of 0 or a missing
    mapping is defaulted in memory only; the file is not rewritten.

    Raises:
        StateFileError: If the file exists but cannot be read or parsed
    """
    path = Path(path)
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug(f"No state file at {path}, starting fresh")
        return StateFile()
    except OSError as e:
        raise StateFileError(f"cannot read state file {path}: {e}", path=str(path)) from e

    try:
        state = StateFile.from_dict(json.loads(data))
    except (json.JSONDecodeError, ValueError) as e:
        raise StateFileError(f"cannot parse state file {path}: {e}", path=str(path)) from e
    return state.normalize()


def save_state(path: Union[str, Path], state: StateFile) -> None:
    """
    Atomically write the state file.

    Stamps ``updated_at``, applies the same defaults as :func:`load_state`,
    creates the parent directory, writes ``<path>.tmp`` and renames it over
    ``path``.

    Raises:
        StateFileError: On any I/O failure
    """
    path = Path(path)
    state.updated_at = datetime.now(timezone.utc)
    state.normalize()

    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state.to_dict(), indent=2)
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        handle_file_error(
            e, f"writing state to {path}", severity=ErrorSeverity.ERROR, reraise=False, logger=logger
        )
        raise StateFileError(f"cannot write state file {path}: {e}", path=str(path)) from e
    logger.debug(f"State saved to {path} (pin_applied={state.pin_applied})")
