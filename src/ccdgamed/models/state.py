"""
Persistent pin state model.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

STATE_VERSION = 1


def _format_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_time(value: Any, field_name: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be an ISO-8601 string, got {value!r}")
    return datetime.fromisoformat(value)


@dataclass
class StateFile:
    """
    What is pinned right now and what every unit looked like before.

    ``original_allowed_cpus`` maps a unit name to its ``AllowedCPUs`` value
    from before the daemon first changed it. An entry is written once and
    is never overwritten while a pin is active.
    """

    version: int = STATE_VERSION
    pin_applied: bool = False
    original_allowed_cpus: Dict[str, str] = field(default_factory=dict)
    os_cpus: str = ""
    game_cpus: str = ""
    updated_at: Optional[datetime] = None
    last_successful_restore: Optional[datetime] = None
    last_successful_pin_apply: Optional[datetime] = None

    def normalize(self) -> "StateFile":
        """Apply version and mapping defaults in place."""
        if not self.version:
            self.version = STATE_VERSION
        if self.original_allowed_cpus is None:
            self.original_allowed_cpus = {}
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "pin_applied": self.pin_applied,
            "original_allowed_cpus": dict(self.original_allowed_cpus or {}),
            "os_cpus": self.os_cpus,
            "game_cpus": self.game_cpus,
            "updated_at": _format_time(self.updated_at),
            "last_successful_restore": _format_time(self.last_successful_restore),
            "last_successful_pin_apply": _format_time(self.last_successful_pin_apply),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StateFile":
        """
        Build a StateFile from decoded JSON.

        Raises:
            ValueError: If a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError("state must be a JSON object")

        original = data.get("original_allowed_cpus")
        if original is not None:
            if not isinstance(original, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in original.items()
            ):
                raise ValueError("original_allowed_cpus must map unit names to strings")

        pin_applied = data.get("pin_applied")
        if pin_applied is None:
            pin_applied = False
        elif not isinstance(pin_applied, bool):
            raise ValueError(f"pin_applied must be a boolean, got {pin_applied!r}")

        version = data.get("version") or 0
        if isinstance(version, bool) or not isinstance(version, int):
            raise ValueError(f"version must be an integer, got {version!r}")

        state = cls(
            version=version,
            pin_applied=pin_applied,
            original_allowed_cpus=dict(original) if original is not None else None,
            os_cpus=str(data.get("os_cpus") or ""),
            game_cpus=str(data.get("game_cpus") or ""),
            updated_at=_parse_time(data.get("updated_at"), "updated_at"),
            last_successful_restore=_parse_time(
                data.get("last_successful_restore"), "last_successful_restore"
            ),
            last_successful_pin_apply=_parse_time(
                data.get("last_successful_pin_apply"), "last_successful_pin_apply"
            ),
        )
        return state
