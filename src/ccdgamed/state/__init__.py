"""
Persistent pin state.
"""

from .store import default_state_path, load_state, save_state

__all__ = [
    "default_state_path",
    "load_state",
    "save_state",
]
