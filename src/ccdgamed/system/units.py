"""
Systemd unit naming for game scopes.
"""

import re

GAME_SCOPE_PREFIX = "game-"
SCOPE_SUFFIX = ".scope"
UNKNOWN_GAME_ID = "unknown"
MAX_GAME_ID_LENGTH = 80

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_GAME_SCOPE = re.compile(r"game-[A-Za-z0-9_-]{1,80}\.scope")


def unit_name_for_game_id(game_id: str) -> str:
    """Turn an arbitrary game identifier into a stable scope name.

    The mapping is deterministic so the same game is found again after a
    restart.

    Examples:
        >>> unit_name_for_game_id("12345")
        'game-12345.scope'
        >>> unit_name_for_game_id("weird id: (x)")
        'game-weird_id___x.scope'
        >>> unit_name_for_game_id("  ")
        'game-unknown.scope'
    """
    game_id = (game_id or "").strip() or UNKNOWN_GAME_ID

    # Non-ASCII letters and digits are replaced too.
    sanitized = _UNSAFE_CHARS.sub("_", game_id).strip("-_")
    if not sanitized:
        sanitized = UNKNOWN_GAME_ID
    sanitized = sanitized[:MAX_GAME_ID_LENGTH]
    return f"{GAME_SCOPE_PREFIX}{sanitized}{SCOPE_SUFFIX}"


def is_game_scope(unit: str) -> bool:
    """Return True for names produced by :func:`unit_name_for_game_id`."""
    return bool(_GAME_SCOPE.fullmatch(unit))
