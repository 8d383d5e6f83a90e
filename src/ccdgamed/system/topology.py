"""
CPU topology detection.

This module splits the machine's logical CPUs into an OS set and a game set
using the kernel's cache-sharing information. Every CPU reports which CPUs
share its L3 cache in ``cache/index3/shared_cpu_list``; on multi-CCD parts
each distinct list is one CCD. The list containing CPU 0 becomes the OS set
and every other CCD is unioned into the game set.

Key features:
- Deterministic selection (lists are sorted by canonical text)
- Tolerates unreadable or malformed per-CPU files
- Manual overrides that bypass detection entirely
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import psutil

from ..models.runtime import TopologyResult
from ..validation import (
    CPUListError,
    NoCacheFilesFoundError,
    NoOSCandidateError,
    NoReadableCacheFilesError,
    NoValidCPUListsError,
    ValidationError,
    validate_cpu_list_text,
)
from .cpulist import canonicalize_cpu_list, contains_cpu, format_cpu_list

logger = logging.getLogger(__name__)

DEFAULT_SYSFS_ROOT = Path("/sys")
# L3 on current x86 parts: shared by every core on one die.
DEFAULT_CACHE_INDEX = 3


def select_os_and_game(raw_lists: Iterable[str]) -> Tuple[str, str, List[str]]:
    """
    Classify cache-domain CPU lists into the OS set and the game set.

    Args:
        raw_lists: Raw ``shared_cpu_list`` contents, one per CPU.

    Returns:
        Tuple of (os_cpus, game_cpus, canonical_lists).

    Raises:
        NoValidCPUListsError: If no entry parses to a non-empty list
        NoOSCandidateError: If no list contains CPU 0

    Examples:
        >>> select_os_and_game(["0-3", "4-7", "0-3"])
        ('0-3', '4-7', ['0-3', '4-7'])
    """
    parsed = {}
    for raw in raw_lists:
        try:
            canonical, cpus = canonicalize_cpu_list(raw)
        except CPUListError as e:
            logger.debug(f"Skipping malformed cpu list {raw!r}: {e}")
            continue
        if not canonical:
            continue
        parsed[canonical] = cpus

    if not parsed:
        raise NoValidCPUListsError("no valid cpu lists")

    canonical_lists = sorted(parsed)

    os_cpus = None
    for canonical in canonical_lists:
        if contains_cpu(parsed[canonical], 0):
            os_cpus = canonical
            break
    if os_cpus is None:
        raise NoOSCandidateError(f"no cpu list contains CPU0: {canonical_lists}")

    game = set()
    for canonical in canonical_lists:
        if canonical == os_cpus:
            continue
        # A second list overlapping CPU0 is not a separate CCD.
        if contains_cpu(parsed[canonical], 0):
            logger.warning(
                f"Ignoring cpu list {canonical} that also contains CPU0 (OS list: {os_cpus})"
            )
            continue
        game.update(parsed[canonical])

    return os_cpus, format_cpu_list(game), canonical_lists


def cache_list_files(
    sysfs_root: Union[str, Path] = DEFAULT_SYSFS_ROOT,
    cache_index: int = DEFAULT_CACHE_INDEX,
) -> List[Path]:
    """Return every per-CPU ``shared_cpu_list`` file for one cache level."""
    cpu_dir = Path(sysfs_root) / "devices" / "system" / "cpu"
    return sorted(cpu_dir.glob(f"cpu*/cache/index{cache_index}/shared_cpu_list"))


def detect(
    sysfs_root: Union[str, Path] = DEFAULT_SYSFS_ROOT,
    cache_index: int = DEFAULT_CACHE_INDEX,
) -> TopologyResult:
    """
    Detect the OS/game CPU partition from sysfs.

    Args:
        sysfs_root: Root of the sysfs tree (``/sys`` on a real host).
        cache_index: Cache index directory to read (``index3`` is L3).

    Returns:
        TopologyResult with canonical OS and game lists

    Raises:
        NoCacheFilesFoundError: If no descriptor files exist
        NoReadableCacheFilesError: If none of them could be read
        NoValidCPUListsError: If no file held a usable list
        NoOSCandidateError: If no list contains CPU 0
    """
    files = cache_list_files(sysfs_root, cache_index)
    if not files:
        raise NoCacheFilesFoundError(
            f"no index{cache_index} shared_cpu_list files found under {sysfs_root}"
        )

    raw = []
    for path in files:
        try:
            raw.append(path.read_text())
        except OSError as e:
            logger.debug(f"Cannot read {path}: {e}")
    if not raw:
        raise NoReadableCacheFilesError(
            f"failed to read any of {len(files)} shared_cpu_list files"
        )

    os_cpus, game_cpus, lists = select_os_and_game(raw)
    logger.debug(f"Detected cache domains {lists}: os={os_cpus} game={game_cpus}")
    return TopologyResult(os_cpus=os_cpus, game_cpus=game_cpus, lists=lists)


def available_cpus() -> List[int]:
    """Get the list of logical CPUs known to the kernel."""
    try:
        count = psutil.cpu_count(logical=True)
    except Exception as e:
        logger.warning(f"Failed to get CPU count: {e}")
        count = None
    return list(range(count)) if count else []


def resolve_cpu_sets(
    os_override: str = "",
    game_override: str = "",
    sysfs_root: Union[str, Path] = DEFAULT_SYSFS_ROOT,
    known_cpus: Optional[List[int]] = None,
) -> TopologyResult:
    """
    Return the operator's overrides if given, otherwise detect the topology.

    Args:
        os_override: CPU list for the OS domain, or empty.
        game_override: CPU list for the game domain, or empty.
        sysfs_root: Passed to :func:`detect` when no overrides are set.
        known_cpus: CPUs that exist on this host; defaults to
            :func:`available_cpus`.

    Raises:
        ValidationError: If only one override is set, either is empty after
            canonicalization, or they overlap
        TopologyError: Propagated from :func:`detect`
    """
    os_override = (os_override or "").strip()
    game_override = (game_override or "").strip()

    if not os_override and not game_override:
        return detect(sysfs_root)
    if not os_override or not game_override:
        raise ValidationError(
            "os_cpus and game_cpus overrides must be set together",
            field_name="os_cpus" if not os_override else "game_cpus",
        )

    os_cpus = validate_cpu_list_text(os_override, field_name="os_cpus")
    game_cpus = validate_cpu_list_text(game_override, field_name="game_cpus")
    if not os_cpus or not game_cpus:
        raise ValidationError(
            "os_cpus and game_cpus overrides must name at least one CPU",
            field_name="os_cpus" if not os_cpus else "game_cpus",
        )
    _, os_set = canonicalize_cpu_list(os_cpus)
    _, game_set = canonicalize_cpu_list(game_cpus)

    overlap = os_set & game_set
    if overlap:
        raise ValidationError(
            f"os_cpus and game_cpus overlap on {format_cpu_list(overlap)}",
            field_name="game_cpus",
            value=game_override,
        )

    if known_cpus is None:
        known_cpus = available_cpus()
    if known_cpus:
        missing = (os_set | game_set) - set(known_cpus)
        if missing:
            logger.warning(
                f"CPU overrides reference CPUs not present on this host: {format_cpu_list(missing)}"
            )

    return TopologyResult(os_cpus=os_cpus, game_cpus=game_cpus, lists=[os_cpus, game_cpus])
