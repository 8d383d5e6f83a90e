"""
CPU list parsing and formatting.

CPU lists use the kernel's textual form, e.g. ``"0-3,8,10-11"``. Every
other module compares CPU lists through :func:`canonicalize_cpu_list` so
that equal sets always have equal text.
"""

from typing import Iterable, Set, Tuple

from ..validation import InvalidNumberError, InvalidRangeError


def _parse_cpu(token: str, part: str) -> int:
    token = token.strip()
    if not (token.isascii() and token.isdigit()):
        raise InvalidNumberError(f"invalid cpu {token!r} in {part!r}", token=part)
    return int(token)


def parse_cpu_list(text: str) -> Set[int]:
    """Parse a CPU list string into a set of CPU ids.

    Duplicates and overlapping ranges are unioned. Empty or whitespace-only
    input yields an empty set.

    Args:
        text: CPU list such as ``"0-3,5"``.

    Returns:
        Set of logical CPU ids.

    Raises:
        InvalidRangeError: If a range's lower bound exceeds its upper bound.
        InvalidNumberError: If a token is not a non-negative integer.

    Examples:
        >>> sorted(parse_cpu_list("0-2,4, 6-7,7"))
        [0, 1, 2, 4, 6, 7]
        >>> parse_cpu_list("")
        set()
    """
    cpus: Set[int] = set()
    if not text or not text.strip():
        return cpus

    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start_str, end_str = part.split("-", 1)
            start = _parse_cpu(start_str, part)
            end = _parse_cpu(end_str, part)
            if start > end:
                raise InvalidRangeError(f"invalid cpu range {part!r}", token=part)
            cpus.update(range(start, end + 1))
        else:
            cpus.add(_parse_cpu(part, part))
    return cpus


def format_cpu_list(cpus: Iterable[int]) -> str:
    """Format CPU ids into the compact canonical string.

    Examples:
        >>> format_cpu_list({0, 2, 3, 4})
        '0,2-4'
        >>> format_cpu_list([])
        ''
    """
    sorted_cpus = sorted(set(cpus))
    if not sorted_cpus:
        return ""

    ranges = []
    start = sorted_cpus[0]
    end = start

    for cpu in sorted_cpus[1:]:
        if cpu == end + 1:
            end = cpu
            continue
        ranges.append(str(start) if start == end else f"{start}-{end}")
        start = cpu
        end = cpu

    ranges.append(str(start) if start == end else f"{start}-{end}")
    return ",".join(ranges)


def canonicalize_cpu_list(text: str) -> Tuple[str, Set[int]]:
    """Parse then format, returning both the canonical text and the set.

    Raises:
        InvalidRangeError: See :func:`parse_cpu_list`.
        InvalidNumberError: See :func:`parse_cpu_list`.
    """
    cpus = parse_cpu_list(text)
    return format_cpu_list(cpus), cpus


def contains_cpu(cpus: Iterable[int], cpu: int) -> bool:
    """Return True if ``cpu`` is a member of ``cpus``."""
    return cpu in cpus
