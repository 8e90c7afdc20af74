"""Derived image metrics.

All functions are total: they accept any integers and never raise.
"""

from datetime import timedelta

_UNIT = 1024
_PREFIXES = "KMGT"


def human_bytes(size: int) -> str:
    """Render a byte count with binary (base-1024) units.

    Negative sizes mean "unknown", e.g. an absent ``Content-Length``.
    """
    if size < 0:
        return "unknown"
    if size < _UNIT:
        return f"{size} B"
    div, exp = _UNIT, 0
    n = size // _UNIT
    while n >= _UNIT and exp < len(_PREFIXES) - 1:
        div *= _UNIT
        exp += 1
        n //= _UNIT
    return f"{size / div:.1f} {_PREFIXES[exp]}iB"


def gcd(a: int, b: int) -> int:
    """Greatest common divisor of ``|a|`` and ``|b|``, or 1 if either is zero."""
    a, b = abs(a), abs(b)
    if a == 0 or b == 0:
        return 1
    while b:
        a, b = b, a % b
    return a


def aspect_ratio_decimal(width: int, height: int) -> str:
    if height == 0:
        return "N/A"
    return f"{width / height:.3f}"


def aspect_ratio_fraction(width: int, height: int) -> str:
    """Simplified ``W:H`` ratio, empty when either side is not positive."""
    if width <= 0 or height <= 0:
        return ""
    divisor = gcd(width, height)
    return f"{width // divisor}:{height // divisor}"


def megapixels(width: int, height: int) -> float:
    return (width * height) / 1_000_000.0


def format_duration(elapsed: timedelta) -> str:
    """Short wall-time label: ``"152ms"`` below one second, ``"1.5s"`` above."""
    millis = round(elapsed.total_seconds() * 1000)
    if millis < 1000:
        return f"{millis}ms"
    return f"{millis / 1000:g}s"
