"""Clock-string parsing and day-boundary arithmetic.

All clock values are minute-of-day integers in ``[0, 1440)``. Functions here
are pure and hold no state.
"""

import math
import re
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sleep_pattern_server.core.exceptions import FormatError

MINUTES_PER_DAY = 24 * 60
EVENING_PIVOT_MINUTES = 18 * 60

CLOCK_PATTERN = re.compile(r"^([0-1]?\d|2[0-3]):[0-5]\d$")


def is_valid_clock_format(value: object) -> bool:
    """Check a value against the strict ``H:MM`` / ``HH:MM`` 24-hour format."""
    return isinstance(value, str) and CLOCK_PATTERN.match(value) is not None


def minutes_of_day(clock: str) -> int:
    """Parse an ``HH:MM`` clock string into minutes after midnight.

    Raises:
        FormatError: If the value is malformed or outside 00:00-23:59
    """
    if not is_valid_clock_format(clock):
        raise FormatError(f'Invalid time format: "{clock}". Expected HH:MM (00:00-23:59).')
    hours, minutes = clock.split(":")
    return int(hours) * 60 + int(minutes)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def wrap_minutes(minutes: float) -> float:
    """Normalize a minute offset into ``[0, 1440)``."""
    return minutes % MINUTES_PER_DAY


def minutes_to_clock(minutes: float) -> str:
    """Format minutes after midnight as a zero-padded ``HH:MM`` string.

    Fractional minutes are rounded; values outside one day wrap around.
    """
    total = round_half_up(minutes) % MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def clock_difference(start: int, end: int) -> int:
    """Forward distance in minutes from ``start`` to ``end``, crossing midnight."""
    return (end - start) % MINUTES_PER_DAY


def add_minutes(clock: str, delta: int) -> str:
    """Shift a clock string by ``delta`` minutes, wrapping around midnight."""
    return minutes_to_clock(minutes_of_day(clock) + delta)


def fold_evening(minutes: float, pivot: int = EVENING_PIVOT_MINUTES) -> float:
    """Map evening times to negative offsets so late nights average with early mornings.

    23:50 becomes -10, 00:10 stays 10.
    """
    return minutes - MINUTES_PER_DAY if minutes >= pivot else minutes


def circular_midpoint(onset: float, wake: float) -> float:
    """Midpoint between onset and wake, walking forward from onset across midnight."""
    return wrap_minutes(onset + ((wake - onset) % MINUTES_PER_DAY) / 2)


def is_valid_iana_time_zone(name: object) -> bool:
    """Check that the time zone database recognizes ``name``."""
    if not isinstance(name, str) or not name.strip():
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False
    return True
