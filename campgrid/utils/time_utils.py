import re
from datetime import datetime, time
from typing import Any, Optional


_TIME_PATTERN = re.compile(r"^(\d{1,2})\s*:\s*(\d{2})\s*(am|pm)?$")

# Without a meridian, hours 1-7 are read as afternoon (camps do not run at 3 AM)
_AFTERNOON_HOURS = range(1, 8)


def parse_time(value: Any) -> Optional[int]:
    """
    Convert a time value to minutes since midnight.

    Handles "9:00 AM", "9:00am", "9 : 00 pm", "14:30" and "2:30" (read as 2:30 PM).
    Integers are taken to already be minutes and ``datetime.time`` objects are
    converted directly.

    Returns:
        Minutes since midnight, or None when the value cannot be parsed.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        return None

    match = _TIME_PATTERN.match(value.strip().lower())
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    meridian = match.group(3)

    if minutes > 59:
        return None

    if meridian:
        if hours > 12:
            return None
        if hours == 12:
            hours = 0 if meridian == "am" else 12
        elif meridian == "pm":
            hours += 12
    else:
        if hours > 23:
            return None
        if hours in _AFTERNOON_HOURS:
            hours += 12

    return hours * 60 + minutes


def minutes_to_label(minutes: Optional[int]) -> str:
    """540 -> '9:00 AM', 810 -> '1:30 PM'."""
    if minutes is None:
        return "?"
    hours, mins = divmod(int(minutes), 60)
    hours = hours % 24
    meridian = "PM" if hours >= 12 else "AM"
    hours = hours % 12 or 12
    return f"{hours}:{mins:02d} {meridian}"


def format_range(start_min: Optional[int], end_min: Optional[int]) -> str:
    return f"{minutes_to_label(start_min)} - {minutes_to_label(end_min)}"


def minutes_from_instant(value: Any) -> Optional[int]:
    """Read minutes-of-day from a datetime or an ISO-8601 string (legacy grid records)."""
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        instant = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return instant.hour * 60 + instant.minute


def parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def same_identifier(left: Any, right: Any) -> bool:
    """
    Compare two bunk identifiers tolerantly: exact, trimmed string,
    integer value ("05" == 5) and case-insensitive.
    """
    if left is None or right is None:
        return False
    if left == right:
        return True

    left_str = str(left).strip()
    right_str = str(right).strip()
    if left_str == right_str:
        return True
    if left_str.lower() == right_str.lower():
        return True

    try:
        return int(left_str) == int(right_str)
    except ValueError:
        return False
