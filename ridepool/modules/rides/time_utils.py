# Helpers for "HH:MM" times and today's date

import re
from datetime import datetime

TIME_PATTERN = re.compile(r"([01]?[0-9]|2[0-3]):[0-5][0-9]")


def time_to_minutes(time_string: str) -> int:
    """Minutes since midnight for an already validated "HH:MM" string."""
    hours, minutes = (int(part) for part in time_string.split(":"))
    return hours * 60 + minutes


def is_time_in_buffer(time1: str, time2: str, buffer_minutes: int = 60) -> bool:
    """True if the two times are at most ``buffer_minutes`` apart, in either direction."""
    difference = abs(time_to_minutes(time1) - time_to_minutes(time2))
    return difference <= buffer_minutes


def current_time() -> str:
    return datetime.now().strftime("%H:%M")


def current_date() -> str:
    return datetime.now().strftime("%Y-%m-%d")


def current_timestamp() -> str:
    return datetime.now().isoformat(timespec="seconds")


def is_valid_time_format(time_string) -> bool:
    if not isinstance(time_string, str):
        return False
    return TIME_PATTERN.fullmatch(time_string) is not None
