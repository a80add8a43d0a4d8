import datetime
import re
from typing import Optional

# A dummy date used to do clock arithmetic with datetime objects. Any date far
# enough from datetime.date.min works; wrapping is done by taking .time().
_CLOCK_ANCHOR_DATE = datetime.date(2000, 1, 1)

_CLOCK_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_ADHAN_PLUS_RE = re.compile(r"^adhan\s*\+\s*(\d+)\s*(?:mins?|minutes?)?$", re.IGNORECASE)
_AFTER_ADHAN_RE = re.compile(r"^(\d+)\s*(?:mins?|minutes?)\s*after\s*adhan$", re.IGNORECASE)


def parse_time_internal(time_str):
    """
    Parses a time string (HH:MM, 24-hour) into a datetime.time object.
    Returns None if parsing fails.
    """
    if not time_str or not isinstance(time_str, str):
        return None
    match = _CLOCK_TIME_RE.match(time_str.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return datetime.time(hours, minutes)


def format_time_internal(time_obj, placeholder="-"):
    """
    Formats a datetime.time object into a HH:MM string.
    Returns the placeholder if time_obj is None.
    """
    if not time_obj:
        return placeholder
    return time_obj.strftime("%H:%M")


def is_clock_time(value):
    return parse_time_internal(value) is not None


def add_minutes_to_time(time_obj, minutes_to_add):
    """
    Adds minutes to a datetime.time object. Wraps around midnight in both
    directions. Returns None if inputs are invalid.
    """
    if time_obj is None or minutes_to_add is None:
        return None
    full_datetime = datetime.datetime.combine(_CLOCK_ANCHOR_DATE, time_obj)
    new_datetime = full_datetime + datetime.timedelta(minutes=int(minutes_to_add))
    return new_datetime.time()


def add_minutes_to_clock(time_str, minutes_to_add) -> Optional[str]:
    """String form of add_minutes_to_time: "23:50" + 20 -> "00:10"."""
    time_obj = parse_time_internal(time_str)
    if time_obj is None:
        return None
    return format_time_internal(add_minutes_to_time(time_obj, minutes_to_add))


def subtract_one_hour(time_str):
    """Subtracts one hour from HH:MM, wrapping 00:xx to 23:xx. Non-times pass through."""
    return add_minutes_to_clock(time_str, -60) or time_str


def parse_relative_offset(value) -> Optional[int]:
    """
    Returns the minute offset of a relative iqamah expression such as
    "Adhan + 15 mins" or "10 minutes after adhan", or None if value is not one.
    """
    if not value or not isinstance(value, str):
        return None
    stripped = value.strip()
    match = _ADHAN_PLUS_RE.match(stripped) or _AFTER_ADHAN_RE.match(stripped)
    if not match:
        return None
    return int(match.group(1))


def combine_with_clock(date_obj, time_str, tzinfo=None):
    """
    Builds a datetime for date_obj at the HH:MM wall-clock time. Returns None
    for sentinels and other non-clock values.
    """
    time_obj = parse_time_internal(time_str)
    if time_obj is None:
        return None
    return datetime.datetime.combine(date_obj, time_obj, tzinfo=tzinfo)


def is_jummah_day(date_obj):
    """Friday is weekday 4 (Monday is 0)."""
    return date_obj.weekday() == 4
