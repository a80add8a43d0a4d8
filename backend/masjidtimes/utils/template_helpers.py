# masjidtimes/utils/template_helpers.py

from .constants import NON_CLOCK_DISPLAY_VALUES
from .time_utils import parse_time_internal

# Weekday abbreviations as shown on mosque boards.
SHORT_DAY_NAMES = ('Mon', 'Tues', 'Wed', 'Thurs', 'Fri', 'Sat', 'Sun')


def is_valid_time_for_markup(time_string):
    """True only for a real HH:MM time; sentinels and tokens are excluded."""
    if not time_string or time_string in NON_CLOCK_DISPLAY_VALUES:
        return False
    return parse_time_internal(time_string) is not None


def format_to_12_hour(time_string):
    """
    Formats "13:05" as "1:05pm". Sentinels, tokens and anything else that is
    not a clock time are returned unchanged.
    """
    if not is_valid_time_for_markup(time_string):
        return time_string
    time_obj = parse_time_internal(time_string)
    ampm = 'pm' if time_obj.hour >= 12 else 'am'
    display_hours = time_obj.hour % 12 or 12
    return f"{display_hours}:{time_obj.minute:02d}{ampm}"


def format_times_to_12_hour(times):
    """Formats every value of a name-to-time mapping with format_to_12_hour."""
    return {name: format_to_12_hour(value) for name, value in times.items()}


def format_date_for_display(date_obj):
    """E.g. "Fri 14 March 2025"."""
    return f"{SHORT_DAY_NAMES[date_obj.weekday()]} {date_obj.day} {date_obj.strftime('%B')} {date_obj.year}"


def _format_short_date(date_obj):
    return f"{date_obj.day} {date_obj.strftime('%b')} {date_obj.year}"


def format_ramadan_date_range(gregorian_start, gregorian_end):
    """E.g. "1 Mar 2025 – 30 Mar 2025"."""
    return f"{_format_short_date(gregorian_start)} – {_format_short_date(gregorian_end)}"
