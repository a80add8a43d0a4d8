# This module finds the rows of a calendar that apply to a given day.
import re
from operator import attrgetter
from typing import Callable, Sequence, Tuple, TypeVar

from ...errors import CalendarNotFoundError, CalendarValidationError, IqamahRangeNotFoundError
from .calendar_types import DailyIqamahTimes, DailyRow, IqamahRange

Row = TypeVar('Row')

_DATE_RANGE_RE = re.compile(r"^\s*(\d{1,2})\s*(?:-\s*(\d{1,2})\s*)?$")


def find_row(rows: Sequence[Row], target_key: int, key: Callable[[Row], int] = attrgetter('day')) -> Row:
    """
    Finds the row for target_key in a possibly sparse calendar.

    Calendars may be authored with only some days sampled (e.g. 1, 15 and
    31). The lookup is a step function: an exact match wins, otherwise the
    nearest previous sample is carried forward. If target_key precedes every
    sample, the earliest sample is used. Values are never interpolated.

    `rows` must not be empty; callers treat an empty calendar as "no data".
    """
    if not rows:
        raise ValueError("find_row() requires at least one row.")

    closest_previous = None
    earliest = None

    for row in rows:
        row_key = key(row)
        if earliest is None or row_key < key(earliest):
            earliest = row

        if row_key == target_key:
            return row

        if row_key <= target_key and (closest_previous is None or row_key > key(closest_previous)):
            closest_previous = row

    return closest_previous if closest_previous is not None else earliest


def find_daily_row(rows: Sequence[DailyRow], day: int, period_label: str) -> DailyRow:
    """find_row for adhan rows, raising CalendarNotFoundError for an empty calendar."""
    if not rows:
        raise CalendarNotFoundError(f"Prayer times not found for {period_label}: calendar has no daily rows.")
    return find_row(rows, day)


def parse_date_range(date_range: str) -> Tuple[int, int]:
    """Parses "1-21" into (1, 21) and a single day "30" into (30, 30)."""
    match = _DATE_RANGE_RE.match(date_range or '')
    if not match:
        raise CalendarValidationError(f"Invalid iqamah date range: {date_range!r}")
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else start
    if start > end:
        raise CalendarValidationError(f"Iqamah date range starts after it ends: {date_range!r}")
    return start, end


def find_iqamah_range(iqamah_ranges: Sequence[IqamahRange], day: int) -> IqamahRange:
    for iqamah_range in iqamah_ranges:
        if iqamah_range.covers(day):
            return iqamah_range
    raise IqamahRangeNotFoundError(day)


def get_iqamah_times_for_day(day: int, iqamah_ranges: Sequence[IqamahRange], jummah_time: str) -> DailyIqamahTimes:
    """
    Gets the iqamah rules for a day of the month (or day of Ramadan).
    A gap in the range table is an error, never a default.
    """
    iqamah_range = find_iqamah_range(iqamah_ranges, day)
    return DailyIqamahTimes(
        fajr=iqamah_range.fajr,
        dhuhr=iqamah_range.dhuhr,
        asr=iqamah_range.asr,
        maghrib=iqamah_range.maghrib,
        isha=iqamah_range.isha,
        jummah=jummah_time,
    )
