# This module works out when the UK clock change makes a mosque's iqamah board lag behind.
import datetime
import json
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from ...utils.time_utils import subtract_one_hour
from .calendar_types import AdjustedIqamahDate, DailyPrayerTimes

logger = logging.getLogger(__name__)

DST_START_MONTH = 3   # March: clocks go forward
DST_END_MONTH = 10    # October: clocks go back
MAX_END_OFFSET_DAYS = 5
MAX_START_OFFSET_DAYS = 1


@dataclass(frozen=True)
class DSTWindow:
    year: int
    start_date: datetime.date
    end_date: datetime.date


def parse_dst_table(data) -> List[DSTWindow]:
    """Parses {"uk_dst_dates": [{"year", "start_date", "end_date"}, ...]}."""
    windows = []
    for entry in data.get('uk_dst_dates', []):
        windows.append(DSTWindow(
            year=int(entry['year']),
            start_date=datetime.date.fromisoformat(entry['start_date'][:10]),
            end_date=datetime.date.fromisoformat(entry['end_date'][:10]),
        ))
    return windows


def load_dst_table(path) -> List[DSTWindow]:
    """
    Loads the DST reference table from a JSON file. A missing or malformed
    file yields an empty table so that resolution proceeds unmodified.
    """
    try:
        with open(path, 'r') as f:
            return parse_dst_table(json.load(f))
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Error loading DST dates from {path}: {e}", exc_info=True)
        return []


class DSTWindowResolver:
    """
    Answers DST questions for a date from the yearly UK DST table.

    The table is reloaded from its loader once `ttl_seconds` have passed.
    Years missing from the table fail open: no date in them is ever in an
    adjustment window.
    """

    def __init__(self, loader: Callable[[], List[DSTWindow]], ttl_seconds: float = 600, clock=time.monotonic):
        self._loader = loader
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Optional[List[DSTWindow]] = None
        self._expires_at = 0.0

    @classmethod
    def from_path(cls, path, ttl_seconds=600):
        return cls(lambda: load_dst_table(path), ttl_seconds=ttl_seconds)

    @classmethod
    def from_windows(cls, windows):
        frozen = list(windows)
        return cls(lambda: frozen, ttl_seconds=float('inf'))

    def windows(self) -> List[DSTWindow]:
        with self._lock:
            if self._windows is None or self._expires_at <= self._clock():
                self._windows = self._loader()
                self._expires_at = self._clock() + self._ttl_seconds
            return self._windows

    def window_for_year(self, year) -> Optional[DSTWindow]:
        for window in self.windows():
            if window.year == year:
                return window
        logger.debug(f"No DST data found for year {year}")
        return None

    def is_in_dst_period(self, date_obj) -> bool:
        """DST is in effect from start_date (inclusive) to end_date (exclusive)."""
        window = self.window_for_year(date_obj.year)
        if not window:
            return False
        return window.start_date <= date_obj < window.end_date

    def is_in_adjustment_window(self, date_obj) -> bool:
        """
        True from the clock change until the end of that month, in March and
        October only. During this span a mosque's iqamah board is assumed to
        still show the pre-change schedule.
        """
        window = self.window_for_year(date_obj.year)
        if not window:
            return False
        if date_obj.month == DST_END_MONTH:
            return date_obj.day >= window.end_date.day
        if date_obj.month == DST_START_MONTH:
            return date_obj.day >= window.start_date.day
        return False

    def map_to_adjusted_iqamah_date(self, date_obj) -> Optional[AdjustedIqamahDate]:
        """
        Maps a date inside the adjustment window to the day of the following
        month whose iqamah row applies instead. Only iqamah is substituted;
        adhan times stay with the astronomically correct month.
        """
        if not self.is_in_adjustment_window(date_obj):
            return None
        window = self.window_for_year(date_obj.year)

        if date_obj.month == DST_END_MONTH:
            offset = min(max(date_obj.day - window.end_date.day, 0), MAX_END_OFFSET_DAYS)
            return AdjustedIqamahDate(month=11, day=offset + 1)

        offset = min(max(date_obj.day - window.start_date.day, 0), MAX_START_OFFSET_DAYS)
        return AdjustedIqamahDate(month=4, day=offset + 1)

    def adjusted_iqamah_date(self, date_obj) -> Optional[datetime.date]:
        mapping = self.map_to_adjusted_iqamah_date(date_obj)
        if not mapping:
            return None
        return datetime.date(date_obj.year, mapping.month, mapping.day)

    def get_transition_type(self, date_obj) -> Optional[str]:
        window = self.window_for_year(date_obj.year)
        if not window:
            return None
        if date_obj == window.start_date:
            return 'start'
        if date_obj == window.end_date:
            return 'end'
        return None

    def describe(self, date_obj):
        """DST flags for a date, reported alongside its resolved times."""
        return {
            'is_dst_period': self.is_in_dst_period(date_obj),
            'transition': self.get_transition_type(date_obj),
            'in_adjustment_window': self.is_in_adjustment_window(date_obj),
        }

    def adjust_adhan_for_display(self, prayer_times: DailyPrayerTimes, date_obj) -> DailyPrayerTimes:
        """
        During the adjustment window the countdown shows Dhuhr and Maghrib
        adhan an hour earlier. Other prayers are left alone.
        """
        if not self.is_in_adjustment_window(date_obj):
            return prayer_times
        return replace(
            prayer_times,
            dhuhr=subtract_one_hour(prayer_times.dhuhr),
            maghrib=subtract_one_hour(prayer_times.maghrib),
        )
