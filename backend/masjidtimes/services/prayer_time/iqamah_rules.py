# This module converts stored iqamah values into concrete congregation times.
import datetime
from dataclasses import dataclass
from typing import Optional, Tuple

from ...errors import CalendarValidationError
from ...utils.constants import IqamahTokens, Sentinels, PRAYER_NAMES
from ...utils.time_utils import (
    add_minutes_to_clock,
    is_clock_time,
    parse_relative_offset,
)


@dataclass(frozen=True)
class IqamahRule:
    """
    A parsed iqamah value. `raw` is the value exactly as the mosque published
    it; it is what gets displayed whenever the rule does not resolve to a
    clock time for the prayer it is attached to.
    """
    raw: str

    @property
    def display(self):
        return self.raw.strip()


@dataclass(frozen=True)
class LiteralTime(IqamahRule):
    pass


@dataclass(frozen=True)
class Various(IqamahRule):
    pass


@dataclass(frozen=True)
class EntryTime(IqamahRule):
    pass


@dataclass(frozen=True)
class StraightAfterMaghrib(IqamahRule):
    pass


@dataclass(frozen=True)
class Sunset(IqamahRule):
    pass


@dataclass(frozen=True)
class AfterMaghrib(IqamahRule):
    pass


@dataclass(frozen=True)
class Placeholder(IqamahRule):
    """"-" or "--:--": the mosque publishes no iqamah for this prayer."""


@dataclass(frozen=True)
class RelativeOffset(IqamahRule):
    minutes: int = 0


_TOKEN_RULES = {
    IqamahTokens.VARIOUS.lower(): Various,
    IqamahTokens.ENTRY_TIME.lower(): EntryTime,
    IqamahTokens.STRAIGHT_AFTER_MAGHRIB.lower(): StraightAfterMaghrib,
    IqamahTokens.SUNSET.lower(): Sunset,
    IqamahTokens.AFTER_MAGHRIB.lower(): AfterMaghrib,
    Sentinels.NO_TIME: Placeholder,
    Sentinels.EMPTY_TIME: Placeholder,
}

SUMMER_ISHA_WINDOW = ((5, 15), (8, 15))

# Tokens that mean "iqamah is at the adhan" for a given prayer. A token
# attached to any other prayer is displayed as published.
_ADHAN_TOKENS = {
    'fajr': (Various,),
    'asr': (EntryTime,),
    'maghrib': (Sunset,),
    'isha': (EntryTime,),
}


def parse_iqamah_rule(value, strict=True) -> IqamahRule:
    """
    Parses a stored iqamah value into an IqamahRule.

    With strict=True (used when a calendar is loaded) a value that is neither
    a clock time, a known token nor a relative expression raises
    CalendarValidationError. With strict=False it is kept as a plain
    IqamahRule and displayed unchanged.
    """
    if isinstance(value, IqamahRule):
        return value
    if value is None:
        raise CalendarValidationError("Iqamah value is missing.")
    if not isinstance(value, str):
        raise CalendarValidationError(f"Iqamah value must be a string, got {value!r}.")

    normalized = value.strip()
    rule_type = _TOKEN_RULES.get(normalized.lower())
    if rule_type:
        return rule_type(raw=value)

    offset = parse_relative_offset(normalized)
    if offset is not None:
        return RelativeOffset(raw=value, minutes=offset)

    if is_clock_time(normalized):
        return LiteralTime(raw=value)

    if strict:
        raise CalendarValidationError(f"Unrecognised iqamah value: {value!r}")
    return IqamahRule(raw=value)


def resolve_iqamah(prayer, adhan_time, iqamah_row, maghrib_adhan=None):
    """
    Get the iqamah time for a prayer from the mosque's iqamah row for the day.

    `iqamah_row` is any object with fajr/dhuhr/asr/maghrib/isha attributes
    holding IqamahRule objects (or raw strings) and a `jummah` string.
    `maghrib_adhan` is only used when Isha is "Straight after Maghrib".
    Returns "-" for a prayer name it does not know.
    """
    prayer_lower = prayer.lower()

    if prayer_lower == 'jummah':
        return iqamah_row.jummah

    if prayer_lower not in PRAYER_NAMES:
        return Sentinels.NO_TIME

    rule = parse_iqamah_rule(getattr(iqamah_row, prayer_lower), strict=False)

    if isinstance(rule, _ADHAN_TOKENS.get(prayer_lower, ())):
        return adhan_time

    if prayer_lower == 'isha' and isinstance(rule, StraightAfterMaghrib):
        return maghrib_adhan or adhan_time

    if isinstance(rule, RelativeOffset):
        return add_minutes_to_clock(adhan_time, rule.minutes) or rule.display

    return rule.display


def is_summer_period(date_obj, start: Tuple[int, int] = (5, 15), end: Tuple[int, int] = (8, 15)):
    """True between start and end (month, day), both inclusive, in date_obj's year."""
    if isinstance(date_obj, datetime.datetime):
        date_obj = date_obj.date()
    year = date_obj.year
    return datetime.date(year, *start) <= date_obj <= datetime.date(year, *end)


def apply_summer_isha_override(isha_iqamah, date_obj, start=(5, 15), end=(8, 15)) -> str:
    """Mosques combine Maghrib and Isha in long-daylight months."""
    if is_summer_period(date_obj, start, end):
        return IqamahTokens.AFTER_MAGHRIB
    return isha_iqamah


def resolve_daily_iqamah(prayer_times, iqamah_row, date_obj, summer_window=SUMMER_ISHA_WINDOW):
    """
    Resolves every prayer's iqamah for one day against that day's adhan
    times. The summer Isha override applies when summer_window, a
    ((month, day), (month, day)) pair, is given.
    """
    from .calendar_types import ResolvedIqamahTimes

    resolved = {
        prayer: resolve_iqamah(prayer, getattr(prayer_times, prayer), iqamah_row, maghrib_adhan=prayer_times.maghrib)
        for prayer in PRAYER_NAMES
    }
    if summer_window:
        resolved['isha'] = apply_summer_isha_override(resolved['isha'], date_obj, *summer_window)
    return ResolvedIqamahTimes(jummah=iqamah_row.jummah, **resolved)


def parse_month_day(value: Optional[str], default: Tuple[int, int]) -> Tuple[int, int]:
    """Parses "MM-DD" config values such as SUMMER_ISHA_START."""
    if not value:
        return default
    month_str, day_str = value.split('-', 1)
    return int(month_str), int(day_str)
